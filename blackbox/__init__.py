"""Shell hooks, service files, repository watching and live dashboard state for a git activity recorder."""

__version__ = "0.1.0"