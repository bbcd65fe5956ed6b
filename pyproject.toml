[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "blackbox"
version = "0.1.0"
description = "Building blocks for a passive git activity recorder: shell hooks, service files, repository watching and live dashboard state"
requires-python = ">=3.10"
keywords = ["git", "time-tracking", "developer-tools", "productivity", "filesystem-watcher"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: MacOS",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Version Control :: Git",
    "Topic :: Utilities",
]
dependencies = [
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["blackbox"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
