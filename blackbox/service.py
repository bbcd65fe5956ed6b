"""Background service registration through launchd (macOS) or systemd (Linux)."""

import os
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence, Union

LABEL = "com.blackbox.agent"
UNIT_NAME = "blackbox.service"
_DEFAULT_PATH = "/usr/local/bin:/opt/homebrew/bin:/usr/bin:/bin"


class ServiceError(RuntimeError):
    """A service manager command failed or the platform is unsupported."""


def format_command_error(cmd_desc: str, stderr: Union[bytes, str]) -> str:
    """Describe a failed command, including its trimmed stderr."""
    if isinstance(stderr, bytes):
        stderr = stderr.decode("utf-8", errors="replace")
    trimmed = stderr.strip()
    if not trimmed:
        return f"{cmd_desc} failed (no stderr)"
    return f"{cmd_desc} failed: {trimmed}"


def generate_plist(exe_path: str, data_dir: str) -> str:
    """Return the launchd property list that runs the recorder at login."""
    path_env = os.environ.get("PATH", _DEFAULT_PATH)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN"
  "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>Label</key>
    <string>{LABEL}</string>
    <key>ProgramArguments</key>
    <array>
        <string>{exe_path}</string>
        <string>run-foreground</string>
    </array>
    <key>RunAtLoad</key>
    <true/>
    <key>KeepAlive</key>
    <true/>
    <key>EnvironmentVariables</key>
    <dict>
        <key>PATH</key>
        <string>{path_env}</string>
    </dict>
    <key>StandardOutPath</key>
    <string>{data_dir}/blackbox.log</string>
    <key>StandardErrorPath</key>
    <string>{data_dir}/blackbox.err.log</string>
</dict>
</plist>"""


def generate_unit_file(exe_path: str) -> str:
    """Return the systemd user unit that runs the recorder."""
    return f"""[Unit]
Description=Blackbox git activity recorder
After=default.target

[Service]
Type=simple
ExecStart={exe_path} run-foreground
Restart=on-failure
RestartSec=10

[Install]
WantedBy=default.target"""


def plist_path() -> Path:
    """Location of the launchd agent file."""
    return Path.home() / "Library/LaunchAgents/com.blackbox.agent.plist"


def unit_path() -> Path:
    """Location of the systemd user unit file."""
    return Path.home() / ".config/systemd/user/blackbox.service"


def _run(args: Sequence[str]) -> subprocess.CompletedProcess:
    return subprocess.run(list(args), capture_output=True)


def _default_exe() -> str:
    found = shutil.which("blackbox")
    return str(Path(found or sys.argv[0]).resolve())


def _is_macos() -> bool:
    return sys.platform == "darwin"


def _is_linux() -> bool:
    return sys.platform.startswith("linux")


def install(data_dir: Union[str, Path], exe_path: Optional[str] = None) -> Path:
    """Write the service file and load it. Returns the path of the file written.

    Raises ``ServiceError`` when the service manager rejects it or the
    platform has no supported service manager.
    """
    data_dir = Path(data_dir)
    exe = exe_path or _default_exe()

    if _is_macos():
        data_dir.mkdir(parents=True, exist_ok=True)
        path = plist_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(generate_plist(exe, str(data_dir)))
        target = str(path)
        bootstrap = _run(["launchctl", "bootstrap", f"gui/{os.getuid()}", target])
        if bootstrap.returncode != 0:
            fallback = _run(["launchctl", "load", target])
            if fallback.returncode != 0:
                raise ServiceError(format_command_error("launchctl load", fallback.stderr))
        return path

    if _is_linux():
        path = unit_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(generate_unit_file(exe))
        reload = _run(["systemctl", "--user", "daemon-reload"])
        if reload.returncode != 0:
            raise ServiceError(format_command_error("systemctl daemon-reload", reload.stderr))
        enable = _run(["systemctl", "--user", "enable", "--now", UNIT_NAME])
        if enable.returncode != 0:
            raise ServiceError(format_command_error("systemctl enable", enable.stderr))
        return path

    raise ServiceError("Service install not supported on this OS")


def uninstall() -> bool:
    """Unload and remove the service. Returns False if it was not installed."""
    if _is_macos():
        path = plist_path()
        if not path.exists():
            return False
        target = str(path)
        bootout = _run(["launchctl", "bootout", f"gui/{os.getuid()}", target])
        if bootout.returncode != 0:
            fallback = _run(["launchctl", "unload", target])
            if fallback.returncode != 0:
                raise ServiceError(format_command_error("launchctl unload", fallback.stderr))
        path.unlink()
        return True

    if _is_linux():
        path = unit_path()
        if not path.exists():
            return False
        disable = _run(["systemctl", "--user", "disable", "--now", UNIT_NAME])
        if disable.returncode != 0:
            raise ServiceError(format_command_error("systemctl disable", disable.stderr))
        path.unlink()
        return True

    raise ServiceError("Service uninstall not supported on this OS")