"""Where the monitor keeps its settings file and log."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "ScreenTimeMonitor"
APP_AUTHOR = "ScreenTimeMonitor"


def get_data_dir() -> Path:
    """Per-user data directory, created on first use (roams on Windows)."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    path = Path(dirs.user_data_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_settings_path() -> Path:
    """Holds ``breakThresholdMinutes``; the only state kept across restarts."""
    return get_data_dir() / "settings.json"


def get_log_path() -> Path:
    return get_data_dir() / "monitor.log"
