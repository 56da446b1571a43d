"""Helpers to wire the scheduler together and launch the local API."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import SchedulerSettings
from .notifier import DesktopNotifier, LogNotifier
from .paths import get_settings_path
from .probes import LockScreenProbe, create_activity_probe
from .runner import SchedulerRunner, SystemEventWatcher
from .scheduler import UsageScheduler
from .settings import JsonSettingsStore
from .webapp import create_app


def build_scheduler(
    *,
    settings_path: Optional[Path] = None,
    settings: Optional[SchedulerSettings] = None,
    desktop_notifications: bool = True,
    start_paused: bool = False,
) -> tuple[UsageScheduler, SchedulerRunner]:
    """Create the scheduler with the platform probes and its background driver."""
    resolved = settings or SchedulerSettings()
    scheduler = UsageScheduler(
        create_activity_probe(active_window=resolved.active_window),
        settings_store=JsonSettingsStore(settings_path or get_settings_path()),
        notifier=DesktopNotifier() if desktop_notifications else LogNotifier(),
        settings=resolved,
        monitoring=not start_paused,
    )
    watcher = SystemEventWatcher(
        scheduler,
        lock_probe=LockScreenProbe(),
        sleep_gap=resolved.sleep_gap,
    )
    return scheduler, SchedulerRunner(scheduler, watcher, resolved)


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8766,
    settings_path: Optional[Path] = None,
    settings: Optional[SchedulerSettings] = None,
    desktop_notifications: bool = True,
    start_paused: bool = False,
    open_browser: bool = False,
    log_level: str = "info",
) -> None:
    """Start the scheduler and its FastAPI control surface."""
    scheduler, runner = build_scheduler(
        settings_path=settings_path,
        settings=settings,
        desktop_notifications=desktop_notifications,
        start_paused=start_paused,
    )
    app = create_app(scheduler=scheduler, runner=runner)

    if open_browser:
        url = f"http://{host}:{port}/docs"
        threading.Thread(
            target=_launch_browser_after_delay, args=(url,), daemon=True
        ).start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _launch_browser_after_delay(url: str) -> None:
    time.sleep(1.0)
    try:
        webbrowser.open(url)
    except Exception:
        logging.getLogger(__name__).exception("Failed to launch browser for %s", url)
