"""Command-line interface for the screen time monitor."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import MAX_THRESHOLD_MINUTES, MIN_THRESHOLD_MINUTES, SchedulerSettings
from .errors import PersistenceFailure, ProbeUnavailable
from .paths import get_log_path, get_settings_path
from .server_runner import run_dashboard

app = typer.Typer(help="Screen time tracker with break reminders.")


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        handlers=[logging.StreamHandler(), logging.FileHandler(get_log_path(), encoding="utf-8")],
    )


@app.command()
def run(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the control API."),
    port: int = typer.Option(
        8766, "--port", min=1, max=65535, help="TCP port for the control API."
    ),
    settings_path: Optional[Path] = typer.Option(
        None, "--settings", path_type=Path, help="Location of the settings JSON file."
    ),
    idle_minutes: float = typer.Option(
        5.0,
        "--idle-reset",
        min=1.0,
        help="Minutes without activity before the usage timer resets.",
    ),
    notifications: bool = typer.Option(
        True,
        "--notifications/--no-notifications",
        help="Show desktop notifications for break reminders.",
    ),
    paused: bool = typer.Option(
        False, "--paused", help="Start with monitoring paused."
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the interactive API page in your default browser.",
    ),
) -> None:
    """Track screen time and serve the local control API until interrupted."""
    run_dashboard(
        host=host,
        port=port,
        settings_path=settings_path,
        settings=SchedulerSettings.from_minutes(idle_reset_minutes=idle_minutes),
        desktop_notifications=notifications,
        start_paused=paused,
        open_browser=open_browser,
    )


@app.command()
def threshold(
    minutes: Optional[int] = typer.Argument(
        None,
        min=MIN_THRESHOLD_MINUTES,
        max=MAX_THRESHOLD_MINUTES,
        help="New break threshold in minutes. Omit to show the current value.",
    ),
    settings_path: Optional[Path] = typer.Option(
        None, "--settings", path_type=Path, help="Location of the settings JSON file."
    ),
) -> None:
    """Show or change the persisted break threshold."""
    from .settings import JsonSettingsStore

    store = JsonSettingsStore(settings_path or get_settings_path())
    try:
        if minutes is not None:
            store.save_threshold_minutes(minutes)
        current = store.load_threshold_minutes()
    except PersistenceFailure as exc:
        typer.echo(f"Settings error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"Break threshold: {current} minutes ({store.path})")


@app.command()
def probe() -> None:
    """Query the activity and lock-screen probes once."""
    from .probes import LockScreenProbe, create_activity_probe
    from .reporting import format_duration

    activity = create_activity_probe()
    try:
        idle = activity.idle_seconds()
    except ProbeUnavailable as exc:
        typer.echo(f"Idle time:   unavailable ({exc}); user treated as active")
    else:
        typer.echo(f"Idle time:   {format_duration(idle)}")
        active = idle < activity.active_window.total_seconds()
        typer.echo(f"User active: {'yes' if active else 'no'}")
    locked = LockScreenProbe().is_locked()
    label = "unknown" if locked is None else ("yes" if locked else "no")
    typer.echo(f"Locked:      {label}")
