"""Formatting helpers shared by the notifier, the CLI and the web API."""

from __future__ import annotations

import math

from .models import SchedulerPhase, UsageState


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def progress_percent(usage_seconds: int, threshold_seconds: int) -> float:
    if threshold_seconds <= 0:
        return 100.0
    return min(usage_seconds / threshold_seconds * 100.0, 100.0)


def minutes_until_break(usage_seconds: int, threshold_seconds: int) -> int:
    return max(0, math.ceil((threshold_seconds - usage_seconds) / 60))


def status_label(state: UsageState) -> str:
    """Short human-readable status line for the current phase."""
    phase = state.phase
    if phase is SchedulerPhase.BREAK_PENDING:
        return "Break Time!"
    if phase is SchedulerPhase.MONITORING:
        return "Monitoring"
    return "Paused"


def progress_text(state: UsageState) -> str:
    if state.usage_seconds >= state.break_threshold_seconds:
        return "Break time!"
    remaining = minutes_until_break(state.usage_seconds, state.break_threshold_seconds)
    return f"{remaining} min until break"


def describe_state(state: UsageState) -> dict:
    return {
        "usage_seconds": state.usage_seconds,
        "break_threshold_seconds": state.break_threshold_seconds,
        "break_threshold_minutes": state.break_threshold_seconds // 60,
        "is_monitoring": state.is_monitoring,
        "is_break_active": state.is_break_active,
        "phase": state.phase.value,
        "formatted_usage": format_duration(state.usage_seconds),
        "progress_percent": round(
            progress_percent(state.usage_seconds, state.break_threshold_seconds), 1
        ),
        "minutes_until_break": minutes_until_break(
            state.usage_seconds, state.break_threshold_seconds
        ),
        "progress_text": progress_text(state),
        "status": status_label(state),
        "last_activity": state.last_activity.isoformat(),
    }
