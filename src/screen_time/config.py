"""Configuration models and helpers for the screen time monitor."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


MIN_THRESHOLD_MINUTES = 15
MAX_THRESHOLD_MINUTES = 120
DEFAULT_THRESHOLD_MINUTES = 30


@dataclass(slots=True)
class SchedulerSettings:
    """Timing rules for the usage scheduler and its driver."""

    tick_interval: timedelta = timedelta(seconds=1)
    idle_reset_after: timedelta = timedelta(minutes=5)
    snooze_credit: timedelta = timedelta(minutes=5)
    active_window: timedelta = timedelta(minutes=1)
    sleep_gap: timedelta = timedelta(minutes=2)
    break_duration: timedelta = timedelta(minutes=5)

    @classmethod
    def from_minutes(
        cls,
        idle_reset_minutes: float = 5.0,
        snooze_minutes: float = 5.0,
        sleep_gap_minutes: float | None = None,
    ) -> "SchedulerSettings":
        sleep_gap = sleep_gap_minutes if sleep_gap_minutes is not None else 2.0
        return cls(
            idle_reset_after=timedelta(minutes=idle_reset_minutes),
            snooze_credit=timedelta(minutes=snooze_minutes),
            sleep_gap=timedelta(minutes=sleep_gap),
        )


def clamp_threshold_minutes(minutes: int) -> int:
    return max(MIN_THRESHOLD_MINUTES, min(MAX_THRESHOLD_MINUTES, int(minutes)))
