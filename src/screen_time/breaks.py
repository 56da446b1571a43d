"""Break countdown shown to the user after confirming a break."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

ENCOURAGEMENTS: tuple[tuple[timedelta, str], ...] = (
    (timedelta(seconds=1), "Great job taking care of yourself! 👏"),
    (timedelta(seconds=90), "Your eyes will thank you for this break! 👀"),
    (timedelta(seconds=180), "Keep up the healthy habits! 💚"),
    (timedelta(seconds=240), "Almost there! You're doing great! 🌟"),
)


@dataclass(slots=True)
class BreakCountdown:
    started_at: datetime
    duration: timedelta = timedelta(minutes=5)

    def elapsed(self, now: datetime) -> timedelta:
        return max(timedelta(0), now - self.started_at)

    def remaining_seconds(self, now: datetime) -> int:
        remaining = self.duration - self.elapsed(now)
        return max(0, int(remaining.total_seconds()))

    def is_complete(self, now: datetime) -> bool:
        return self.remaining_seconds(now) == 0

    def progress_percent(self, now: datetime) -> float:
        total = self.duration.total_seconds()
        if total <= 0:
            return 100.0
        return min(self.elapsed(now).total_seconds() / total * 100.0, 100.0)

    def encouragement(self, now: datetime) -> Optional[str]:
        """Latest encouragement due at ``now``; none once the break is over."""
        if self.is_complete(now):
            return None
        elapsed = self.elapsed(now)
        message = None
        for offset, text in ENCOURAGEMENTS:
            if offset <= elapsed:
                message = text
        return message

    def to_dict(self, now: datetime) -> dict:
        remaining = self.remaining_seconds(now)
        minutes, seconds = divmod(remaining, 60)
        return {
            "started_at": self.started_at.isoformat(),
            "duration_seconds": int(self.duration.total_seconds()),
            "remaining_seconds": remaining,
            "remaining": f"{minutes:02d}:{seconds:02d}",
            "progress_percent": round(self.progress_percent(now), 1),
            "complete": self.is_complete(now),
            "encouragement": self.encouragement(now),
        }
