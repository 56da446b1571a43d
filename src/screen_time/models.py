"""Domain models for usage state and scheduler events."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, ClassVar, Dict, Union


class SchedulerPhase(str, enum.Enum):
    IDLE = "idle"
    MONITORING = "monitoring"
    BREAK_PENDING = "break_pending"


@dataclass(slots=True)
class UsageState:
    """Mutable usage counters owned by a single scheduler."""

    last_activity: datetime
    usage_seconds: int = 0
    break_threshold_seconds: int = 1800
    is_monitoring: bool = False
    is_break_active: bool = False

    @property
    def phase(self) -> SchedulerPhase:
        if self.is_break_active:
            return SchedulerPhase.BREAK_PENDING
        if self.is_monitoring:
            return SchedulerPhase.MONITORING
        return SchedulerPhase.IDLE


@dataclass(frozen=True, slots=True)
class UsageChanged:
    name: ClassVar[str] = "usage-changed"

    usage_seconds: int
    is_monitoring: bool
    is_break_active: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.name, **asdict(self)}


@dataclass(frozen=True, slots=True)
class BreakAlert:
    name: ClassVar[str] = "break-alert"

    usage_seconds: int

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.name, **asdict(self)}


@dataclass(frozen=True, slots=True)
class TimerReset:
    name: ClassVar[str] = "timer-reset"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.name}


@dataclass(frozen=True, slots=True)
class MonitoringToggled:
    name: ClassVar[str] = "monitoring-toggled"

    is_monitoring: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.name, **asdict(self)}


SchedulerEvent = Union[UsageChanged, BreakAlert, TimerReset, MonitoringToggled]
