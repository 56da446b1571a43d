from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from screen_time.errors import PersistenceFailure, ProbeUnavailable
from screen_time.scheduler import UsageScheduler


class FakeClock:
    def __init__(self, start: datetime = datetime(2026, 3, 2, 9, 0, 0)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1.0) -> None:
        self.now += timedelta(seconds=seconds)


class FakeProbe:
    def __init__(self, active: bool = True) -> None:
        self.active = active
        self.fail = False
        self.calls = 0

    def is_user_active(self) -> bool:
        self.calls += 1
        if self.fail:
            raise ProbeUnavailable("idle facility missing")
        return self.active


class MemoryStore:
    def __init__(self, minutes: int = 30) -> None:
        self.minutes = minutes
        self.saved: list[int] = []
        self.fail_load = False
        self.fail_save = False

    def load_threshold_minutes(self) -> int:
        if self.fail_load:
            raise PersistenceFailure("disk unreadable")
        return self.minutes

    def save_threshold_minutes(self, minutes: int) -> None:
        if self.fail_save:
            raise PersistenceFailure("disk full")
        self.minutes = minutes
        self.saved.append(minutes)


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def probe() -> FakeProbe:
    return FakeProbe()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def scheduler(probe, store, notifier, clock) -> UsageScheduler:
    return UsageScheduler(probe, settings_store=store, notifier=notifier, clock=clock)


@pytest.fixture
def events(scheduler) -> list:
    received: list = []
    scheduler.subscribe(received.append)
    return received
