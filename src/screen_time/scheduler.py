"""Usage accumulator and break scheduling state machine."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional

from .config import (
    DEFAULT_THRESHOLD_MINUTES,
    MAX_THRESHOLD_MINUTES,
    MIN_THRESHOLD_MINUTES,
    SchedulerSettings,
    clamp_threshold_minutes,
)
from .errors import InvalidConfiguration, PersistenceFailure, ProbeUnavailable
from .models import (
    BreakAlert,
    MonitoringToggled,
    SchedulerEvent,
    SchedulerPhase,
    TimerReset,
    UsageChanged,
    UsageState,
)
from .notifier import Notifier
from .probes import ActivityProbe
from .reporting import format_duration
from .settings import SettingsStore

logger = logging.getLogger(__name__)

Observer = Callable[[SchedulerEvent], None]


class UsageScheduler:
    """Accumulates active usage once per tick and manages the break lifecycle.

    State changes happen under a single lock. The activity probe is queried
    outside that lock behind a one-slot guard, and events are delivered to
    observers only after the lock has been released, so observers may call
    back into the scheduler.
    """

    def __init__(
        self,
        probe: ActivityProbe,
        *,
        settings_store: Optional[SettingsStore] = None,
        notifier: Optional[Notifier] = None,
        settings: Optional[SchedulerSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
        monitoring: bool = True,
    ) -> None:
        self._probe = probe
        self._store = settings_store
        self._notifier = notifier
        self.settings = settings or SchedulerSettings()
        self._clock = clock
        self._lock = threading.Lock()
        self._probe_guard = threading.Lock()
        self._observers: List[Observer] = []
        self._epoch = 0
        self._state = UsageState(
            last_activity=clock(),
            break_threshold_seconds=self._load_threshold_minutes() * 60,
            is_monitoring=monitoring,
        )

    # -- observers ---------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        with self._lock:
            self._observers.append(observer)
        return lambda: self.unsubscribe(observer)

    def unsubscribe(self, observer: Observer) -> None:
        with self._lock:
            try:
                self._observers.remove(observer)
            except ValueError:
                pass

    # -- state inspection --------------------------------------------------

    def snapshot(self) -> UsageState:
        with self._lock:
            return replace(self._state)

    @property
    def phase(self) -> SchedulerPhase:
        with self._lock:
            return self._state.phase

    @property
    def usage_seconds(self) -> int:
        with self._lock:
            return self._state.usage_seconds

    @property
    def break_threshold_seconds(self) -> int:
        with self._lock:
            return self._state.break_threshold_seconds

    @property
    def is_monitoring(self) -> bool:
        with self._lock:
            return self._state.is_monitoring

    @property
    def is_break_active(self) -> bool:
        with self._lock:
            return self._state.is_break_active

    # -- driver ------------------------------------------------------------

    def tick(self) -> None:
        """Advance usage by one second if the user is active."""
        if not self._probe_guard.acquire(blocking=False):
            logger.debug("Skipping tick; previous activity probe still in flight.")
            return
        try:
            with self._lock:
                if not self._state.is_monitoring or self._state.is_break_active:
                    return
                epoch = self._epoch
            active = self._query_probe()
            self._apply_probe_result(active, epoch)
        finally:
            self._probe_guard.release()

    def _query_probe(self) -> bool:
        try:
            return bool(self._probe.is_user_active())
        except ProbeUnavailable as exc:
            logger.warning("Activity probe unavailable (%s); assuming user is active.", exc)
            return True

    def _apply_probe_result(self, active: bool, epoch: int) -> None:
        events: list[SchedulerEvent] = []
        break_usage: Optional[int] = None
        with self._lock:
            state = self._state
            if epoch != self._epoch or not state.is_monitoring or state.is_break_active:
                logger.debug("Discarding stale activity probe result.")
                return
            now = self._clock()
            if active:
                state.usage_seconds += 1
                state.last_activity = now
                events.append(self._usage_event_locked())
                if state.usage_seconds >= state.break_threshold_seconds:
                    break_usage = self._trigger_break_locked(events)
            elif now - state.last_activity > self.settings.idle_reset_after:
                logger.info(
                    "No activity since %s; resetting usage timer.",
                    state.last_activity.isoformat(timespec="seconds"),
                )
                self._reset_locked(events)
        self._dispatch(events)
        if break_usage is not None:
            self._notify_break(break_usage)

    # -- break lifecycle ---------------------------------------------------

    def trigger_break(self) -> None:
        events: list[SchedulerEvent] = []
        with self._lock:
            break_usage = self._trigger_break_locked(events)
        self._dispatch(events)
        if break_usage is not None:
            self._notify_break(break_usage)

    def _trigger_break_locked(self, events: list[SchedulerEvent]) -> Optional[int]:
        if self._state.is_break_active:
            return None
        self._state.is_break_active = True
        usage = self._state.usage_seconds
        logger.info("Break threshold reached after %s of usage.", format_duration(usage))
        events.append(BreakAlert(usage_seconds=usage))
        return usage

    def _notify_break(self, usage_seconds: int) -> None:
        self._notify(
            f"Break Time! You've been using your computer for {format_duration(usage_seconds)}"
        )

    def start_break(self) -> None:
        """Confirm a break: the usage counter starts fresh afterwards."""
        events: list[SchedulerEvent] = []
        with self._lock:
            self._reset_locked(events)
            self._state.is_break_active = False
        logger.info("Break started; usage timer reset.")
        self._dispatch(events)
        self._notify("Break started! Timer reset.")

    def snooze_break(self) -> None:
        """Defer the break by crediting back the snooze allowance."""
        credit = int(self.settings.snooze_credit.total_seconds())
        events: list[SchedulerEvent] = []
        with self._lock:
            state = self._state
            state.usage_seconds = max(0, state.usage_seconds - credit)
            state.is_break_active = False
            events.append(self._usage_event_locked())
            usage = state.usage_seconds
        logger.info("Break snoozed; usage credited back to %s.", format_duration(usage))
        self._dispatch(events)
        self._notify(f"Break reminder snoozed for {credit // 60} minutes")

    def reset_timer(self) -> None:
        events: list[SchedulerEvent] = []
        with self._lock:
            self._reset_locked(events)
        self._dispatch(events)

    def _reset_locked(self, events: list[SchedulerEvent]) -> None:
        self._state.usage_seconds = 0
        self._state.is_break_active = False
        self._state.last_activity = self._clock()
        events.append(TimerReset())

    # -- monitoring and configuration --------------------------------------

    def toggle_monitoring(self) -> bool:
        with self._lock:
            self._state.is_monitoring = not self._state.is_monitoring
            self._epoch += 1
            monitoring = self._state.is_monitoring
        logger.info("Monitoring %s.", "resumed" if monitoring else "paused")
        self._dispatch([MonitoringToggled(is_monitoring=monitoring)])
        return monitoring

    def set_break_threshold(self, minutes: int) -> None:
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            raise InvalidConfiguration(
                f"Break threshold must be a whole number of minutes, got {minutes!r}."
            )
        if minutes < MIN_THRESHOLD_MINUTES or minutes > MAX_THRESHOLD_MINUTES:
            raise InvalidConfiguration(
                f"Break threshold must be between {MIN_THRESHOLD_MINUTES} and "
                f"{MAX_THRESHOLD_MINUTES} minutes, got {minutes}."
            )
        with self._lock:
            self._state.break_threshold_seconds = minutes * 60
        logger.info("Break threshold set to %d minutes.", minutes)
        if self._store is None:
            return
        try:
            self._store.save_threshold_minutes(minutes)
        except PersistenceFailure:
            logger.exception(
                "Failed to persist break threshold; keeping it for this session only."
            )

    def _load_threshold_minutes(self) -> int:
        if self._store is None:
            return DEFAULT_THRESHOLD_MINUTES
        try:
            minutes = self._store.load_threshold_minutes()
        except PersistenceFailure as exc:
            logger.warning(
                "Could not load settings (%s); using default threshold of %d minutes.",
                exc,
                DEFAULT_THRESHOLD_MINUTES,
            )
            return DEFAULT_THRESHOLD_MINUTES
        clamped = clamp_threshold_minutes(minutes)
        if clamped != minutes:
            logger.warning(
                "Persisted break threshold %s is out of range. Clamping to %d minutes.",
                minutes,
                clamped,
            )
        return clamped

    # -- system interruptions ----------------------------------------------

    def handle_suspend(self) -> None:
        logger.info("System is going to sleep; resetting usage timer.")
        self.reset_timer()

    def handle_resume(self) -> None:
        logger.info("System resumed from sleep; resetting usage timer.")
        self.reset_timer()

    def handle_lock(self) -> None:
        logger.info("Screen locked; resetting usage timer.")
        self.reset_timer()

    def handle_unlock(self) -> None:
        logger.info("Screen unlocked; resetting usage timer.")
        self.reset_timer()

    # -- delivery ----------------------------------------------------------

    def _usage_event_locked(self) -> UsageChanged:
        return UsageChanged(
            usage_seconds=self._state.usage_seconds,
            is_monitoring=self._state.is_monitoring,
            is_break_active=self._state.is_break_active,
        )

    def _dispatch(self, events: list[SchedulerEvent]) -> None:
        if not events:
            return
        with self._lock:
            observers = list(self._observers)
        for event in events:
            for observer in observers:
                try:
                    observer(event)
                except Exception:
                    logger.exception("Observer %r failed handling %s.", observer, event.name)

    def _notify(self, message: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(message)
        except Exception:
            logger.exception("Notifier failed to deliver %r.", message)
