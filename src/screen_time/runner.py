"""Background driver that ticks the scheduler and watches for system interruptions."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from .config import SchedulerSettings
from .probes import LockScreenProbe
from .scheduler import UsageScheduler

logger = logging.getLogger(__name__)


class SystemEventWatcher:
    """Turns wall-clock gaps and lock-screen transitions into scheduler hooks.

    A gap larger than ``sleep_gap`` between two polls means the process was
    suspended, which is reported to the scheduler as a resume.
    """

    def __init__(
        self,
        scheduler: UsageScheduler,
        *,
        lock_probe: Optional[LockScreenProbe] = None,
        sleep_gap: timedelta = timedelta(minutes=2),
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._scheduler = scheduler
        self._lock_probe = lock_probe
        self._sleep_gap = sleep_gap
        self._clock = clock
        self._last_poll: Optional[datetime] = None
        self._locked: Optional[bool] = None

    def poll(self) -> None:
        now = self._clock()
        if self._last_poll is not None and now - self._last_poll > self._sleep_gap:
            logger.info(
                "Detected %s gap since last poll; assuming the system slept.",
                now - self._last_poll,
            )
            self._scheduler.handle_resume()
        self._last_poll = now
        self._poll_lock_state()

    def _poll_lock_state(self) -> None:
        if self._lock_probe is None:
            return
        locked = self._lock_probe.is_locked()
        if locked is None:
            return
        previous, self._locked = self._locked, locked
        if previous is None or previous == locked:
            return
        if locked:
            self._scheduler.handle_lock()
        else:
            self._scheduler.handle_unlock()


class SchedulerRunner:
    """Manage the 1 Hz scheduler driver in a background thread."""

    def __init__(
        self,
        scheduler: UsageScheduler,
        watcher: Optional[SystemEventWatcher] = None,
        settings: Optional[SchedulerSettings] = None,
    ) -> None:
        self._scheduler = scheduler
        self._watcher = watcher
        self._settings = settings or scheduler.settings
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self.run_until_stopped,
                args=(stop_event,),
                name="usage-scheduler",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info("Scheduler background thread started.")

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=10)
            logger.info("Scheduler background thread stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Tick the scheduler until the provided event is set."""
        interval = self._settings.tick_interval.total_seconds()
        logger.info("Starting scheduler loop; ticking every %.1fs", interval)
        while not stop_event.is_set():
            self.step()
            stop_event.wait(interval)

    def step(self) -> None:
        try:
            if self._watcher is not None:
                self._watcher.poll()
            self._scheduler.tick()
        except Exception:
            logger.exception("Scheduler iteration failed; continuing.")
