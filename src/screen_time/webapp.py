"""FastAPI application exposing the scheduler to a local UI."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, StrictInt

from .breaks import BreakCountdown
from .errors import InvalidConfiguration
from .models import SchedulerEvent
from .reporting import describe_state
from .runner import SchedulerRunner
from .scheduler import UsageScheduler

logger = logging.getLogger(__name__)


class EventFeed:
    """Buffers scheduler events with increasing sequence numbers."""

    def __init__(self, maxlen: int = 500) -> None:
        self._lock = threading.Lock()
        self._events: Deque[tuple[int, SchedulerEvent]] = deque(maxlen=maxlen)
        self._seq = 0

    def __call__(self, event: SchedulerEvent) -> None:
        with self._lock:
            self._seq += 1
            self._events.append((self._seq, event))

    @property
    def latest(self) -> int:
        with self._lock:
            return self._seq

    def since(self, after: int) -> list[Dict[str, Any]]:
        with self._lock:
            return [
                {"seq": seq, **event.to_dict()}
                for seq, event in self._events
                if seq > after
            ]


class SettingsPayload(BaseModel):
    break_threshold_minutes: StrictInt = Field(alias="breakThresholdMinutes")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def create_app(
    *,
    scheduler: UsageScheduler,
    runner: Optional[SchedulerRunner] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> FastAPI:
    """Instantiate the FastAPI application around an existing scheduler."""
    feed = EventFeed()
    scheduler.subscribe(feed)

    app = FastAPI(title="Screen Time Monitor", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.scheduler = scheduler
    app.state.runner = runner
    app.state.feed = feed
    app.state.break_countdown = None

    @app.on_event("startup")
    async def _startup() -> None:
        if runner is not None:
            runner.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        if runner is not None:
            runner.stop()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        state = request.app.state.scheduler.snapshot()
        active_runner = request.app.state.runner
        return {
            **describe_state(state),
            "runner_running": bool(active_runner and active_runner.is_running()),
        }

    @app.post("/api/monitoring/toggle")
    def toggle_monitoring(request: Request) -> Dict[str, Any]:
        monitoring = request.app.state.scheduler.toggle_monitoring()
        return {"is_monitoring": monitoring}

    @app.post("/api/timer/reset")
    def reset_timer(request: Request) -> Dict[str, Any]:
        request.app.state.scheduler.reset_timer()
        return describe_state(request.app.state.scheduler.snapshot())

    @app.post("/api/break/start")
    def start_break(request: Request) -> Dict[str, Any]:
        active_scheduler: UsageScheduler = request.app.state.scheduler
        active_scheduler.start_break()
        countdown = BreakCountdown(
            started_at=clock(), duration=active_scheduler.settings.break_duration
        )
        request.app.state.break_countdown = countdown
        return {"break": countdown.to_dict(clock())}

    @app.post("/api/break/snooze")
    def snooze_break(request: Request) -> Dict[str, Any]:
        request.app.state.scheduler.snooze_break()
        request.app.state.break_countdown = None
        return describe_state(request.app.state.scheduler.snapshot())

    @app.get("/api/break")
    def break_status(request: Request) -> Dict[str, Any]:
        countdown: Optional[BreakCountdown] = request.app.state.break_countdown
        if countdown is None:
            return {"break": None}
        return {"break": countdown.to_dict(clock())}

    @app.get("/api/settings")
    def get_settings(request: Request) -> Dict[str, Any]:
        threshold = request.app.state.scheduler.break_threshold_seconds
        return {"breakThresholdMinutes": threshold // 60}

    @app.put("/api/settings")
    def update_settings(payload: SettingsPayload, request: Request) -> Dict[str, Any]:
        try:
            request.app.state.scheduler.set_break_threshold(payload.break_threshold_minutes)
        except InvalidConfiguration as exc:
            logger.warning("Rejected break threshold update: %s", exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"breakThresholdMinutes": payload.break_threshold_minutes}

    @app.get("/api/events")
    def events(
        request: Request,
        after: int = Query(
            default=0,
            ge=0,
            description="Return events with a sequence number greater than this.",
        ),
    ) -> Dict[str, Any]:
        event_feed: EventFeed = request.app.state.feed
        return {"latest": event_feed.latest, "events": event_feed.since(after)}

    return app
