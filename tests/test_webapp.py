from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from screen_time.webapp import EventFeed, create_app
from screen_time.models import TimerReset, UsageChanged


@pytest.fixture
def client(scheduler, clock):
    return TestClient(create_app(scheduler=scheduler, clock=clock))


def tick(scheduler, clock, count):
    for _ in range(count):
        clock.advance(1)
        scheduler.tick()


class TestStatusEndpoints:
    def test_status_reports_usage(self, client, scheduler, clock):
        tick(scheduler, clock, 90)
        payload = client.get("/api/status").json()
        assert payload["usage_seconds"] == 90
        assert payload["formatted_usage"] == "00:01:30"
        assert payload["phase"] == "monitoring"
        assert payload["runner_running"] is False

    def test_toggle_monitoring(self, client, scheduler):
        response = client.post("/api/monitoring/toggle")
        assert response.json() == {"is_monitoring": False}
        assert client.get("/api/status").json()["status"] == "Paused"

    def test_reset_timer(self, client, scheduler, clock):
        tick(scheduler, clock, 30)
        assert client.post("/api/timer/reset").json()["usage_seconds"] == 0


class TestSettingsEndpoints:
    def test_get_settings(self, client):
        assert client.get("/api/settings").json() == {"breakThresholdMinutes": 30}

    def test_update_threshold(self, client, scheduler, store):
        response = client.put("/api/settings", json={"breakThresholdMinutes": 45})
        assert response.status_code == 200
        assert scheduler.break_threshold_seconds == 2700
        assert store.saved == [45]

    def test_out_of_range_threshold_is_rejected(self, client, scheduler):
        response = client.put("/api/settings", json={"breakThresholdMinutes": 10})
        assert response.status_code == 400
        assert scheduler.break_threshold_seconds == 1800

    @pytest.mark.parametrize("minutes", ["45", 45.0, 45.5, True])
    def test_non_integer_threshold_is_rejected(self, client, scheduler, store, minutes):
        response = client.put("/api/settings", json={"breakThresholdMinutes": minutes})
        assert response.status_code == 422
        assert scheduler.break_threshold_seconds == 1800
        assert store.saved == []

    def test_unknown_field_is_rejected(self, client):
        response = client.put(
            "/api/settings", json={"breakThresholdMinutes": 45, "autoStart": False}
        )
        assert response.status_code == 422


class TestBreakEndpoints:
    def test_no_break_countdown_initially(self, client):
        assert client.get("/api/break").json() == {"break": None}

    def test_start_break_begins_countdown(self, client, scheduler, clock):
        tick(scheduler, clock, 1800)
        started = client.post("/api/break/start").json()["break"]
        assert started["remaining_seconds"] == 300
        assert scheduler.usage_seconds == 0
        assert not scheduler.is_break_active

        clock.advance(120)
        countdown = client.get("/api/break").json()["break"]
        assert countdown["remaining"] == "03:00"
        assert countdown["complete"] is False

    def test_snooze_break(self, client, scheduler, clock):
        tick(scheduler, clock, 1800)
        payload = client.post("/api/break/snooze").json()
        assert payload["usage_seconds"] == 1500
        assert payload["is_break_active"] is False


class TestEventFeed:
    def test_events_are_sequenced(self, client, scheduler, clock):
        tick(scheduler, clock, 2)
        scheduler.reset_timer()
        payload = client.get("/api/events").json()
        assert payload["latest"] == 3
        assert [event["type"] for event in payload["events"]] == [
            "usage-changed",
            "usage-changed",
            "timer-reset",
        ]
        assert payload["events"][1]["usage_seconds"] == 2

    def test_events_after_sequence(self, client, scheduler, clock):
        tick(scheduler, clock, 3)
        payload = client.get("/api/events", params={"after": 2}).json()
        assert [event["seq"] for event in payload["events"]] == [3]

    def test_feed_is_bounded(self):
        feed = EventFeed(maxlen=2)
        feed(UsageChanged(usage_seconds=1, is_monitoring=True, is_break_active=False))
        feed(UsageChanged(usage_seconds=2, is_monitoring=True, is_break_active=False))
        feed(TimerReset())
        assert [event["seq"] for event in feed.since(0)] == [2, 3]
        assert feed.latest == 3
