"""Tests for metrics.py: counters fed by the event bus."""

from events import bus, E
from metrics import RuntimeMetrics, runtime_metrics


def test_bus_events_update_counters():
    before = runtime_metrics.snapshot()

    bus.emit(E.REMINDER_CREATED, reminder=None)
    bus.emit(E.REMINDER_RATE_LIMITED, requester_id="U1", target_id="N1")
    bus.emit(E.REMINDER_DUPLICATE, requester_id="U1", target_id="N1")
    bus.emit(E.REMINDER_FIRED, reminder_id=1)

    after = runtime_metrics.snapshot()
    assert after["reminder_created_count"] == before["reminder_created_count"] + 1
    assert after["reminder_rate_limited_count"] == before["reminder_rate_limited_count"] + 1
    assert after["reminder_duplicate_count"] == before["reminder_duplicate_count"] + 1
    assert after["reminder_fired_count"] == before["reminder_fired_count"] + 1
    assert after["last_fired_at_utc"] is not None


def test_snapshot_of_fresh_metrics():
    snapshot = RuntimeMetrics().snapshot()

    assert snapshot["msg_in_count"] == 0
    assert snapshot["last_fired_at_epoch"] is None
    assert snapshot["last_fired_at_utc"] is None
