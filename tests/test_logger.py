"""JSONL event log: records, timed blocks, close and reopen."""

from __future__ import annotations

import json

import pytest

from routewise.modules.observability.logger import StructuredLogger, get_event_log


def _records(path):
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_log_appends_one_object_per_line(tmp_path):
    events = StructuredLogger(tmp_path, stream="trip", enabled=True)
    events.log("ROUTE_FALLBACK", {"reason": "deadline", "pending": 2})
    events.log("ROUTE_FALLBACK", {"reason": "deadline", "pending": 1})
    events.close()

    records = _records(tmp_path / "trip.jsonl")
    assert [r["payload"]["pending"] for r in records] == [2, 1]
    assert all(r["event_type"] == "ROUTE_FALLBACK" and r["timestamp"] for r in records)


def test_timed_block_records_duration(tmp_path):
    events = StructuredLogger(tmp_path, enabled=True)
    with events.timed("DayScheduler.schedule", days=2) as perf:
        perf["points"] = 5
    events.close()

    [record] = _records(events.path)
    assert record["event_type"] == "PERFORMANCE"
    assert record["payload"]["component"] == "DayScheduler.schedule"
    assert record["payload"]["days"] == 2
    assert record["payload"]["points"] == 5
    assert record["payload"]["duration_ms"] >= 0


def test_failed_block_records_nothing(tmp_path):
    events = StructuredLogger(tmp_path, enabled=True)
    with pytest.raises(RuntimeError):
        with events.timed("RoutePlanner.optimize_route"):
            raise RuntimeError("boom")
    assert not events.path.exists()


def test_close_then_log_reopens_in_append_mode(tmp_path):
    events = StructuredLogger(tmp_path, enabled=True)
    events.log("A", {})
    events.close()
    events.close()
    events.log("B", {})
    events.close()
    assert [r["event_type"] for r in _records(events.path)] == ["A", "B"]


def test_disabled_log_writes_nothing(tmp_path):
    events = StructuredLogger(tmp_path, enabled=False)
    events.log("A", {"x": 1})
    with events.timed("noop"):
        pass
    assert not events.path.exists()


def test_shared_instance_follows_config():
    events = get_event_log()
    assert events is get_event_log()
    assert events.enabled is False
