"""Tests for EventBus: WAL persistence, failures, retries, and drain."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pluggy
import pytest
from sqlalchemy import select

from ringside.infrastructure.database.engine import init_database
from ringside.infrastructure.database.schema import event_wal
from ringside.plugins.event_bus import EventBus
from ringside.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("ringside")

MERGE = {"primary_id": 1, "secondary_id": 2}


class RecordingPlugin:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_stable_merge(self, primary_id: int, secondary_id: int) -> None:
        self.calls.append(
            ("post_stable_merge", {"primary_id": primary_id, "secondary_id": secondary_id})
        )


class FailingPlugin:
    """Always raises on post_stable_merge."""

    @hookimpl
    def post_stable_merge(self, primary_id: int, secondary_id: int) -> None:
        msg = "Plugin exploded!"
        raise RuntimeError(msg)


@pytest.fixture
def engine(tmp_path: Path):
    return init_database(tmp_path / "events.db")


@pytest.fixture
def recorder() -> RecordingPlugin:
    return RecordingPlugin()


@pytest.fixture
def bus(engine, recorder: RecordingPlugin) -> EventBus:
    pm = PluginManager()
    pm.register_plugin(recorder, name="recorder")
    return EventBus(engine, pm)


def _failing_bus(engine, max_retries: int) -> EventBus:
    pm = PluginManager()
    pm.register_plugin(FailingPlugin(), name="failer")
    return EventBus(engine, pm, max_retries=max_retries)


def _emit(bus: EventBus, engine, hook_name: str, payload: dict[str, Any]) -> int:
    """Record an event in its own transaction, then deliver it."""
    with engine.begin() as conn:
        event_id = bus.record(conn, hook_name, payload)
    bus.deliver(event_id, hook_name, payload)
    return event_id


def _row(engine, event_id: int):
    with engine.connect() as conn:
        return conn.execute(select(event_wal).where(event_wal.c.id == event_id)).fetchone()


class TestDelivery:
    def test_writes_wal_row(self, bus: EventBus, engine) -> None:
        event_id = _emit(bus, engine, "post_stable_merge", MERGE)
        row = _row(engine, event_id)
        assert row.hook_name == "post_stable_merge"
        assert row.status == "completed"
        assert row.retries == 0
        assert row.completed is not None

    def test_calls_hook(self, bus: EventBus, engine, recorder: RecordingPlugin) -> None:
        _emit(bus, engine, "post_stable_merge", MERGE)
        assert recorder.calls == [("post_stable_merge", MERGE)]

    def test_unknown_hook_completes(self, bus: EventBus, engine) -> None:
        event_id = _emit(bus, engine, "post_nothing", {})
        assert _row(engine, event_id).status == "completed"

    def test_record_joins_caller_transaction(self, bus: EventBus, engine) -> None:
        with pytest.raises(RuntimeError), engine.begin() as conn:
            bus.record(conn, "post_stable_merge", MERGE)
            msg = "abort"
            raise RuntimeError(msg)
        with engine.connect() as conn:
            assert conn.execute(select(event_wal)).fetchall() == []


class TestFailures:
    def test_failed_hook_records_error(self, engine) -> None:
        failing = _failing_bus(engine, max_retries=3)
        event_id = _emit(failing, engine, "post_stable_merge", MERGE)
        row = _row(engine, event_id)
        assert row.status == "failed"
        assert "Plugin exploded!" in row.error
        assert row.retries == 1

    def test_max_retries_dead_letters(self, engine) -> None:
        failing = _failing_bus(engine, max_retries=1)
        event_id = _emit(failing, engine, "post_stable_merge", MERGE)
        row = _row(engine, event_id)
        assert row.status == "dead_letter"
        assert row.completed is not None

    def test_drain_exhausts_retries(self, engine) -> None:
        failing = _failing_bus(engine, max_retries=2)
        event_id = _emit(failing, engine, "post_stable_merge", MERGE)
        assert failing.drain() == [
            {"id": event_id, "hook_name": "post_stable_merge", "status": "dead_letter"}
        ]
        assert failing.drain() == []


class TestDrain:
    def test_drain_redelivers_failed_events(
        self, engine, bus: EventBus, recorder: RecordingPlugin
    ) -> None:
        _emit(_failing_bus(engine, max_retries=3), engine, "post_stable_merge", MERGE)
        results = bus.drain()
        assert len(results) == 1
        assert results[0]["status"] == "completed"
        assert recorder.calls == [("post_stable_merge", MERGE)]

    def test_drain_picks_up_pending(self, engine, bus: EventBus) -> None:
        with engine.begin() as conn:
            event_id = bus.record(conn, "post_stable_merge", MERGE)
        assert _row(engine, event_id).status == "pending"
        assert [r["id"] for r in bus.drain()] == [event_id]

    def test_nothing_to_drain(self, bus: EventBus, engine) -> None:
        _emit(bus, engine, "post_stable_merge", MERGE)
        assert bus.drain() == []
