"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from ringside.config.logging import configure_logging, label_entity


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    ringside = logging.getLogger("ringside")
    ringside_level = ringside.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    ringside.setLevel(ringside_level)
    structlog.contextvars.clear_contextvars()


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("ringside").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("ringside").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("ringside.test")
        log.warning("json test", entity="wrestler:1")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["entity"] == "wrestler:1"
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "ringside.test"
        assert "timestamp" in parsed

    def test_stdlib_loggers_get_structured_fields(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("ringside.orchestration.transition").debug("Applied employ")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Applied employ"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "ringside.orchestration.transition"

    @pytest.mark.parametrize("name", ["sqlalchemy.engine", "pluggy"])
    def test_third_party_debug_is_suppressed(
        self, name: str, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger(name).info("chatter")
        assert capfd.readouterr().err == ""

    def test_idempotent_calls(self) -> None:
        """Repeated calls don't stack handlers."""
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        assert len(logging.getLogger().handlers) == 1

    def test_records_carry_the_roster_database(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True, database="/srv/wcw/roster.db")
        structlog.get_logger("ringside.test").warning("employed")
        assert json.loads(capfd.readouterr().err.strip())["roster"] == "/srv/wcw/roster.db"

    def test_reconfiguring_rebinds_the_database(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True, database="first.db")
        configure_logging(log_json=True)
        structlog.get_logger("ringside.test").warning("employed")
        assert "roster" not in json.loads(capfd.readouterr().err.strip())

    def test_transition_records_get_an_entity_label(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("ringside.telemetry").debug(
            "transition.span", transition="suspend", entity_type="wrestler", entity_id=3
        )
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["entity"] == "wrestler#3"
        assert "entity_type" not in parsed
        assert "entity_id" not in parsed


class TestLabelEntity:
    def test_type_without_id(self) -> None:
        assert label_entity(None, "info", {"entity_type": "stable"}) == {"entity": "stable"}

    def test_existing_label_wins(self) -> None:
        event = {"entity": "wrestler:1", "entity_type": "wrestler", "entity_id": 1}
        assert label_entity(None, "info", dict(event)) == event

    def test_unrelated_records_pass_through(self) -> None:
        assert label_entity(None, "info", {"event": "drain"}) == {"event": "drain"}
