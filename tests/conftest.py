"""Shared pytest fixtures for ringside tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import UTC, datetime
from pathlib import Path

import pluggy
import pytest
from click.testing import CliRunner

from ringside.config.settings import RingsideSettings
from ringside.domain.capabilities import Entity
from ringside.domain.dates import FixedClock
from ringside.domain.types import EntityType
from ringside.infrastructure.roster import Roster
from ringside.orchestration.transition import StatusTransitionPipeline

NOW = datetime(2024, 6, 1, tzinfo=UTC)
EARLIER = datetime(2024, 1, 1, tzinfo=UTC)

EntityFactory = Callable[..., Entity]

hookimpl = pluggy.HookimplMarker("ringside")


class TransitionLog:
    """Records delivered ``post_transition`` events as ``(transition, entity_id)``."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, int]] = []

    @hookimpl
    def post_transition(
        self, entity_type: str, entity_id: int, transition: str, effective_date: str
    ) -> None:
        self.calls.append((transition, entity_id))

    def ids(self, transition: str) -> list[int]:
        return [entity_id for name, entity_id in self.calls if name == transition]


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-06-01 UTC."""
    return FixedClock(NOW)


@pytest.fixture
def settings(tmp_path: Path) -> RingsideSettings:
    """Settings for an isolated roster database under *tmp_path*.

    Entry-point plugin discovery is off; the built-in audit plugin stays on.
    """
    return RingsideSettings(
        root=tmp_path,
        database={"path": str(tmp_path / "roster.db")},
        plugins={"enabled": False},
    )


@pytest.fixture
def roster(settings: RingsideSettings, clock: FixedClock) -> Iterator[Roster]:
    """Fully initialized roster on a temp database with a fixed clock."""
    r = Roster(settings, clock=clock)
    try:
        yield r
    finally:
        r.close()


@pytest.fixture
def make(roster: Roster) -> EntityFactory:
    """Factory: ``make("wrestler", "Name", employed=True)``.

    Employment is recorded with a bare pipeline (no cascades) on EARLIER
    unless *date* is given.
    """

    def _make(
        entity_type: EntityType | str,
        name: str,
        *,
        employed: bool = False,
        date: datetime | None = None,
    ) -> Entity:
        entity = roster.add(entity_type, name)
        if employed:
            StatusTransitionPipeline.employ(entity, date or EARLIER).execute()
        return entity

    return _make


@pytest.fixture
def transition_log(roster: Roster) -> TransitionLog:
    """A :class:`TransitionLog` registered on *roster*'s event bus."""
    assert roster.event_bus is not None
    log = TransitionLog()
    roster.event_bus.plugin_manager.register_plugin(log, name="transition-log")
    return log


@pytest.fixture
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI tests from *tmp_path* with no inherited config file."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RINGSIDE_CONFIG", raising=False)
