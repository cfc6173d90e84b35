"""Tests for capability mixins, entity classes, and status predicates."""

from datetime import UTC, datetime

import pytest

from ringside.domain.capabilities import (
    Capability,
    Employable,
    Injurable,
    Suspendable,
    capabilities_of,
    has_capability,
)
from ringside.domain.entities import ENTITY_CLASSES, Manager, Stable, TagTeam, Wrestler
from ringside.domain.errors import (
    CannotBeEmployedError,
    CannotBeInjuredError,
    CannotBeReinstatedError,
    CannotBeReleasedError,
    CannotBeRetiredError,
    CannotBeSuspendedError,
)
from ringside.domain.types import EntityType
from ringside.infrastructure.roster import Roster
from ringside.orchestration.transition import StatusTransitionPipeline

FUTURE = datetime(2025, 1, 1, tzinfo=UTC)


class TestCapabilitySets:
    def test_entity_classes_cover_every_type(self) -> None:
        assert set(ENTITY_CLASSES) == set(EntityType)

    def test_wrestler(self, make) -> None:
        assert set(capabilities_of(make("wrestler", "Sting"))) == {
            Capability.EMPLOYABLE,
            Capability.SUSPENDABLE,
            Capability.INJURABLE,
            Capability.RETIRABLE,
            Capability.HAS_MANAGERS,
            Capability.STABLE_MEMBER,
            Capability.TAG_TEAM_MEMBER,
        }

    def test_referee_has_no_relationships(self, make) -> None:
        assert set(capabilities_of(make("referee", "Earl Hebner"))) == {
            Capability.EMPLOYABLE,
            Capability.SUSPENDABLE,
            Capability.INJURABLE,
            Capability.RETIRABLE,
        }

    def test_tag_team_cannot_be_injured(self, make) -> None:
        team = make("tag_team", "The Steiners")
        assert isinstance(team, TagTeam)
        assert has_capability(team, Capability.SUSPENDABLE)
        assert not has_capability(team, Capability.INJURABLE)

    def test_stable_is_never_suspended_or_injured(self, make) -> None:
        stable = make("stable", "nWo")
        assert isinstance(stable, Stable)
        assert isinstance(stable, Employable)
        assert not isinstance(stable, Suspendable)
        assert not isinstance(stable, Injurable)
        assert not has_capability(stable, Capability.STABLE_MEMBER)

    def test_manager_manages_but_has_no_managers(self, make) -> None:
        manager = make("manager", "Paul Heyman")
        assert isinstance(manager, Manager)
        assert has_capability(manager, Capability.HAS_WRESTLERS)
        assert has_capability(manager, Capability.HAS_TAG_TEAMS)
        assert not has_capability(manager, Capability.HAS_MANAGERS)


class TestIdentity:
    def test_handles_compare_by_key(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Sting")
        again = roster.get(wrestler.id)
        assert again == wrestler
        assert hash(again) == hash(wrestler)
        assert again is not wrestler

    def test_repr(self, make) -> None:
        wrestler = make("wrestler", "Sting")
        assert repr(wrestler) == f"Wrestler(id={wrestler.id}, name='Sting')"

    def test_key_str(self, make) -> None:
        wrestler = make("wrestler", "Sting")
        assert str(wrestler.key) == f"wrestler:{wrestler.id}"


class TestEmploymentPredicates:
    def test_never_employed(self, make) -> None:
        wrestler = make("wrestler", "Rookie")
        assert isinstance(wrestler, Wrestler)
        assert wrestler.is_unemployed()
        assert wrestler.is_not_in_employment()
        assert not wrestler.is_released()

    def test_future_employment_is_not_employment(self, make) -> None:
        wrestler = make("wrestler", "Prospect", employed=True, date=FUTURE)
        assert wrestler.has_future_employment()
        assert not wrestler.is_employed()
        assert not wrestler.is_not_in_employment()
        assert not wrestler.is_unemployed()

    def test_released(self, make) -> None:
        wrestler = make("wrestler", "Journeyman", employed=True)
        StatusTransitionPipeline.release(wrestler).execute()
        assert wrestler.is_released()
        assert not wrestler.is_unemployed()

    def test_retired_is_not_released(self, make) -> None:
        wrestler = make("wrestler", "Legend", employed=True)
        StatusTransitionPipeline.retire(wrestler).execute()
        assert wrestler.is_retired()
        assert not wrestler.is_released()


class TestGuards:
    def test_cannot_employ_twice(self, make) -> None:
        wrestler = make("wrestler", "Sting", employed=True)
        with pytest.raises(CannotBeEmployedError, match="already employed"):
            wrestler.ensure_can_be_employed()

    def test_cannot_employ_with_future_employment(self, make) -> None:
        wrestler = make("wrestler", "Prospect", employed=True, date=FUTURE)
        with pytest.raises(CannotBeEmployedError, match="future employment"):
            wrestler.ensure_can_be_employed()

    def test_cannot_release_unemployed(self, make) -> None:
        with pytest.raises(CannotBeReleasedError, match="not currently employed"):
            make("wrestler", "Rookie").ensure_can_be_released()

    def test_cannot_suspend_unemployed(self, make) -> None:
        with pytest.raises(CannotBeSuspendedError, match="unemployed"):
            make("wrestler", "Rookie").ensure_can_be_suspended()

    def test_cannot_suspend_injured(self, make) -> None:
        wrestler = make("wrestler", "Hurt", employed=True)
        StatusTransitionPipeline.injure(wrestler).execute()
        with pytest.raises(CannotBeSuspendedError, match="injured"):
            wrestler.ensure_can_be_suspended()

    def test_cannot_injure_suspended(self, make) -> None:
        wrestler = make("wrestler", "Rulebreaker", employed=True)
        StatusTransitionPipeline.suspend(wrestler).execute()
        with pytest.raises(CannotBeInjuredError, match="suspended"):
            wrestler.ensure_can_be_injured()

    def test_cannot_reinstate_active(self, make) -> None:
        wrestler = make("wrestler", "Sting", employed=True)
        with pytest.raises(CannotBeReinstatedError, match="neither suspended nor injured"):
            wrestler.ensure_can_be_reinstated()

    def test_cannot_retire_unemployed(self, make) -> None:
        with pytest.raises(CannotBeRetiredError, match="unemployed"):
            make("wrestler", "Rookie").ensure_can_be_retired()

    def test_cannot_retire_twice(self, make) -> None:
        wrestler = make("wrestler", "Legend", employed=True)
        StatusTransitionPipeline.retire(wrestler).execute()
        with pytest.raises(CannotBeRetiredError, match="already retired"):
            wrestler.ensure_can_be_retired()


class TestTagTeamMemberRules:
    def _team_with(self, make, roster: Roster, *names: str):
        team = make("tag_team", "The Steiners", employed=True)
        repository = roster.registry.get("tag_team")
        wrestlers = []
        for name in names:
            wrestler = make("wrestler", name, employed=True)
            repository.add_wrestler(team, wrestler, roster.now())
            wrestlers.append(wrestler)
        return team, wrestlers

    def test_cannot_suspend_team_without_wrestlers(self, make, roster: Roster) -> None:
        team, _ = self._team_with(make, roster)
        with pytest.raises(CannotBeSuspendedError, match="has no current wrestlers"):
            team.ensure_can_be_suspended()

    def test_cannot_suspend_team_with_injured_partner(self, make, roster: Roster) -> None:
        team, (rick, _) = self._team_with(make, roster, "Rick", "Scott")
        StatusTransitionPipeline.injure(rick).execute()
        with pytest.raises(CannotBeSuspendedError, match="wrestler 'Rick' is injured"):
            team.ensure_can_be_suspended()

    def test_cannot_retire_team_with_suspended_partner(self, make, roster: Roster) -> None:
        team, (_, scott) = self._team_with(make, roster, "Rick", "Scott")
        StatusTransitionPipeline.suspend(scott).execute()
        with pytest.raises(CannotBeRetiredError, match="wrestler 'Scott' is suspended"):
            team.ensure_can_be_retired()

    def test_healthy_team_can_be_suspended(self, make, roster: Roster) -> None:
        team, _ = self._team_with(make, roster, "Rick", "Scott")
        team.ensure_can_be_suspended()
