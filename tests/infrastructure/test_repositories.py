"""Tests for per-type repositories and the repository registry."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from ringside.domain.errors import ConfigurationError, MembershipConflictError, ValidationError
from ringside.domain.types import EntityType, PeriodKind
from ringside.infrastructure.repositories.entities import (
    StableRepository,
    TagTeamRepository,
    WrestlerRepository,
)
from ringside.infrastructure.repositories.registry import RepositoryRegistry
from ringside.infrastructure.roster import Roster

JUNE_1 = datetime(2024, 6, 1, tzinfo=UTC)


class TestRegistry:
    def test_default_registry_covers_every_type(self, roster: Roster) -> None:
        for entity_type in EntityType:
            assert entity_type in roster.registry
        assert isinstance(roster.registry.get("wrestler"), WrestlerRepository)
        assert isinstance(roster.registry.stables(), StableRepository)

    def test_missing_repository(self) -> None:
        with pytest.raises(ConfigurationError, match="No repository registered"):
            RepositoryRegistry().get(EntityType.WRESTLER)

    def test_unknown_type_name(self, roster: Roster) -> None:
        with pytest.raises(ConfigurationError):
            roster.registry.get("promoter")

    def test_mutation_lookup(self, make, roster: Roster) -> None:
        referee = make("referee", "Earl Hebner")
        method = roster.registry.mutation(referee, "create_injury")
        assert callable(method)

    def test_missing_mutation(self, make, roster: Roster) -> None:
        team = make("tag_team", "The Steiners")
        with pytest.raises(ConfigurationError, match="TagTeamRepository does not implement"):
            roster.registry.mutation(team, "create_injury")

    def test_register_replaces(self, roster: Roster) -> None:
        registry = RepositoryRegistry()
        replacement = TagTeamRepository(roster)
        registry.register("tag_team", replacement)
        assert registry.get(EntityType.TAG_TEAM) is replacement


class TestStatusMutations:
    def test_release_ends_suspension_and_injury(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Sting", employed=True)
        repository = roster.registry.for_entity(wrestler)
        repository.create_suspension(wrestler, JUNE_1)
        repository.create_release(wrestler, JUNE_1, notes="Contract ended")
        assert not wrestler.is_suspended()
        assert not wrestler.is_employed()
        employment = roster.periods(wrestler.key, PeriodKind.EMPLOYMENT)[-1]
        assert employment.ended_at == JUNE_1
        assert employment.notes == "Contract ended"

    def test_reinstatement_prefers_suspension(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Sting", employed=True)
        repository = roster.registry.for_entity(wrestler)
        with roster.transaction() as txn:
            txn.insert_period(wrestler.id, PeriodKind.INJURY, JUNE_1)
            txn.insert_period(wrestler.id, PeriodKind.SUSPENSION, JUNE_1)
        repository.create_reinstatement(wrestler, JUNE_1)
        assert not wrestler.is_suspended()
        assert wrestler.is_injured()
        repository.create_reinstatement(wrestler, JUNE_1)
        assert not wrestler.is_injured()

    def test_retirement_closes_everything(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Legend", employed=True)
        repository = roster.registry.for_entity(wrestler)
        repository.create_injury(wrestler, JUNE_1)
        repository.create_retirement(wrestler, JUNE_1, notes="Farewell tour")
        assert wrestler.is_retired()
        assert not wrestler.is_injured()
        assert not wrestler.is_employed()
        assert roster.open_period(wrestler.key, PeriodKind.RETIREMENT).notes == "Farewell tour"

    def test_end_retirement(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Legend", employed=True)
        repository = roster.registry.for_entity(wrestler)
        repository.create_retirement(wrestler, JUNE_1)
        repository.end_retirement(wrestler, JUNE_1)
        assert not wrestler.is_retired()


class TestMemberships:
    def test_stable_members(self, make, roster: Roster) -> None:
        stable = make("stable", "The Four Horsemen")
        ric = make("wrestler", "Ric Flair")
        jj = make("manager", "JJ Dillon")
        repository = roster.registry.stables()
        repository.add_wrestler(stable, ric, JUNE_1)
        repository.add_manager(stable, jj, JUNE_1)
        assert stable.current_wrestlers() == [ric]
        assert stable.current_managers() == [jj]
        assert ric.current_stable() == stable
        assert jj.current_stable() == stable

        repository.remove_wrestler(stable, ric, JUNE_1)
        assert stable.current_wrestlers() == []
        assert not ric.is_in_stable()

    def test_one_current_stable_per_member(self, make, roster: Roster) -> None:
        horsemen = make("stable", "The Four Horsemen")
        nwo = make("stable", "nWo")
        ric = make("wrestler", "Ric Flair")
        repository = roster.registry.stables()
        repository.add_wrestler(horsemen, ric, JUNE_1)
        with pytest.raises(MembershipConflictError, match="already a member of 'The Four"):
            repository.add_wrestler(nwo, ric, JUNE_1)

    def test_adding_twice_is_idempotent(self, make, roster: Roster) -> None:
        stable = make("stable", "nWo")
        hogan = make("wrestler", "Hollywood Hogan")
        repository = roster.registry.stables()
        repository.add_wrestler(stable, hogan, JUNE_1)
        repository.add_wrestler(stable, hogan, JUNE_1)
        assert stable.current_wrestlers() == [hogan]

    def test_one_current_tag_team_per_wrestler(self, make, roster: Roster) -> None:
        steiners = make("tag_team", "The Steiners")
        outsiders = make("tag_team", "The Outsiders")
        rick = make("wrestler", "Rick Steiner")
        repository = roster.registry.get("tag_team")
        repository.add_wrestler(steiners, rick, JUNE_1)
        with pytest.raises(MembershipConflictError):
            repository.add_wrestler(outsiders, rick, JUNE_1)
        assert rick.current_tag_team() == steiners

    def test_manager_assignments(self, make, roster: Roster) -> None:
        wrestler = make("wrestler", "Brock Lesnar")
        heyman = make("manager", "Paul Heyman")
        repository = roster.registry.for_entity(wrestler)
        assert repository.assign_manager(wrestler, heyman, JUNE_1)
        assert not repository.assign_manager(wrestler, heyman, JUNE_1)
        assert wrestler.current_managers() == [heyman]
        assert heyman.current_wrestlers() == [wrestler]
        assert repository.unassign_manager(wrestler, heyman, JUNE_1) == 1
        assert heyman.current_wrestlers() == []

    def test_stable_rename(self, make, roster: Roster) -> None:
        stable = make("stable", "nWo")
        repository = roster.registry.stables()
        repository.update(stable, {"name": "nWo Wolfpac"})
        assert stable.name == "nWo Wolfpac"
        assert roster.reload(stable).name == "nWo Wolfpac"

    def test_stable_update_rejects_unknown_fields(self, make, roster: Roster) -> None:
        stable = make("stable", "nWo")
        with pytest.raises(ValidationError, match="Unsupported stable fields: colors"):
            roster.registry.stables().update(stable, {"colors": "black and white"})

    def test_create_stable(self, roster: Roster) -> None:
        stable = roster.registry.stables().create("D-Generation X")
        assert stable.entity_type is EntityType.STABLE
        assert roster.get(stable.id).name == "D-Generation X"
