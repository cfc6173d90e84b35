"""Repository mixins: state-period and relationship-edge mutations.

Each per-type repository is composed from the mixins matching its entity's
capabilities. Every mutation joins the roster's ambient transaction, so a
repository call inside a pipeline commits or rolls back with it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from ringside.domain.capabilities import (
    Entity,
    HasTagTeams,
    HasWrestlers,
    StableMember,
)
from ringside.domain.types import EntityType, PeriodKind, Relation

if TYPE_CHECKING:
    from ringside.infrastructure.roster import Roster

logger = logging.getLogger(__name__)


class BaseRepository:
    """Holds the roster every mutation writes through."""

    entity_type: EntityType

    def __init__(self, roster: Roster) -> None:
        self._roster = roster

    @property
    def roster(self) -> Roster:
        return self._roster


class EmploymentRepository(BaseRepository):
    def create_employment(self, entity: Entity, date: datetime, notes: str | None = None) -> None:
        with self._roster.transaction() as txn:
            txn.insert_period(entity.id, PeriodKind.EMPLOYMENT, date, notes)

    def create_release(self, entity: Entity, date: datetime, notes: str | None = None) -> None:
        """End any suspension or injury, then the employment."""
        with self._roster.transaction() as txn:
            txn.end_open_periods(entity.id, PeriodKind.SUSPENSION, date)
            txn.end_open_periods(entity.id, PeriodKind.INJURY, date)
            txn.end_open_periods(entity.id, PeriodKind.EMPLOYMENT, date, notes)


class SuspensionRepository(BaseRepository):
    def create_suspension(self, entity: Entity, date: datetime, notes: str | None = None) -> None:
        with self._roster.transaction() as txn:
            txn.insert_period(entity.id, PeriodKind.SUSPENSION, date, notes)

    def create_reinstatement(
        self,
        entity: Entity,
        date: datetime,
        notes: str | None = None,
    ) -> None:
        """End the open suspension, or the open injury when not suspended."""
        with self._roster.transaction() as txn:
            if not txn.end_open_periods(entity.id, PeriodKind.SUSPENSION, date, notes):
                txn.end_open_periods(entity.id, PeriodKind.INJURY, date, notes)


class InjuryRepository(BaseRepository):
    def create_injury(self, entity: Entity, date: datetime, notes: str | None = None) -> None:
        with self._roster.transaction() as txn:
            txn.insert_period(entity.id, PeriodKind.INJURY, date, notes)

    def end_injury(self, entity: Entity, date: datetime, notes: str | None = None) -> None:
        with self._roster.transaction() as txn:
            txn.end_open_periods(entity.id, PeriodKind.INJURY, date, notes)


class RetirementRepository(BaseRepository):
    def create_retirement(self, entity: Entity, date: datetime, notes: str | None = None) -> None:
        """End suspension, injury, and employment, then open a retirement."""
        with self._roster.transaction() as txn:
            txn.end_open_periods(entity.id, PeriodKind.SUSPENSION, date)
            txn.end_open_periods(entity.id, PeriodKind.INJURY, date)
            txn.end_open_periods(entity.id, PeriodKind.EMPLOYMENT, date)
            txn.insert_period(entity.id, PeriodKind.RETIREMENT, date, notes)

    def end_retirement(self, entity: Entity, date: datetime) -> None:
        with self._roster.transaction() as txn:
            txn.end_open_periods(entity.id, PeriodKind.RETIREMENT, date)


class MembershipRepository(BaseRepository):
    """Manager assignments and the detach helpers used by retirement."""

    def assign_manager(self, entity: Entity, manager: Entity, date: datetime) -> bool:
        with self._roster.transaction() as txn:
            return txn.insert_edge(entity.id, manager.id, Relation.MANAGER, date)

    def unassign_manager(self, entity: Entity, manager: Entity, date: datetime) -> int:
        with self._roster.transaction() as txn:
            return txn.end_edges(
                date, relation=Relation.MANAGER, source_id=entity.id, target_id=manager.id
            )

    def remove_current_managers(self, entity: Entity, date: datetime) -> int:
        """End the manager assignments *entity* holds."""
        with self._roster.transaction() as txn:
            return txn.end_edges(
                date,
                relation=Relation.MANAGER,
                source_id=entity.id,
                target_type=EntityType.MANAGER,
            )

    def remove_from_current_tag_team(self, entity: Entity, date: datetime) -> int:
        with self._roster.transaction() as txn:
            return txn.end_edges(
                date,
                relation=Relation.WRESTLER,
                target_id=entity.id,
                source_type=EntityType.TAG_TEAM,
            )

    def remove_from_current_stable(self, entity: Entity, date: datetime) -> int:
        if not isinstance(entity, StableMember):
            return 0
        with self._roster.transaction() as txn:
            return txn.end_edges(
                date,
                relation=entity.membership_relation,
                target_id=entity.id,
                source_type=EntityType.STABLE,
            )

    def remove_current_wrestlers(self, entity: Entity, date: datetime) -> int:
        """End wrestler edges: members of a team/stable, or a manager's clients."""
        if not isinstance(entity, HasWrestlers):
            return 0
        with self._roster.transaction() as txn:
            if entity.entity_type is EntityType.MANAGER:
                return txn.end_edges(
                    date,
                    relation=Relation.MANAGER,
                    target_id=entity.id,
                    source_type=EntityType.WRESTLER,
                )
            return txn.end_edges(date, relation=Relation.WRESTLER, source_id=entity.id)

    def remove_current_tag_teams(self, entity: Entity, date: datetime) -> int:
        if not isinstance(entity, HasTagTeams):
            return 0
        with self._roster.transaction() as txn:
            if entity.entity_type is EntityType.MANAGER:
                return txn.end_edges(
                    date,
                    relation=Relation.MANAGER,
                    target_id=entity.id,
                    source_type=EntityType.TAG_TEAM,
                )
            return txn.end_edges(date, relation=Relation.TAG_TEAM, source_id=entity.id)
