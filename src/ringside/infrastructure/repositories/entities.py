"""Per-type repositories composed from the capability mixins."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from ringside.domain.capabilities import Entity, StableMember, TagTeamMember
from ringside.domain.errors import MembershipConflictError, ValidationError
from ringside.domain.types import EntityType, Relation
from ringside.infrastructure.repositories.base import (
    EmploymentRepository,
    InjuryRepository,
    MembershipRepository,
    RetirementRepository,
    SuspensionRepository,
)

logger = logging.getLogger(__name__)


class WrestlerRepository(
    EmploymentRepository,
    SuspensionRepository,
    InjuryRepository,
    RetirementRepository,
    MembershipRepository,
):
    entity_type = EntityType.WRESTLER


class ManagerRepository(
    EmploymentRepository,
    SuspensionRepository,
    InjuryRepository,
    RetirementRepository,
    MembershipRepository,
):
    entity_type = EntityType.MANAGER


class RefereeRepository(
    EmploymentRepository,
    SuspensionRepository,
    InjuryRepository,
    RetirementRepository,
):
    entity_type = EntityType.REFEREE


class TagTeamRepository(
    EmploymentRepository,
    SuspensionRepository,
    RetirementRepository,
    MembershipRepository,
):
    """Tag teams have no injury mutations."""

    entity_type = EntityType.TAG_TEAM

    def add_wrestler(self, tag_team: Entity, wrestler: Entity, date: datetime) -> None:
        """Add a partner. A wrestler belongs to at most one current tag team."""
        if isinstance(wrestler, TagTeamMember):
            current = wrestler.current_tag_team()
            if current is not None and current != tag_team:
                msg = f"Wrestler '{wrestler.name}' is already a member of '{current.name}'"
                raise MembershipConflictError(msg)
        with self._roster.transaction() as txn:
            txn.insert_edge(tag_team.id, wrestler.id, Relation.WRESTLER, date)

    def remove_wrestler(self, tag_team: Entity, wrestler: Entity, date: datetime) -> None:
        with self._roster.transaction() as txn:
            txn.end_edges(
                date, relation=Relation.WRESTLER, source_id=tag_team.id, target_id=wrestler.id
            )


class StableRepository(EmploymentRepository, RetirementRepository, MembershipRepository):
    """Stables add record creation, renames, and member edits."""

    entity_type = EntityType.STABLE

    def create(self, name: str) -> Entity:
        return self._roster.add(EntityType.STABLE, name)

    def update(self, stable: Entity, data: dict[str, Any]) -> Entity:
        """Apply rename-style edits. Only ``name`` is supported."""
        unknown = set(data) - {"name"}
        if unknown:
            msg = f"Unsupported stable fields: {', '.join(sorted(unknown))}"
            raise ValidationError(msg)
        if "name" in data:
            with self._roster.transaction() as txn:
                txn.rename_entity(stable.id, data["name"])
            stable.name = data["name"]
        return stable

    def add_wrestler(self, stable: Entity, wrestler: Entity, date: datetime) -> None:
        self._add_member(stable, wrestler, Relation.WRESTLER, date)

    def remove_wrestler(self, stable: Entity, wrestler: Entity, date: datetime) -> None:
        self._remove_member(stable, wrestler, Relation.WRESTLER, date)

    def add_tag_team(self, stable: Entity, tag_team: Entity, date: datetime) -> None:
        self._add_member(stable, tag_team, Relation.TAG_TEAM, date)

    def remove_tag_team(self, stable: Entity, tag_team: Entity, date: datetime) -> None:
        self._remove_member(stable, tag_team, Relation.TAG_TEAM, date)

    def add_manager(self, stable: Entity, manager: Entity, date: datetime) -> None:
        self._add_member(stable, manager, Relation.MANAGER, date)

    def remove_manager(self, stable: Entity, manager: Entity, date: datetime) -> None:
        self._remove_member(stable, manager, Relation.MANAGER, date)

    def _add_member(
        self,
        stable: Entity,
        member: Entity,
        relation: Relation,
        date: datetime,
    ) -> None:
        """A member belongs to at most one current stable."""
        if isinstance(member, StableMember):
            current = member.current_stable()
            if current is not None and current != stable:
                msg = (
                    f"{member.entity_type.label} '{member.name}' is already a member "
                    f"of '{current.name}'"
                )
                raise MembershipConflictError(msg)
        with self._roster.transaction() as txn:
            txn.insert_edge(stable.id, member.id, relation, date)
        logger.debug("Stable %s gained %s", stable.key, member.key)

    def _remove_member(
        self,
        stable: Entity,
        member: Entity,
        relation: Relation,
        date: datetime,
    ) -> None:
        with self._roster.transaction() as txn:
            txn.end_edges(date, relation=relation, source_id=stable.id, target_id=member.id)
