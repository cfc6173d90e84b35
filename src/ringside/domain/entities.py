"""Roster entity classes.

Each class declares its capability set through the mixins it inherits.
Tag teams additionally constrain suspension and retirement on the state
of their current partners.
"""

from __future__ import annotations

from typing import ClassVar

from ringside.domain.capabilities import (
    Employable,
    Entity,
    HasManagers,
    HasTagTeams,
    HasWrestlers,
    Injurable,
    Retirable,
    StableMember,
    StateSource,
    Suspendable,
    TagTeamMember,
)
from ringside.domain.errors import CannotBeRetiredError, CannotBeSuspendedError
from ringside.domain.types import EntityKey, EntityType, Relation

__all__ = [
    "ENTITY_CLASSES",
    "Entity",
    "EntityKey",
    "Manager",
    "Referee",
    "Stable",
    "TagTeam",
    "Wrestler",
    "build_entity",
]


class Wrestler(
    Suspendable,
    Injurable,
    Retirable,
    HasManagers,
    StableMember,
    TagTeamMember,
):
    entity_type: ClassVar[EntityType] = EntityType.WRESTLER
    membership_relation: ClassVar[Relation] = Relation.WRESTLER


class Manager(Suspendable, Injurable, Retirable, HasWrestlers, HasTagTeams, StableMember):
    """Manages wrestlers and tag teams.

    ``current_wrestlers`` and ``current_tag_teams`` are the entities this
    manager is assigned to, read from the reverse side of their manager edges.
    """

    entity_type: ClassVar[EntityType] = EntityType.MANAGER
    membership_relation: ClassVar[Relation] = Relation.MANAGER

    def current_wrestlers(self) -> list[Entity]:
        return self._state.containers_of(self.key, Relation.MANAGER, EntityType.WRESTLER)

    def current_tag_teams(self) -> list[Entity]:
        return self._state.containers_of(self.key, Relation.MANAGER, EntityType.TAG_TEAM)


class Referee(Suspendable, Injurable, Retirable):
    entity_type: ClassVar[EntityType] = EntityType.REFEREE


class TagTeam(Suspendable, Retirable, HasManagers, HasWrestlers, StableMember):
    """Two or more wrestlers competing as a unit. Tag teams cannot be injured."""

    entity_type: ClassVar[EntityType] = EntityType.TAG_TEAM
    membership_relation: ClassVar[Relation] = Relation.TAG_TEAM

    def _validate_suspension_members(self) -> None:
        wrestlers = self.current_wrestlers()
        if not wrestlers:
            raise CannotBeSuspendedError.because("has no current wrestlers", self)
        for wrestler in wrestlers:
            if isinstance(wrestler, Suspendable) and wrestler.is_suspended():
                raise CannotBeSuspendedError.because(
                    f"wrestler '{wrestler.name}' is already suspended", self
                )
            if isinstance(wrestler, Injurable) and wrestler.is_injured():
                raise CannotBeSuspendedError.because(f"wrestler '{wrestler.name}' is injured", self)

    def _validate_retirement_members(self) -> None:
        wrestlers = self.current_wrestlers()
        if not wrestlers:
            raise CannotBeRetiredError.because("has no current wrestlers", self)
        for wrestler in wrestlers:
            if isinstance(wrestler, Injurable) and wrestler.is_injured():
                raise CannotBeRetiredError.because(f"wrestler '{wrestler.name}' is injured", self)
            if isinstance(wrestler, Suspendable) and wrestler.is_suspended():
                raise CannotBeRetiredError.because(f"wrestler '{wrestler.name}' is suspended", self)


class Stable(Employable, Retirable, HasManagers, HasWrestlers, HasTagTeams):
    """A group of wrestlers, tag teams, and managers.

    Stables are never suspended or injured themselves.
    """

    entity_type: ClassVar[EntityType] = EntityType.STABLE

    def member_count(self) -> int:
        return (
            len(self.current_wrestlers())
            + len(self.current_tag_teams())
            + len(self.current_managers())
        )


ENTITY_CLASSES: dict[EntityType, type[Entity]] = {
    EntityType.WRESTLER: Wrestler,
    EntityType.MANAGER: Manager,
    EntityType.REFEREE: Referee,
    EntityType.TAG_TEAM: TagTeam,
    EntityType.STABLE: Stable,
}


def build_entity(state: StateSource, entity_type: str, entity_id: int, name: str) -> Entity:
    """Instantiate the entity class for *entity_type*."""
    cls = ENTITY_CLASSES[EntityType(entity_type)]
    return cls(state, entity_id, name)
