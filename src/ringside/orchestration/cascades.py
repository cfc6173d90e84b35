"""Cascade strategy library.

Each factory returns a closure ``(entity, date, transition, chain)`` that
acts only on its own transition, checks the entity's capabilities before
touching a relationship, and spawns further transition pipelines that share
the caller's :class:`CascadeChain`. No strategy mutates the entity it is
given.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, cast

from ringside.domain.capabilities import (
    Employable,
    Entity,
    HasManagers,
    HasTagTeams,
    HasWrestlers,
    Injurable,
    StableMember,
    Suspendable,
    TagTeamMember,
)
from ringside.domain.errors import ConfigurationError
from ringside.domain.types import EntityType, Transition
from ringside.orchestration.transition import (
    CascadeChain,
    CascadeStrategy,
    StatusTransitionPipeline,
)

if TYPE_CHECKING:
    from ringside.infrastructure.roster import Roster

logger = logging.getLogger(__name__)

ALL_MEMBERS_SCOPE = "employment.all_members"

# relation name -> (capability, accessor)
RELATION_ACCESSORS: dict[str, tuple[type[Entity], str]] = {
    "managers": (HasManagers, "current_managers"),
    "wrestlers": (HasWrestlers, "current_wrestlers"),
    "tag_teams": (HasTagTeams, "current_tag_teams"),
}


def related(entity: Entity, relation: str) -> list[Entity]:
    """Current members of *relation*, or [] when the entity lacks the capability."""
    capability, accessor = RELATION_ACCESSORS[relation]
    if not isinstance(entity, capability):
        return []
    return getattr(entity, accessor)()


def _not_in_employment(members: Iterable[Entity]) -> list[Entity]:
    return [m for m in members if isinstance(m, Employable) and m.is_not_in_employment()]


def _employed_not_suspended(members: Iterable[Entity]) -> list[Entity]:
    return [
        m
        for m in members
        if isinstance(m, Suspendable) and m.is_employed() and not m.is_suspended()
    ]


def _suspended(members: Iterable[Entity]) -> list[Entity]:
    return [m for m in members if isinstance(m, Suspendable) and m.is_suspended()]


def _normalize_relation(name: str) -> str:
    relation = name.removeprefix("current_")
    if relation not in RELATION_ACCESSORS:
        msg = f"Unknown relationship '{name}' (expected one of {sorted(RELATION_ACCESSORS)})"
        raise ConfigurationError(msg)
    return relation


class EmploymentCascadeStrategy:
    """Cascades that employ an entity's members along with it."""

    @staticmethod
    def managers() -> CascadeStrategy:
        """Employ every current manager not in employment."""

        def cascade(
            entity: Entity,
            date: datetime,
            transition: Transition,
            chain: CascadeChain,
        ) -> None:
            if transition is not Transition.EMPLOY:
                return
            for manager in _not_in_employment(related(entity, "managers")):
                StatusTransitionPipeline.employ(manager, date, chain=chain).execute()

        return cascade

    @staticmethod
    def wrestlers() -> CascadeStrategy:
        """Employ every current wrestler not in employment."""

        def cascade(
            entity: Entity,
            date: datetime,
            transition: Transition,
            chain: CascadeChain,
        ) -> None:
            if transition is not Transition.EMPLOY:
                return
            for wrestler in _not_in_employment(related(entity, "wrestlers")):
                StatusTransitionPipeline.employ(wrestler, date, chain=chain).execute()

        return cascade

    @staticmethod
    def tag_teams() -> CascadeStrategy:
        """Employ current tag teams, each with its own wrestlers and managers."""

        def cascade(
            entity: Entity,
            date: datetime,
            transition: Transition,
            chain: CascadeChain,
        ) -> None:
            if transition is not Transition.EMPLOY:
                return
            for tag_team in _not_in_employment(related(entity, "tag_teams")):
                (
                    StatusTransitionPipeline.employ(tag_team, date, chain=chain)
                    .with_cascade(EmploymentCascadeStrategy.wrestlers())
                    .with_cascade(EmploymentCascadeStrategy.managers())
                    .execute()
                )

        return cascade

    @staticmethod
    def all_members() -> CascadeStrategy:
        """Employ wrestlers, then tag teams, then managers.

        Each distinct entity is visited at most once per top-level call, even
        when members reference the group (or each other) cyclically.
        """

        def cascade(
            entity: Entity,
            date: datetime,
            transition: Transition,
            chain: CascadeChain,
        ) -> None:
            if transition is not Transition.EMPLOY:
                return
            with chain.scope(ALL_MEMBERS_SCOPE) as visited:
                if not chain.claim(ALL_MEMBERS_SCOPE, entity.key):
                    return

                for relation in ("wrestlers", "tag_teams"):
                    for member in _not_in_employment(related(entity, relation)):
                        if member.key in visited:
                            continue
                        (
                            StatusTransitionPipeline.employ(member, date, chain=chain)
                            .with_cascade(cascade)
                            .execute()
                        )

                for manager in _not_in_employment(related(entity, "managers")):
                    if not chain.claim(ALL_MEMBERS_SCOPE, manager.key):
                        continue
                    StatusTransitionPipeline.employ(manager, date, chain=chain).execute()

        return cascade

    @staticmethod
    def custom(relations: Sequence[str]) -> CascadeStrategy:
        """Employ not-yet-employed members over the named relationships.

        Names are ``managers``, ``wrestlers``, ``tag_teams`` (a ``current_``
        prefix is accepted).
        """
        names = [_normalize_relation(name) for name in relations]

        def cascade(
            entity: Entity,
            date: datetime,
            transition: Transition,
            chain: CascadeChain,
        ) -> None:
            if transition is not Transition.EMPLOY:
                return
            for name in names:
                for member in _not_in_employment(related(entity, name)):
                    StatusTransitionPipeline.employ(member, date, chain=chain).execute()

        return cascade


class RetirementCascadeStrategy:
    """Cascades that detach a retiring entity from its relationships."""

    @staticmethod
    def detach() -> CascadeStrategy:
        """Leave stable and tag team, and end manager/managed/member edges."""

        def cascade(
            entity: Entity,
            date: datetime,
            transition: Transition,
            chain: CascadeChain,
        ) -> None:
            if transition is not Transition.RETIRE:
                return
            repository = cast("Roster", entity.state).registry.for_entity(entity)

            if isinstance(entity, StableMember) and entity.is_in_stable():
                repository.remove_from_current_stable(entity, date)
            if isinstance(entity, TagTeamMember) and entity.is_in_tag_team():
                repository.remove_from_current_tag_team(entity, date)
            if isinstance(entity, HasManagers) and entity.current_managers():
                repository.remove_current_managers(entity, date)
            if entity.entity_type in (EntityType.MANAGER, EntityType.STABLE):
                if isinstance(entity, HasWrestlers) and entity.current_wrestlers():
                    repository.remove_current_wrestlers(entity, date)
            if isinstance(entity, HasTagTeams) and entity.current_tag_teams():
                repository.remove_current_tag_teams(entity, date)

        return cascade


class SuspensionCascadeStrategy:
    """Cascades that suspend an entity's members with it."""

    @staticmethod
    def members() -> CascadeStrategy:
        """Suspend employed, unsuspended managers (and a tag team's wrestlers)."""

        def cascade(
            entity: Entity,
            date: datetime,
            transition: Transition,
            chain: CascadeChain,
        ) -> None:
            if transition is not Transition.SUSPEND:
                return
            if entity.entity_type is EntityType.TAG_TEAM:
                for wrestler in _employed_not_suspended(related(entity, "wrestlers")):
                    StatusTransitionPipeline.suspend(wrestler, date, chain=chain).execute()
            for manager in _employed_not_suspended(related(entity, "managers")):
                if isinstance(manager, Injurable) and manager.is_injured():
                    continue
                StatusTransitionPipeline.suspend(manager, date, chain=chain).execute()

        return cascade


class ReinstatementCascadeStrategy:
    """Cascades that reinstate an entity's suspended members with it."""

    @staticmethod
    def members() -> CascadeStrategy:
        """Reinstate suspended partners, and managers with no other suspended clients."""

        def cascade(
            entity: Entity,
            date: datetime,
            transition: Transition,
            chain: CascadeChain,
        ) -> None:
            if transition is not Transition.REINSTATE:
                return
            if entity.entity_type is EntityType.TAG_TEAM:
                for wrestler in _suspended(related(entity, "wrestlers")):
                    StatusTransitionPipeline.reinstate(wrestler, date, chain=chain).execute()
            for manager in _suspended(related(entity, "managers")):
                if ReinstatementCascadeStrategy.should_reinstate_manager(manager, entity):
                    StatusTransitionPipeline.reinstate(manager, date, chain=chain).execute()

        return cascade

    @staticmethod
    def should_reinstate_manager(manager: Entity, reinstated: Entity) -> bool:
        """True unless the manager has another client that is still suspended."""
        for relation in ("wrestlers", "tag_teams"):
            for client in _suspended(related(manager, relation)):
                if client != reinstated:
                    return False
        return True
