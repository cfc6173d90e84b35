"""Unified lifecycle actions with type-aware default cascades.

These are the entry points services and scheduled jobs call: each wraps
one :class:`StatusTransitionPipeline` and attaches the cascades that keep
an entity's relationships consistent for its type. The ``*_many`` forms
loop over entities in order; each entity runs as its own top-level call
unless an ambient transaction is already open.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from ringside.domain.capabilities import Entity, Injurable
from ringside.domain.errors import CannotBeReinstatedError, ConfigurationError
from ringside.domain.types import EntityType, Transition
from ringside.orchestration.cascades import (
    RELATION_ACCESSORS,
    EmploymentCascadeStrategy,
    ReinstatementCascadeStrategy,
    RetirementCascadeStrategy,
    SuspensionCascadeStrategy,
    related,
)
from ringside.orchestration.transition import (
    CascadeStrategy,
    DateLike,
    StatusTransitionPipeline,
)

if TYPE_CHECKING:
    from ringside.orchestration.transition import CascadeChain

logger = logging.getLogger(__name__)

GROUP_MEMBER_TYPES = ("wrestlers", "managers", "tag_teams")


def default_cascades(entity: Entity, transition: Transition) -> list[CascadeStrategy]:
    """The cascades a unified action attaches for *entity*'s type."""
    etype = entity.entity_type
    if transition is Transition.EMPLOY:
        if etype is EntityType.WRESTLER:
            return [EmploymentCascadeStrategy.managers()]
        if etype is EntityType.TAG_TEAM:
            return [EmploymentCascadeStrategy.wrestlers(), EmploymentCascadeStrategy.managers()]
        if etype is EntityType.STABLE:
            return [EmploymentCascadeStrategy.all_members()]
        return []
    if transition is Transition.SUSPEND:
        if etype in (EntityType.WRESTLER, EntityType.TAG_TEAM):
            return [SuspensionCascadeStrategy.members()]
        return []
    if transition is Transition.REINSTATE:
        if etype in (EntityType.WRESTLER, EntityType.TAG_TEAM):
            return [ReinstatementCascadeStrategy.members()]
        return []
    if transition is Transition.RETIRE:
        return [RetirementCascadeStrategy.detach()]
    return []


class UnifiedActions:
    """Single-entity and batch lifecycle actions."""

    @staticmethod
    def run(
        entity: Entity,
        transition: Transition | str,
        date: DateLike = None,
        notes: str | None = None,
        *,
        cascades: Sequence[CascadeStrategy] | None = None,
        chain: CascadeChain | None = None,
    ) -> None:
        """Apply *transition* with the default cascades (or *cascades*)."""
        pipeline = StatusTransitionPipeline(entity, transition, date, chain=chain)
        if notes:
            pipeline.with_notes(notes)
        strategies = (
            default_cascades(entity, pipeline.transition) if cascades is None else cascades
        )
        for cascade in strategies:
            pipeline.with_cascade(cascade)
        pipeline.execute()

    @classmethod
    def employ(cls, entity: Entity, date: DateLike = None, notes: str | None = None) -> None:
        cls.run(entity, Transition.EMPLOY, date, notes)

    @classmethod
    def suspend(cls, entity: Entity, date: DateLike = None, notes: str | None = None) -> None:
        cls.run(entity, Transition.SUSPEND, date, notes)

    @classmethod
    def release(cls, entity: Entity, date: DateLike = None, notes: str | None = None) -> None:
        cls.run(entity, Transition.RELEASE, date, notes)

    @classmethod
    def retire(cls, entity: Entity, date: DateLike = None, notes: str | None = None) -> None:
        cls.run(entity, Transition.RETIRE, date, notes)

    @classmethod
    def injure(cls, entity: Entity, date: DateLike = None, notes: str | None = None) -> None:
        cls.run(entity, Transition.INJURE, date, notes)

    @classmethod
    def reinstate(cls, entity: Entity, date: DateLike = None, notes: str | None = None) -> None:
        cls.run(entity, Transition.REINSTATE, date, notes)

    @classmethod
    def heal(cls, entity: Entity, date: DateLike = None, notes: str | None = None) -> None:
        """Clear an injury. Unlike :meth:`reinstate` this never ends a suspension."""

        def require_injury(target: Entity, _transition: Transition) -> None:
            if not isinstance(target, Injurable):
                raise CannotBeReinstatedError.unsupported(target)
            if not target.is_injured():
                raise CannotBeReinstatedError.because("not injured", target)

        pipeline = (
            StatusTransitionPipeline.reinstate(entity, date)
            .with_validation(require_injury)
            .with_mutation("end_injury")
        )
        if notes:
            pipeline.with_notes(notes)
        pipeline.execute()

    # --- batch entry points ---

    @classmethod
    def employ_many(
        cls, entities: Iterable[Entity], date: DateLike = None, notes: str | None = None
    ) -> None:
        for entity in entities:
            cls.employ(entity, date, notes)

    @classmethod
    def suspend_many(
        cls, entities: Iterable[Entity], date: DateLike = None, notes: str | None = None
    ) -> None:
        for entity in entities:
            cls.suspend(entity, date, notes)

    @classmethod
    def release_many(
        cls, entities: Iterable[Entity], date: DateLike = None, notes: str | None = None
    ) -> None:
        for entity in entities:
            cls.release(entity, date, notes)

    @classmethod
    def retire_many(
        cls, entities: Iterable[Entity], date: DateLike = None, notes: str | None = None
    ) -> None:
        for entity in entities:
            cls.retire(entity, date, notes)

    @classmethod
    def injure_many(
        cls, entities: Iterable[Entity], date: DateLike = None, notes: str | None = None
    ) -> None:
        for entity in entities:
            cls.injure(entity, date, notes)

    @classmethod
    def reinstate_many(
        cls, entities: Iterable[Entity], date: DateLike = None, notes: str | None = None
    ) -> None:
        for entity in entities:
            cls.reinstate(entity, date, notes)

    # --- group entry points ---

    @classmethod
    def suspend_members_by_type(
        cls,
        entity: Entity,
        member_types: Iterable[str] = GROUP_MEMBER_TYPES,
        date: DateLike = None,
        notes: str | None = None,
    ) -> list[Entity]:
        """Suspend *entity*'s available members of *member_types*, each with its cascades.

        Types are handled in the order given; each type's members are read
        only when its turn comes, so a manager already suspended by a
        client's cascade is skipped.
        """
        from ringside.orchestration.collection import MemberCollectionManager

        suspended: list[Entity] = []
        for member_type in _check_member_types(member_types):
            members = MemberCollectionManager.from_(related(entity, member_type))
            for member in members.filter_by_availability():
                cls.suspend(member, date, notes)
                suspended.append(member)
        return suspended

    @staticmethod
    def suspend_available_members(
        entity: Entity, date: DateLike = None, notes: str | None = None
    ) -> list[Entity]:
        """Suspend every available member of *entity* as one filtered batch."""
        from ringside.orchestration.collection import MemberCollectionManager

        return (
            MemberCollectionManager.from_(_group_members(entity, GROUP_MEMBER_TYPES))
            .filter_by_employment_status("employed")
            .filter_by_suspension_status("active")
            .filter_by_availability()
            .batch_suspend(date, notes)
        )

    @classmethod
    def reinstate_members_by_type(
        cls,
        entity: Entity,
        member_types: Iterable[str] = GROUP_MEMBER_TYPES,
        date: DateLike = None,
        notes: str | None = None,
    ) -> list[Entity]:
        """Reinstate *entity*'s suspended members of *member_types*, each with its cascades."""
        from ringside.orchestration.collection import MemberCollectionManager

        reinstated: list[Entity] = []
        for member_type in _check_member_types(member_types):
            members = MemberCollectionManager.from_(related(entity, member_type))
            for member in members.filter_by_suspension_status("suspended"):
                cls.reinstate(member, date, notes)
                reinstated.append(member)
        return reinstated

    @staticmethod
    def reinstate_all_suspended_members(
        entity: Entity, date: DateLike = None, notes: str | None = None
    ) -> list[Entity]:
        """Reinstate every suspended member of *entity* as one filtered batch."""
        from ringside.orchestration.collection import MemberCollectionManager

        return (
            MemberCollectionManager.from_(_group_members(entity, GROUP_MEMBER_TYPES))
            .filter_by_suspension_status("suspended")
            .batch_reinstate(date, notes)
        )


def _check_member_types(member_types: Iterable[str]) -> list[str]:
    result = list(member_types)
    for member_type in result:
        if member_type not in RELATION_ACCESSORS:
            msg = (
                f"Unknown member type '{member_type}' "
                f"(expected one of {', '.join(GROUP_MEMBER_TYPES)})"
            )
            raise ConfigurationError(msg)
    return result


def _group_members(entity: Entity, member_types: Iterable[str]) -> list[Entity]:
    members: list[Entity] = []
    for member_type in _check_member_types(member_types):
        members.extend(related(entity, member_type))
    return members
