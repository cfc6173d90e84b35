"""Stable membership orchestration: merges, splits, and member transfers.

Each orchestrator queues member operations and post-transfer cascades, then
runs them in order inside one roster transaction::

    StableMembershipOrchestrator.merge_stables(primary, secondary, "The Alliance") \\
        .with_employment_cascade() \\
        .execute()

Managers attach to stables directly but are never moved by a merge; only
wrestlers and tag teams follow the merged stable.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, cast

from ringside.domain.capabilities import Employable, Entity
from ringside.domain.dates import effective_date
from ringside.domain.errors import ConfigurationError
from ringside.domain.types import EntityType
from ringside.orchestration.cascades import RetirementCascadeStrategy
from ringside.orchestration.collection import MemberCollectionManager
from ringside.orchestration.transition import DateLike, StatusTransitionPipeline

if TYPE_CHECKING:
    from ringside.domain.entities import Stable
    from ringside.infrastructure.repositories.entities import StableRepository
    from ringside.infrastructure.roster import Roster, RosterTransaction

logger = logging.getLogger(__name__)

MEMBER_KINDS = ("wrestlers", "tag_teams", "managers")

# member kind -> (stable accessor, repository add, repository remove)
_MEMBER_METHODS: dict[str, tuple[str, str, str]] = {
    "wrestlers": ("current_wrestlers", "add_wrestler", "remove_wrestler"),
    "tag_teams": ("current_tag_teams", "add_tag_team", "remove_tag_team"),
    "managers": ("current_managers", "add_manager", "remove_manager"),
}


@dataclass
class _Operation:
    kind: str
    entities: list[Entity] = field(default_factory=list)
    criteria: dict[str, Any] = field(default_factory=dict)
    member_kind: str | None = None
    primary: Entity | None = None
    secondary: Entity | None = None
    name: str | None = None


def _as_list(members: Entity | Iterable[Entity]) -> list[Entity]:
    if isinstance(members, Entity):
        return [members]
    return list(members)


def _ensure_stable(entity: Entity) -> Entity:
    if entity.entity_type is not EntityType.STABLE:
        msg = f"Expected a stable, got {entity.entity_type.label} '{entity.name}'"
        raise ConfigurationError(msg)
    return entity


def _check_member_kinds(kinds: Iterable[str]) -> list[str]:
    result = list(kinds)
    for kind in result:
        if kind not in _MEMBER_METHODS:
            msg = f"Unknown member type '{kind}' (expected one of {', '.join(MEMBER_KINDS)})"
            raise ConfigurationError(msg)
    return result


class StableMembershipOrchestrator:
    """Builder for multi-step stable membership workflows."""

    def __init__(
        self,
        roster: Roster,
        *,
        source: Entity | None = None,
        target: Entity | None = None,
    ) -> None:
        self._roster = roster
        self._source = source
        self._target = target
        self._operations: list[_Operation] = []
        self._cascades: list[tuple[str, list[str]]] = []
        self._date: DateLike = None

    # --- entry points ---

    @classmethod
    def merge_stables(
        cls, primary: Entity, secondary: Entity, new_name: str | None = None
    ) -> StableMembershipOrchestrator:
        """Move the secondary stable's wrestlers and tag teams into *primary*.

        The primary is renamed when *new_name* is given and the secondary is
        retired.
        """
        _ensure_stable(primary)
        _ensure_stable(secondary)
        orchestrator = cls(cast("Roster", primary.state), source=secondary, target=primary)
        orchestrator._operations.append(
            _Operation("merge", primary=primary, secondary=secondary, name=new_name)
        )
        return orchestrator

    @classmethod
    def split_stable(cls, original: Entity, new_name: str) -> StableMembershipOrchestrator:
        """Create an empty stable named *new_name*; queue transfers to populate it."""
        _ensure_stable(original)
        orchestrator = cls(cast("Roster", original.state), source=original)
        orchestrator._operations.append(_Operation("split", primary=original, name=new_name))
        return orchestrator

    @classmethod
    def transfer_members(cls, source: Entity, target: Entity) -> StableMembershipOrchestrator:
        _ensure_stable(source)
        _ensure_stable(target)
        return cls(cast("Roster", source.state), source=source, target=target)

    # --- member operations ---

    def transfer_wrestlers(
        self, wrestlers: Entity | Iterable[Entity]
    ) -> StableMembershipOrchestrator:
        self._operations.append(
            _Operation("transfer", entities=_as_list(wrestlers), member_kind="wrestlers")
        )
        return self

    def transfer_tag_teams(
        self, tag_teams: Entity | Iterable[Entity]
    ) -> StableMembershipOrchestrator:
        self._operations.append(
            _Operation("transfer", entities=_as_list(tag_teams), member_kind="tag_teams")
        )
        return self

    def transfer_managers(
        self, managers: Entity | Iterable[Entity]
    ) -> StableMembershipOrchestrator:
        self._operations.append(
            _Operation("transfer", entities=_as_list(managers), member_kind="managers")
        )
        return self

    def transfer_all_available_members(self) -> StableMembershipOrchestrator:
        """Move every available member of the source stable."""
        self._operations.append(_Operation("transfer_available"))
        return self

    def transfer_members_by_criteria(
        self, criteria: dict[str, Any]
    ) -> StableMembershipOrchestrator:
        """Move source wrestlers matching ``{"filter_by_*": value}`` criteria."""
        self._operations.append(_Operation("transfer_criteria", criteria=dict(criteria)))
        return self

    # --- cascades ---

    def with_employment_cascade(self) -> StableMembershipOrchestrator:
        """Employ every member of the target stable not yet in employment."""
        self._cascades.append(("employment", []))
        return self

    def with_suspension_cascade(
        self, member_types: Iterable[str] = MEMBER_KINDS
    ) -> StableMembershipOrchestrator:
        """Suspend the target stable's available members of *member_types*."""
        self._cascades.append(("suspension", _check_member_kinds(member_types)))
        return self

    def with_source_stable_retirement(self) -> StableMembershipOrchestrator:
        self._cascades.append(("retire_source", []))
        return self

    def on_date(self, date: DateLike) -> StableMembershipOrchestrator:
        self._date = date
        return self

    # --- terminal ---

    def execute(self) -> Entity | list[Entity]:
        """Run operations then cascades in one transaction.

        Returns the resulting stable, or the list of distinct resulting
        stables when more than one operation produced a different one.
        """
        when = effective_date(self._date, self._roster.clock)
        results: list[Entity] = []
        with self._roster.transaction() as txn:
            for operation in self._operations:
                result = self._run_operation(operation, when, txn)
                if result is not None and result not in results:
                    results.append(result)
            for kind, member_types in self._cascades:
                self._run_cascade(kind, member_types, when)
        if len(results) == 1:
            return results[0]
        return results

    # --- internals ---

    @property
    def _repository(self) -> StableRepository:
        return self._roster.registry.stables()

    def _run_operation(
        self, operation: _Operation, when: datetime, txn: RosterTransaction
    ) -> Entity | None:
        if operation.kind == "merge":
            return self._merge(operation, when, txn)
        if operation.kind == "split":
            return self._split(operation, txn)
        if operation.kind == "transfer":
            return self._transfer(operation.member_kind or "", operation.entities, when)
        if operation.kind == "transfer_available":
            return self._transfer_available(when)
        if operation.kind == "transfer_criteria":
            return self._transfer_by_criteria(operation.criteria, when)
        msg = f"Unknown stable operation '{operation.kind}'"
        raise ConfigurationError(msg)

    def _merge(self, operation: _Operation, when: datetime, txn: RosterTransaction) -> Entity:
        primary = cast("Entity", operation.primary)
        secondary = cast("Entity", operation.secondary)
        for kind in ("wrestlers", "tag_teams"):
            accessor = _MEMBER_METHODS[kind][0]
            self._move(kind, getattr(secondary, accessor)(), secondary, primary, when)

        if operation.name:
            self._repository.update(primary, {"name": operation.name})

        self._retire(secondary, when)
        txn.queue_event(
            "post_stable_merge", {"primary_id": primary.id, "secondary_id": secondary.id}
        )
        logger.info("Merged stable %s into %s", secondary.key, primary.key)
        return primary

    def _split(self, operation: _Operation, txn: RosterTransaction) -> Entity:
        original = cast("Entity", operation.primary)
        new_stable = self._repository.create(cast("str", operation.name))
        self._target = new_stable
        txn.queue_event(
            "post_stable_split", {"original_id": original.id, "new_stable_id": new_stable.id}
        )
        logger.info("Split stable %s into new stable %s", original.key, new_stable.key)
        return new_stable

    def _transfer(self, kind: str, members: list[Entity], when: datetime) -> Entity | None:
        self._move(kind, members, self._source, self._target, when)
        return self._target

    def _move(
        self,
        kind: str,
        members: list[Entity],
        source: Entity | None,
        target: Entity | None,
        when: datetime,
    ) -> None:
        _, add, remove = _MEMBER_METHODS[kind]
        repository = self._repository
        for member in members:
            if source is not None:
                getattr(repository, remove)(source, member, when)
            if target is not None:
                getattr(repository, add)(target, member, when)

    def _transfer_available(self, when: datetime) -> Entity | None:
        if self._source is None:
            return self._target
        for kind in MEMBER_KINDS:
            accessor = _MEMBER_METHODS[kind][0]
            available = (
                MemberCollectionManager.from_(getattr(self._source, accessor)())
                .filter_by_availability(True)
                .get()
            )
            self._transfer(kind, available, when)
        return self._target

    def _transfer_by_criteria(self, criteria: dict[str, Any], when: datetime) -> Entity | None:
        if self._source is None:
            return self._target
        source = cast("Stable", self._source)
        wrestlers = MemberCollectionManager.from_(source.current_wrestlers())
        return self._transfer("wrestlers", wrestlers.apply_criteria(criteria).get(), when)

    @staticmethod
    def _retire(stable: Entity, when: datetime) -> None:
        """Retire *stable* and end all of its remaining memberships."""
        (
            StatusTransitionPipeline.retire(stable, when)
            .with_cascade(RetirementCascadeStrategy.detach())
            .execute()
        )

    def _run_cascade(self, kind: str, member_types: list[str], when: datetime) -> None:
        if kind == "retire_source":
            if self._source is not None:
                self._retire(self._source, when)
            return
        if self._target is None:
            return
        if kind == "employment":
            for member_kind in MEMBER_KINDS:
                accessor = _MEMBER_METHODS[member_kind][0]
                (
                    MemberCollectionManager.from_(getattr(self._target, accessor)())
                    .filter_by(lambda e: isinstance(e, Employable) and e.is_not_in_employment())
                    .batch_employ(when)
                )
        elif kind == "suspension":
            for member_kind in member_types:
                accessor = _MEMBER_METHODS[member_kind][0]
                (
                    MemberCollectionManager.from_(getattr(self._target, accessor)())
                    .filter_by_suspension_status("active")
                    .filter_by_availability(True)
                    .batch_suspend(when)
                )
