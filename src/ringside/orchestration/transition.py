"""Status transition pipeline: the lifecycle state machine core.

One pipeline applies one transition to one entity, inside the roster's
ambient transaction:

1. default validation (capability check, the entity's ``ensure_can_be_*``
   guard, then the status table edge), then custom validators in order;
2. state ending (``employ`` first ends an active retirement);
3. the repository mutation for the transition;
4. cascades in registration order;
5. a ``post_transition`` event queued for delivery after commit.

Any failure propagates and rolls back everything the pipeline (and its
cascades) wrote.

Every pipeline runs within a :class:`CascadeChain` shared with the
pipelines its cascades spawn. The chain skips a transition already applied
to the same entity and bounds the cascade depth.
Under a traced service call each run also records a telemetry span.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date as date_type
from datetime import datetime
from typing import TYPE_CHECKING, cast

from ringside.domain.capabilities import Entity, Retirable
from ringside.domain.dates import effective_date
from ringside.domain.errors import CascadeDepthError
from ringside.domain.lifecycle import (
    TransitionRule,
    compute_status,
    is_valid_transition,
    rule_for,
)
from ringside.domain.types import EntityKey, Transition
from ringside.services.telemetry import note_skipped, trace_transition

if TYPE_CHECKING:
    from ringside.infrastructure.roster import Roster

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 32

ValidationStrategy = Callable[[Entity, Transition], None]
CascadeStrategy = Callable[[Entity, datetime, Transition, "CascadeChain"], None]
DateLike = date_type | datetime | None


class CascadeChain:
    """Cascade context of one top-level transition.

    Tracks which ``(transition, entity)`` pairs were applied, the current
    nesting depth, and named visited sets for cascades that must visit each
    entity at most once per call.
    """

    def __init__(self, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self.max_depth = max_depth
        self.depth = 0
        self._applied: set[tuple[Transition, EntityKey]] = set()
        self._visited: dict[str, set[EntityKey]] = {}
        self._scope_depth: dict[str, int] = {}

    @classmethod
    def for_roster(cls, roster: Roster) -> CascadeChain:
        return cls(max_depth=roster.settings.cascade.max_depth)

    # --- applied transitions ---

    def has_applied(self, transition: Transition, key: EntityKey) -> bool:
        return (transition, key) in self._applied

    def mark_applied(self, transition: Transition, key: EntityKey) -> None:
        self._applied.add((transition, key))

    def unmark_applied(self, transition: Transition, key: EntityKey) -> None:
        self._applied.discard((transition, key))

    @property
    def applied(self) -> frozenset[tuple[Transition, EntityKey]]:
        return frozenset(self._applied)

    # --- depth ---

    @contextmanager
    def descend(self) -> Iterator[int]:
        """Enter one cascade level. Raises :class:`CascadeDepthError` past the limit."""
        if self.depth >= self.max_depth:
            msg = f"Cascade chain exceeded maximum depth of {self.max_depth}"
            raise CascadeDepthError(msg)
        self.depth += 1
        try:
            yield self.depth
        finally:
            self.depth -= 1

    # --- call-scoped visited sets ---

    @contextmanager
    def scope(self, name: str) -> Iterator[set[EntityKey]]:
        """A visited set shared by nested calls, cleared when the outermost exits."""
        self._scope_depth[name] = self._scope_depth.get(name, 0) + 1
        visited = self._visited.setdefault(name, set())
        try:
            yield visited
        finally:
            self._scope_depth[name] -= 1
            if self._scope_depth[name] == 0:
                del self._scope_depth[name]
                self._visited.pop(name, None)

    def claim(self, name: str, key: EntityKey) -> bool:
        """Add *key* to scope *name*; False if it was already visited."""
        visited = self._visited.setdefault(name, set())
        if key in visited:
            return False
        visited.add(key)
        return True

    def visited(self, name: str) -> frozenset[EntityKey]:
        return frozenset(self._visited.get(name, ()))


class StatusTransitionPipeline:
    """Fluent builder for one transition on one entity.

    Usage::

        StatusTransitionPipeline.employ(wrestler, date) \\
            .with_cascade(EmploymentCascadeStrategy.managers()) \\
            .with_notes("Signed at the TV taping") \\
            .execute()
    """

    def __init__(
        self,
        entity: Entity,
        transition: Transition | str,
        date: DateLike = None,
        *,
        chain: CascadeChain | None = None,
    ) -> None:
        self._rule: TransitionRule = rule_for(transition)
        self._entity = entity
        self._date = date
        self._chain = chain
        self._validators: list[ValidationStrategy] = []
        self._cascades: list[CascadeStrategy] = []
        self._notes: str | None = None
        self._mutation: str | None = None

    # --- class constructors ---

    @classmethod
    def employ(
        cls,
        entity: Entity,
        date: DateLike = None,
        *,
        chain: CascadeChain | None = None,
    ) -> StatusTransitionPipeline:
        return cls(entity, Transition.EMPLOY, date, chain=chain)

    @classmethod
    def suspend(
        cls,
        entity: Entity,
        date: DateLike = None,
        *,
        chain: CascadeChain | None = None,
    ) -> StatusTransitionPipeline:
        return cls(entity, Transition.SUSPEND, date, chain=chain)

    @classmethod
    def release(
        cls,
        entity: Entity,
        date: DateLike = None,
        *,
        chain: CascadeChain | None = None,
    ) -> StatusTransitionPipeline:
        return cls(entity, Transition.RELEASE, date, chain=chain)

    @classmethod
    def retire(
        cls,
        entity: Entity,
        date: DateLike = None,
        *,
        chain: CascadeChain | None = None,
    ) -> StatusTransitionPipeline:
        return cls(entity, Transition.RETIRE, date, chain=chain)

    @classmethod
    def injure(
        cls,
        entity: Entity,
        date: DateLike = None,
        *,
        chain: CascadeChain | None = None,
    ) -> StatusTransitionPipeline:
        return cls(entity, Transition.INJURE, date, chain=chain)

    @classmethod
    def reinstate(
        cls,
        entity: Entity,
        date: DateLike = None,
        *,
        chain: CascadeChain | None = None,
    ) -> StatusTransitionPipeline:
        return cls(entity, Transition.REINSTATE, date, chain=chain)

    # --- builders ---

    def with_validation(self, validator: ValidationStrategy) -> StatusTransitionPipeline:
        self._validators.append(validator)
        return self

    def with_cascade(self, cascade: CascadeStrategy) -> StatusTransitionPipeline:
        self._cascades.append(cascade)
        return self

    def with_notes(self, notes: str) -> StatusTransitionPipeline:
        self._notes = notes
        return self

    def with_mutation(self, name: str) -> StatusTransitionPipeline:
        """Record the change through repository method *name* instead of the default."""
        self._mutation = name
        return self

    @property
    def transition(self) -> Transition:
        return self._rule.transition

    @property
    def entity(self) -> Entity:
        return self._entity

    # --- terminal ---

    def execute(self) -> None:
        """Apply the transition. Raises on any validation or cascade failure."""
        entity = self._entity
        roster = cast("Roster", entity.state)
        transition = self._rule.transition
        chain = self._chain if self._chain is not None else CascadeChain.for_roster(roster)

        if chain.has_applied(transition, entity.key):
            logger.debug("Skipping %s of %s: already applied in chain", transition, entity.key)
            note_skipped(transition, entity, chain.depth)
            return

        when = effective_date(self._date, roster.clock)
        with (
            trace_transition(transition, entity, chain.depth),
            chain.descend(),
            roster.transaction() as txn,
        ):
            self._validate()
            chain.mark_applied(transition, entity.key)
            try:
                self._apply(roster, when)
                for cascade in self._cascades:
                    cascade(entity, when, transition, chain)
            except BaseException:
                chain.unmark_applied(transition, entity.key)
                raise
            txn.queue_event(
                "post_transition",
                {
                    "entity_type": str(entity.entity_type),
                    "entity_id": entity.id,
                    "transition": str(transition),
                    "effective_date": when.isoformat(),
                },
            )
        logger.debug("Applied %s to %s at %s", transition, entity.key, when.isoformat())

    def _validate(self) -> None:
        rule = self._rule
        if not isinstance(self._entity, rule.capability):
            raise rule.error.unsupported(self._entity)
        getattr(self._entity, rule.guard)()
        status = compute_status(self._entity)
        if not is_valid_transition(status, rule.transition):
            raise rule.error.because(f"no {rule.transition} edge out of {status}", self._entity)
        for validator in self._validators:
            validator(self._entity, rule.transition)

    def _apply(self, roster: Roster, when: datetime) -> None:
        entity = self._entity
        registry = roster.registry
        if self._rule.ends_retirement and isinstance(entity, Retirable) and entity.is_retired():
            registry.mutation(entity, "end_retirement")(entity, when)

        mutate = registry.mutation(entity, self._mutation or self._rule.mutation)
        if self._notes is not None:
            mutate(entity, when, notes=self._notes)
        else:
            mutate(entity, when)
