"""Composite action pipeline.

Queues heterogeneous roster operations (stable merges and splits, batch
transitions, filtered batches, custom callables) and runs them in queue
order inside one roster transaction. Each operation runs in its own
savepoint, so a failed operation leaves no partial writes even when the
pipeline continues past it.

Compensation: in abort mode, after a failure the pipeline walks the
previously succeeded operations in reverse order. Built-in operations
record an inverse-operation descriptor (see :meth:`ActionPipeline.get_compensations`)
without executing it, because the enclosing transaction rollback already
undoes their writes. Callables passed as ``rollback=`` to
:meth:`ActionPipeline.custom_action` are invoked, for effects that live
outside the transaction; a failing rollback is logged as a
:class:`CompensationError` and never masks the original error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from ringside.domain.capabilities import Entity
from ringside.domain.errors import CompensationError, ConfigurationError
from ringside.orchestration.actions import UnifiedActions
from ringside.orchestration.collection import MemberCollectionManager
from ringside.orchestration.stables import StableMembershipOrchestrator
from ringside.orchestration.transition import DateLike, StatusTransitionPipeline

if TYPE_CHECKING:
    from ringside.infrastructure.roster import Roster

logger = logging.getLogger(__name__)

BATCH_OPERATIONS = ("employ", "release", "retire", "suspend", "reinstate", "injure")

# batch operation -> inverse operation recorded as its compensation
_INVERSE = {
    "employ": "batch_release",
    "release": "batch_employ",
    "retire": "batch_unretire",
    "suspend": "batch_reinstate",
    "reinstate": "batch_suspend",
}

_SPLIT_TRANSFERS = {
    "wrestlers": "transfer_wrestlers",
    "tag_teams": "transfer_tag_teams",
    "managers": "transfer_managers",
}


class PipelineResult(BaseModel):
    """Outcome of one :meth:`ActionPipeline.execute` call, keyed by operation index."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    results: dict[int, Any] = Field(default_factory=dict)
    errors: dict[int, Exception] = Field(default_factory=dict)
    success: bool = True


@dataclass
class _Operation:
    kind: str
    run: Callable[[], Any]
    compensation: Callable[[Any], dict[str, Any]] | None = None
    rollback: Callable[[Any], Any] | None = None


def _keys(entities: Iterable[Entity]) -> list[str]:
    return [str(entity.key) for entity in entities]


class ActionPipeline:
    """Fluent queue of roster operations executed as one unit.

    Usage::

        result = (
            ActionPipeline.create(roster)
            .with_default_date(date(2024, 1, 1))
            .stable_merger(primary, secondary, "The Alliance")
            .employ_members(new_signings)
            .continue_on_error()
            .execute()
        )
    """

    def __init__(self, roster: Roster, *, continue_on_error: bool = False) -> None:
        self._roster = roster
        self._operations: list[_Operation] = []
        self._default_date: DateLike = None
        self._continue_on_error = continue_on_error
        self._results: dict[int, Any] = {}
        self._errors: dict[int, Exception] = {}
        self._compensations: list[dict[str, Any]] = []

    @classmethod
    def create(cls, roster: Roster) -> ActionPipeline:
        return cls(roster, continue_on_error=roster.settings.pipeline.continue_on_error)

    # --- configuration ---

    def with_default_date(self, date: DateLike) -> ActionPipeline:
        """Date used by operations queued without an explicit one."""
        self._default_date = date
        return self

    def continue_on_error(self, flag: bool = True) -> ActionPipeline:
        self._continue_on_error = flag
        return self

    def _date(self, date: DateLike) -> DateLike:
        return date if date is not None else self._default_date

    # --- stable operations ---

    def stable_merger(
        self, primary: Entity, secondary: Entity, new_name: str | None = None
    ) -> ActionPipeline:
        def run() -> Any:
            return (
                StableMembershipOrchestrator.merge_stables(primary, secondary, new_name)
                .on_date(self._default_date)
                .execute()
            )

        def compensation(_result: Any) -> dict[str, Any]:
            return {
                "operation": "restore_stable_memberships",
                "stables": _keys([primary, secondary]),
            }

        self._operations.append(_Operation("stable_merger", run, compensation))
        return self

    def stable_split(
        self,
        original: Entity,
        new_name: str,
        members: Mapping[str, Iterable[Entity]] | None = None,
    ) -> ActionPipeline:
        """Split *original*, moving ``{"wrestlers"|"tag_teams"|"managers": [...]}``."""
        transfers = {kind: list(entities) for kind, entities in (members or {}).items()}
        for kind in transfers:
            if kind not in _SPLIT_TRANSFERS:
                msg = f"Unknown member type '{kind}' for stable split"
                raise ConfigurationError(msg)

        def run() -> Any:
            orchestrator = StableMembershipOrchestrator.split_stable(original, new_name)
            for kind, entities in transfers.items():
                getattr(orchestrator, _SPLIT_TRANSFERS[kind])(entities)
            return orchestrator.on_date(self._default_date).execute()

        def compensation(result: Any) -> dict[str, Any]:
            stables = result if isinstance(result, list) else [result]
            return {"operation": "delete_stable", "stables": _keys(stables)}

        self._operations.append(_Operation("stable_split", run, compensation))
        return self

    def stable_orchestration(
        self, callback: Callable[[type[StableMembershipOrchestrator]], Any]
    ) -> ActionPipeline:
        """Run *callback* with the orchestrator class; its return value is the result."""
        self._operations.append(
            _Operation("stable_orchestration", lambda: callback(StableMembershipOrchestrator))
        )
        return self

    # --- batch operations ---

    def employ_members(self, entities: Iterable[Entity], date: DateLike = None) -> ActionPipeline:
        return self._queue_batch("employ", list(entities), date)

    def release_members(self, entities: Iterable[Entity], date: DateLike = None) -> ActionPipeline:
        return self._queue_batch("release", list(entities), date)

    def retire_members(self, entities: Iterable[Entity], date: DateLike = None) -> ActionPipeline:
        return self._queue_batch("retire", list(entities), date)

    def suspend_members(self, entities: Iterable[Entity], date: DateLike = None) -> ActionPipeline:
        return self._queue_batch("suspend", list(entities), date)

    def reinstate_members(
        self, entities: Iterable[Entity], date: DateLike = None
    ) -> ActionPipeline:
        return self._queue_batch("reinstate", list(entities), date)

    def _queue_batch(
        self, operation: str, entities: list[Entity], date: DateLike
    ) -> ActionPipeline:
        def run() -> list[Entity]:
            when = self._date(date)
            if operation == "employ":
                UnifiedActions.employ_many(entities, when)
            else:
                factory = getattr(StatusTransitionPipeline, operation)
                for entity in entities:
                    factory(entity, when).execute()
            return entities

        def compensation(_result: Any) -> dict[str, Any]:
            return {"operation": _INVERSE[operation], "entities": _keys(entities)}

        self._operations.append(_Operation(f"batch_{operation}", run, compensation))
        return self

    def filter_and_batch(
        self,
        collection: Iterable[Entity],
        criteria: Mapping[str, Any],
        operation: str,
        date: DateLike = None,
    ) -> ActionPipeline:
        """Filter *collection* by ``filter_by_*`` criteria, then batch *operation*.

        The result is the filtered set's statistics after the batch.
        """
        if operation not in BATCH_OPERATIONS:
            msg = f"Unknown batch operation '{operation}'"
            raise ConfigurationError(msg)
        entities = list(collection)
        criteria = dict(criteria)

        def run() -> dict[str, int]:
            manager = MemberCollectionManager.from_(entities).apply_criteria(criteria)
            getattr(manager, f"batch_{operation}")(self._date(date))
            return manager.get_statistics()

        self._operations.append(_Operation("filter_and_batch", run))
        return self

    # --- custom ---

    def custom_action(
        self,
        action: Callable[[], Any],
        rollback: Callable[[Any], Any] | None = None,
    ) -> ActionPipeline:
        """Queue *action*; *rollback* receives its result if a later operation fails."""
        self._operations.append(_Operation("custom", action, rollback=rollback))
        return self

    # --- terminal ---

    def execute(self) -> PipelineResult:
        """Run every queued operation in order.

        In abort mode the first failure triggers compensation and is
        re-raised, rolling back the whole pipeline. With
        ``continue_on_error`` failures are recorded by index and the
        remaining operations still run.
        """
        self._results = {}
        self._errors = {}
        self._compensations = []
        roster = self._roster

        with roster.transaction() as txn:
            for index, operation in enumerate(self._operations):
                try:
                    with roster.transaction():
                        self._results[index] = operation.run()
                except Exception as exc:
                    self._errors[index] = exc
                    logger.warning(
                        "Pipeline operation %d (%s) failed: %s", index, operation.kind, exc
                    )
                    if not self._continue_on_error:
                        self._compensate(index)
                        raise
            txn.queue_event(
                "post_pipeline",
                {"succeeded": sorted(self._results), "failed": sorted(self._errors)},
            )

        return PipelineResult(
            results=dict(self._results),
            errors=dict(self._errors),
            success=not self._errors,
        )

    def _compensate(self, failed_index: int) -> None:
        for index in range(failed_index - 1, -1, -1):
            if index not in self._results:
                continue
            operation = self._operations[index]
            result = self._results[index]
            if operation.compensation is not None:
                self._compensations.append(
                    {"index": index, "kind": operation.kind, **operation.compensation(result)}
                )
            if operation.rollback is None:
                continue
            try:
                operation.rollback(result)
            except Exception as exc:
                error = CompensationError(index, exc)
                logger.error("%s", error)

    # --- readouts ---

    def get_results(self) -> dict[int, Any]:
        return dict(self._results)

    def get_errors(self) -> dict[int, Exception]:
        return dict(self._errors)

    def was_successful(self) -> bool:
        return not self._errors

    def get_compensations(self) -> list[dict[str, Any]]:
        """Inverse-operation descriptors recorded by the last failed execution."""
        return list(self._compensations)
