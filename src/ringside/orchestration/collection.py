"""Filtered views and batch transitions over entity collections."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from ringside.domain.capabilities import Employable, Entity, Injurable, Retirable, Suspendable
from ringside.domain.errors import ConfigurationError, InvalidFilterError
from ringside.domain.types import EntityType
from ringside.orchestration.actions import UnifiedActions
from ringside.orchestration.transition import DateLike, StatusTransitionPipeline

logger = logging.getLogger(__name__)

Predicate = Callable[[Entity], bool]

EMPLOYMENT_STATUSES = ("employed", "unemployed", "released", "any")
SUSPENSION_STATUSES = ("suspended", "active", "any")
INJURY_STATUSES = ("injured", "healthy", "any")
RETIREMENT_STATUSES = ("retired", "active", "any")

STATUS_BUCKETS = ("employed", "unemployed", "suspended", "injured", "retired", "available")


def _check_literal(kind: str, status: str, allowed: tuple[str, ...]) -> str:
    if status not in allowed:
        msg = f"Invalid {kind} status '{status}' (expected one of: {', '.join(allowed)})"
        raise InvalidFilterError(msg)
    return status


def is_available(entity: Entity) -> bool:
    """Employed and not suspended, injured, or retired.

    A check whose capability the entity lacks is treated as passing.
    """
    if isinstance(entity, Employable) and not entity.is_employed():
        return False
    if isinstance(entity, Suspendable) and entity.is_suspended():
        return False
    if isinstance(entity, Injurable) and entity.is_injured():
        return False
    return not (isinstance(entity, Retirable) and entity.is_retired())


class MemberCollectionManager:
    """Ordered filter list over a collection, plus batch operations.

    Filters are applied lazily by :meth:`get` in registration order; the
    source collection is never modified. Invalid status literals fail
    immediately when the filter is added.
    """

    def __init__(self, collection: Iterable[Entity]) -> None:
        self._collection = list(collection)
        self._filters: list[Predicate] = []

    @classmethod
    def from_(cls, collection: Iterable[Entity]) -> MemberCollectionManager:
        return cls(collection)

    # --- filters ---

    def filter_by_employment_status(self, status: str) -> MemberCollectionManager:
        status = _check_literal("employment", status, EMPLOYMENT_STATUSES)
        if status == "employed":
            self._filters.append(lambda e: isinstance(e, Employable) and e.is_employed())
        elif status == "unemployed":
            self._filters.append(lambda e: isinstance(e, Employable) and not e.is_employed())
        elif status == "released":
            self._filters.append(lambda e: isinstance(e, Employable) and e.is_released())
        return self

    def filter_by_suspension_status(self, status: str) -> MemberCollectionManager:
        status = _check_literal("suspension", status, SUSPENSION_STATUSES)
        if status == "suspended":
            self._filters.append(lambda e: isinstance(e, Suspendable) and e.is_suspended())
        elif status == "active":
            self._filters.append(lambda e: isinstance(e, Suspendable) and not e.is_suspended())
        return self

    def filter_by_injury_status(self, status: str) -> MemberCollectionManager:
        status = _check_literal("injury", status, INJURY_STATUSES)
        if status == "injured":
            self._filters.append(lambda e: isinstance(e, Injurable) and e.is_injured())
        elif status == "healthy":
            self._filters.append(lambda e: isinstance(e, Injurable) and not e.is_injured())
        return self

    def filter_by_retirement_status(self, status: str) -> MemberCollectionManager:
        status = _check_literal("retirement", status, RETIREMENT_STATUSES)
        if status == "retired":
            self._filters.append(lambda e: isinstance(e, Retirable) and e.is_retired())
        elif status == "active":
            self._filters.append(lambda e: isinstance(e, Retirable) and not e.is_retired())
        return self

    def filter_by_availability(self, available: bool = True) -> MemberCollectionManager:
        if available:
            self._filters.append(is_available)
        return self

    def filter_by_type(
        self, types: EntityType | str | Iterable[EntityType | str]
    ) -> MemberCollectionManager:
        """Keep entities of the given type name(s). Names are case-insensitive."""
        if isinstance(types, str):
            types = [types]
        wanted: set[EntityType] = set()
        for name in types:
            try:
                wanted.add(EntityType(str(name).lower()))
            except ValueError:
                msg = f"Invalid entity type '{name}'"
                raise InvalidFilterError(msg) from None
        self._filters.append(lambda e: e.entity_type in wanted)
        return self

    def filter_by(self, predicate: Predicate) -> MemberCollectionManager:
        self._filters.append(predicate)
        return self

    def apply_criteria(self, criteria: Mapping[str, Any]) -> MemberCollectionManager:
        """Apply ``{"filter_by_<name>": argument}`` criteria in mapping order.

        Raises :class:`ConfigurationError` for a key that names no filter.
        """
        for method, argument in criteria.items():
            if not method.startswith("filter_by") or not hasattr(self, method):
                msg = f"Unknown collection filter '{method}'"
                raise ConfigurationError(msg)
            getattr(self, method)(argument)
        return self

    # --- readouts ---

    def get(self) -> list[Entity]:
        return [e for e in self._collection if all(check(e) for check in self._filters)]

    def count(self) -> int:
        return len(self.get())

    def exists(self) -> bool:
        return any(all(check(e) for check in self._filters) for e in self._collection)

    def first(self) -> Entity | None:
        for entity in self._collection:
            if all(check(entity) for check in self._filters):
                return entity
        return None

    def group_by_status(self) -> dict[str, list[Entity]]:
        """Partition the filtered set into status buckets.

        Buckets overlap: an entity that is employed and suspended appears in
        both.
        """
        groups: dict[str, list[Entity]] = {bucket: [] for bucket in STATUS_BUCKETS}
        for entity in self.get():
            if isinstance(entity, Employable):
                groups["employed" if entity.is_employed() else "unemployed"].append(entity)
            if isinstance(entity, Suspendable) and entity.is_suspended():
                groups["suspended"].append(entity)
            if isinstance(entity, Injurable) and entity.is_injured():
                groups["injured"].append(entity)
            if isinstance(entity, Retirable) and entity.is_retired():
                groups["retired"].append(entity)
            if is_available(entity):
                groups["available"].append(entity)
        return groups

    def get_statistics(self) -> dict[str, int]:
        groups = self.group_by_status()
        stats = {"total": self.count()}
        stats.update({bucket: len(members) for bucket, members in groups.items()})
        return stats

    # --- batch operations ---

    def batch_employ(self, date: DateLike = None, notes: str | None = None) -> list[Entity]:
        """Employ each filtered entity with its type's default cascades."""
        targets = self.get()
        for entity in targets:
            UnifiedActions.employ(entity, date, notes)
        return targets

    def batch_suspend(self, date: DateLike = None, notes: str | None = None) -> list[Entity]:
        return self._batch(StatusTransitionPipeline.suspend, self.get(), date, notes)

    def batch_release(self, date: DateLike = None, notes: str | None = None) -> list[Entity]:
        return self._batch(StatusTransitionPipeline.release, self.get(), date, notes)

    def batch_retire(self, date: DateLike = None, notes: str | None = None) -> list[Entity]:
        return self._batch(StatusTransitionPipeline.retire, self.get(), date, notes)

    def batch_reinstate(self, date: DateLike = None, notes: str | None = None) -> list[Entity]:
        return self._batch(StatusTransitionPipeline.reinstate, self.get(), date, notes)

    def batch_injure(self, date: DateLike = None, notes: str | None = None) -> list[Entity]:
        """Injure each filtered entity that can be injured; others are skipped."""
        targets = [e for e in self.get() if isinstance(e, Injurable)]
        return self._batch(StatusTransitionPipeline.injure, targets, date, notes)

    @staticmethod
    def _batch(
        factory: Callable[..., StatusTransitionPipeline],
        targets: list[Entity],
        date: DateLike,
        notes: str | None,
    ) -> list[Entity]:
        for entity in targets:
            pipeline = factory(entity, date)
            if notes:
                pipeline.with_notes(notes)
            pipeline.execute()
        logger.debug("Batch processed %d entities", len(targets))
        return targets

    def __iter__(self) -> Iterator[Entity]:
        return iter(self.get())
