"""Roster: entity store with ambient, re-entrant transactions.

The Roster is the single dependency injected into every service and
orchestrator. It owns the database engine, the clock, the repository
registry, and the plugin event bus.

:meth:`Roster.transaction` is ambient. The outermost call opens a database
transaction with ``engine.begin()``; any nested call on the same roster
joins it through a SAVEPOINT, so a nested failure rolls back only its own
writes while a failure that escapes the outermost block rolls back
everything. Lifecycle events are queued on the transaction and delivered
only after the outermost commit; events queued inside a rolled-back
savepoint are dropped with it.

Entities are live handles: the Roster implements the
:class:`~ringside.domain.capabilities.StateSource` read protocol, using the
ambient connection when a transaction is active so predicates see pending
writes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import and_, insert, select, update

from ringside.domain.capabilities import Entity, Period
from ringside.domain.dates import Clock, SystemClock, ensure_valid_date_range, normalize
from ringside.domain.entities import build_entity
from ringside.domain.errors import EntityNotFoundError
from ringside.domain.types import EntityKey, EntityType, PeriodKind, Relation
from ringside.infrastructure.database.engine import init_database
from ringside.infrastructure.database.schema import entities, relationships, status_periods

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Connection, Engine

    from ringside.config.settings import RingsideSettings
    from ringside.infrastructure.repositories.registry import RepositoryRegistry
    from ringside.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_active: ContextVar[RosterTransaction | None] = ContextVar("_active_roster_txn", default=None)


def _iso(value: datetime) -> str:
    return normalize(value).isoformat()


def _parse(value: str | None) -> datetime | None:
    return normalize(datetime.fromisoformat(value)) if value else None


# ---------------------------------------------------------------------------
# RosterTransaction: yielded to callers within transaction()
# ---------------------------------------------------------------------------


@dataclass
class _QueuedEvent:
    event_id: int
    hook_name: str
    payload: dict[str, Any]


@dataclass
class RosterTransaction:
    """Active transaction with its connection and queued lifecycle events.

    All roster writes go through the helpers here so they share the
    ambient connection.
    """

    conn: Connection
    _roster: Roster
    _events: list[_QueuedEvent] = field(default_factory=list, repr=False)
    depth: int = 0

    @property
    def roster(self) -> Roster:
        return self._roster

    # ------------------------------------------------------------------
    # Entity records
    # ------------------------------------------------------------------

    def insert_entity(self, entity_type: EntityType, name: str) -> int:
        """Insert a primary entity record. Returns its id."""
        stamp = _iso(self._roster.now())
        result = self.conn.execute(
            insert(entities).values(type=str(entity_type), name=name, created=stamp, modified=stamp)
        )
        assert result.lastrowid is not None
        return result.lastrowid

    def rename_entity(self, entity_id: int, name: str) -> None:
        self.conn.execute(
            update(entities)
            .where(entities.c.id == entity_id)
            .values(name=name, modified=_iso(self._roster.now()))
        )

    # ------------------------------------------------------------------
    # State periods
    # ------------------------------------------------------------------

    def insert_period(
        self,
        entity_id: int,
        kind: PeriodKind,
        started_at: datetime,
        notes: str | None = None,
    ) -> None:
        self.conn.execute(
            insert(status_periods).values(
                entity_id=entity_id,
                kind=str(kind),
                started_at=_iso(started_at),
                notes=notes,
            )
        )

    def end_open_periods(
        self,
        entity_id: int,
        kind: PeriodKind,
        ended_at: datetime,
        notes: str | None = None,
    ) -> int:
        """Close every open period of *kind*. Returns the number closed.

        Raises :class:`InvalidDateRangeError` if *ended_at* precedes a start.
        """
        values: dict[str, Any] = {"ended_at": _iso(ended_at)}
        if notes is not None:
            values["notes"] = notes
        rows = self.conn.execute(
            select(status_periods.c.id, status_periods.c.started_at).where(
                status_periods.c.entity_id == entity_id,
                status_periods.c.kind == str(kind),
                status_periods.c.ended_at.is_(None),
            )
        ).fetchall()
        for row in rows:
            started = _parse(row.started_at)
            assert started is not None
            ensure_valid_date_range(started, ended_at)
            self.conn.execute(
                update(status_periods).where(status_periods.c.id == row.id).values(**values)
            )
        return len(rows)

    # ------------------------------------------------------------------
    # Relationship edges
    # ------------------------------------------------------------------

    def insert_edge(
        self,
        source_id: int,
        target_id: int,
        relation: Relation,
        joined_at: datetime,
    ) -> bool:
        """Open a membership edge. Returns False if it is already current."""
        existing = self.conn.execute(
            select(relationships.c.id).where(
                relationships.c.source_id == source_id,
                relationships.c.target_id == target_id,
                relationships.c.relation == str(relation),
                relationships.c.left_at.is_(None),
            )
        ).first()
        if existing is not None:
            return False

        self.conn.execute(
            insert(relationships).values(
                source_id=source_id,
                target_id=target_id,
                relation=str(relation),
                joined_at=_iso(joined_at),
            )
        )
        return True

    def end_edges(
        self,
        left_at: datetime,
        *,
        relation: Relation,
        source_id: int | None = None,
        target_id: int | None = None,
        source_type: EntityType | None = None,
        target_type: EntityType | None = None,
    ) -> int:
        """Close current edges matching the filters. Returns the number closed."""
        clauses = [relationships.c.relation == str(relation), relationships.c.left_at.is_(None)]
        if source_id is not None:
            clauses.append(relationships.c.source_id == source_id)
        if target_id is not None:
            clauses.append(relationships.c.target_id == target_id)
        if source_type is not None:
            clauses.append(
                relationships.c.source_id.in_(
                    select(entities.c.id).where(entities.c.type == str(source_type))
                )
            )
        if target_type is not None:
            clauses.append(
                relationships.c.target_id.in_(
                    select(entities.c.id).where(entities.c.type == str(target_type))
                )
            )
        result = self.conn.execute(
            update(relationships).where(and_(*clauses)).values(left_at=_iso(left_at))
        )
        return result.rowcount

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def queue_event(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Record an event for delivery after the outermost commit.

        No-op when the roster has no event bus.
        """
        bus = self._roster.event_bus
        if bus is None:
            return
        event_id = bus.record(self.conn, hook_name, payload)
        self._events.append(_QueuedEvent(event_id, hook_name, payload))


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------


class Roster:
    """Entity store, transaction coordinator, and state source.

    Constructed once at CLI startup from :class:`RingsideSettings` and stored
    on the CLI context. Services and orchestrators receive it explicitly.
    """

    def __init__(self, settings: RingsideSettings, *, clock: Clock | None = None) -> None:
        self._settings = settings
        self._clock: Clock = clock or SystemClock()
        self._engine: Engine = init_database(settings.database_path)
        self._event_bus: EventBus | None = None
        self._registry: RepositoryRegistry | None = None
        if settings.events.enabled:
            self.init_event_bus()

    @property
    def settings(self) -> RingsideSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def event_bus(self) -> EventBus | None:
        """The plugin event bus (None if events are disabled)."""
        return self._event_bus

    @property
    def registry(self) -> RepositoryRegistry:
        """Repositories by entity type, built on first access."""
        if self._registry is None:
            from ringside.infrastructure.repositories.registry import build_default_registry

            self._registry = build_default_registry(self)
        return self._registry

    def init_event_bus(self) -> None:
        """Create the PluginManager, load plugins, and wire up the EventBus."""
        from ringside.plugins.builtins.audit import AuditPlugin
        from ringside.plugins.event_bus import EventBus
        from ringside.plugins.manager import PluginManager

        pm = PluginManager()
        if self._settings.plugins.enabled:
            pm.discover_and_load(local_dir=self._settings.root / ".ringside" / "plugins")
        if self._settings.plugins.audit:
            pm.register_plugin(AuditPlugin(), name="audit-builtin")
        self._event_bus = EventBus(
            self._engine, pm, max_retries=self._settings.events.max_retries
        )

    def now(self) -> datetime:
        return normalize(self._clock.now())

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def active_transaction(self) -> RosterTransaction | None:
        """The ambient transaction for this roster, if one is open."""
        txn = _active.get()
        if txn is not None and txn.roster is self:
            return txn
        return None

    @contextmanager
    def transaction(self) -> Iterator[RosterTransaction]:
        """Ambient transaction: outermost call begins, nested calls savepoint.

        Usage::

            with roster.transaction() as txn:
                txn.insert_period(wrestler.id, PeriodKind.EMPLOYMENT, date)
                # Commits on success, rolls back on failure.
        """
        current = self.active_transaction()
        if current is not None:
            mark = len(current._events)
            savepoint = current.conn.begin_nested()
            current.depth += 1
            try:
                yield current
            except BaseException:
                savepoint.rollback()
                del current._events[mark:]
                raise
            else:
                savepoint.commit()
            finally:
                current.depth -= 1
            return

        events: list[_QueuedEvent] = []
        with self._engine.begin() as conn:
            txn = RosterTransaction(conn=conn, _roster=self, _events=events)
            token = _active.set(txn)
            try:
                yield txn
            finally:
                _active.reset(token)
        self._deliver(events)

    def run_in_transaction(self, fn: Callable[[], _T]) -> _T:
        """Call *fn* inside :meth:`transaction` and return its result."""
        with self.transaction():
            return fn()

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """The ambient connection, or a short-lived read connection."""
        txn = self.active_transaction()
        if txn is not None:
            yield txn.conn
            return
        with self._engine.connect() as conn:
            yield conn

    def _deliver(self, events: list[_QueuedEvent]) -> None:
        if self._event_bus is None:
            return
        for event in events:
            self._event_bus.deliver(event.event_id, event.hook_name, event.payload)

    # ------------------------------------------------------------------
    # Entity records
    # ------------------------------------------------------------------

    def add(self, entity_type: EntityType | str, name: str) -> Entity:
        """Create a new entity record and return its handle."""
        etype = EntityType(entity_type)
        with self.transaction() as txn:
            entity_id = txn.insert_entity(etype, name)
        logger.debug("Added %s %s (%d)", etype, name, entity_id)
        return build_entity(self, etype, entity_id, name)

    def get(self, entity_id: int, entity_type: EntityType | str | None = None) -> Entity:
        """Load one entity by id, optionally requiring a type."""
        query = select(entities.c.id, entities.c.type, entities.c.name).where(
            entities.c.id == entity_id
        )
        if entity_type is not None:
            query = query.where(entities.c.type == str(EntityType(entity_type)))
        with self.connection() as conn:
            row = conn.execute(query).first()
        if row is None:
            label = EntityType(entity_type).label if entity_type else "Entity"
            msg = f"{label} {entity_id} not found"
            raise EntityNotFoundError(msg)
        return build_entity(self, row.type, row.id, row.name)

    def all(self, entity_type: EntityType | str | None = None) -> list[Entity]:
        """All entities in id order, optionally of one type."""
        query = select(entities.c.id, entities.c.type, entities.c.name).order_by(entities.c.id)
        if entity_type is not None:
            query = query.where(entities.c.type == str(EntityType(entity_type)))
        with self.connection() as conn:
            rows = conn.execute(query).fetchall()
        return [build_entity(self, row.type, row.id, row.name) for row in rows]

    def reload(self, entity: Entity) -> Entity:
        """A fresh handle for *entity* (picks up renames)."""
        return self.get(entity.id, entity.entity_type)

    # ------------------------------------------------------------------
    # StateSource
    # ------------------------------------------------------------------

    def open_period(self, key: EntityKey, kind: PeriodKind) -> Period | None:
        query = (
            select(status_periods)
            .where(
                status_periods.c.entity_id == key.id,
                status_periods.c.kind == str(kind),
                status_periods.c.ended_at.is_(None),
            )
            .order_by(status_periods.c.started_at.desc(), status_periods.c.id.desc())
            .limit(1)
        )
        with self.connection() as conn:
            row = conn.execute(query).first()
        return self._period(row) if row is not None else None

    def periods(self, key: EntityKey, kind: PeriodKind) -> list[Period]:
        query = (
            select(status_periods)
            .where(status_periods.c.entity_id == key.id, status_periods.c.kind == str(kind))
            .order_by(status_periods.c.started_at, status_periods.c.id)
        )
        with self.connection() as conn:
            rows = conn.execute(query).fetchall()
        return [self._period(row) for row in rows]

    def members_of(self, key: EntityKey, relation: Relation) -> list[Entity]:
        query = (
            select(entities.c.id, entities.c.type, entities.c.name)
            .join(relationships, relationships.c.target_id == entities.c.id)
            .where(
                relationships.c.source_id == key.id,
                relationships.c.relation == str(relation),
                relationships.c.left_at.is_(None),
            )
            .order_by(relationships.c.id)
        )
        with self.connection() as conn:
            rows = conn.execute(query).fetchall()
        return [build_entity(self, row.type, row.id, row.name) for row in rows]

    def containers_of(
        self,
        key: EntityKey,
        relation: Relation,
        container_type: EntityType,
    ) -> list[Entity]:
        query = (
            select(entities.c.id, entities.c.type, entities.c.name)
            .join(relationships, relationships.c.source_id == entities.c.id)
            .where(
                relationships.c.target_id == key.id,
                relationships.c.relation == str(relation),
                relationships.c.left_at.is_(None),
                entities.c.type == str(container_type),
            )
            .order_by(relationships.c.id)
        )
        with self.connection() as conn:
            rows = conn.execute(query).fetchall()
        return [build_entity(self, row.type, row.id, row.name) for row in rows]

    @staticmethod
    def _period(row: Any) -> Period:
        started = _parse(row.started_at)
        assert started is not None
        return Period(
            kind=PeriodKind(row.kind),
            started_at=started,
            ended_at=_parse(row.ended_at),
            notes=row.notes,
        )
