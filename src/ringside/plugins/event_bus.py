"""WAL-backed event dispatch via pluggy.

Events are written to the ``event_wal`` table before dispatch so no
lifecycle event is lost if a hook fails or the process exits mid-flight.
Transition events are recorded inside the roster transaction that
produced them and delivered after it commits; ``drain()`` retries
pending and failed events.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert, select, update

from ringside.infrastructure.database.schema import event_wal
from ringside.services._helpers import now_iso

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine

    from ringside.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Synchronous WAL-backed hook dispatch.

    Parameters:
        engine: SQLAlchemy engine with the ``event_wal`` table.
        plugin_manager: Loaded PluginManager for hook dispatch.
        max_retries: Attempts before an event is marked ``dead_letter``.
    """

    def __init__(
        self,
        engine: Engine,
        plugin_manager: PluginManager,
        *,
        max_retries: int = 3,
    ) -> None:
        self._engine = engine
        self._pm = plugin_manager
        self._max_retries = max_retries

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record(self, conn: Connection, hook_name: str, payload: dict[str, Any]) -> int:
        """Insert a pending event on *conn* (the caller's transaction).

        The row disappears with the transaction if it rolls back.
        Returns the WAL event row id.
        """
        result = conn.execute(
            insert(event_wal).values(
                hook_name=hook_name,
                payload=json.dumps(payload),
                status="pending",
                retries=0,
                created=now_iso(),
            )
        )
        assert result.lastrowid is not None
        return result.lastrowid

    def deliver(self, event_id: int, hook_name: str, payload: dict[str, Any]) -> None:
        """Call the hook for a recorded event and update its WAL status."""
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            self._mark_completed(event_id)
            return

        try:
            hook_fn(**payload)
        except Exception as exc:
            logger.warning("Hook %s failed: %s", hook_name, exc)
            self._mark_failed(event_id, str(exc))
        else:
            self._mark_completed(event_id)

    def drain(self) -> list[dict[str, Any]]:
        """Retry pending/failed events.

        Returns a summary list of ``{id, hook_name, status}`` for each retried event.
        """
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(event_wal.c.id, event_wal.c.hook_name, event_wal.c.payload)
                .where(event_wal.c.status.in_(["pending", "failed"]))
                .order_by(event_wal.c.id)
            ).fetchall()

        results: list[dict[str, Any]] = []
        for row in rows:
            self.deliver(row.id, row.hook_name, json.loads(row.payload))
            with self._engine.connect() as conn:
                status = conn.execute(
                    select(event_wal.c.status).where(event_wal.c.id == row.id)
                ).scalar_one()
            results.append({"id": row.id, "hook_name": row.hook_name, "status": status})

        return results

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _mark_completed(self, event_id: int) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(status="completed", completed=now_iso())
            )

    def _mark_failed(self, event_id: int, error: str) -> None:
        """Increment retries, mark failed or dead_letter."""
        with self._engine.begin() as conn:
            retries = conn.execute(
                select(event_wal.c.retries).where(event_wal.c.id == event_id)
            ).scalar_one()

            new_retries = retries + 1
            new_status = "dead_letter" if new_retries >= self._max_retries else "failed"

            conn.execute(
                update(event_wal)
                .where(event_wal.c.id == event_id)
                .values(
                    status=new_status,
                    error=error,
                    retries=new_retries,
                    completed=now_iso() if new_status == "dead_letter" else None,
                )
            )
