"""Built-in audit plugin.

Writes one structured log line per committed lifecycle event. The entries
are also kept in memory so a long-running caller can inspect what happened
since the roster was opened.
"""

from __future__ import annotations

from typing import Any

import pluggy
import structlog

hookimpl = pluggy.HookimplMarker("ringside")

log = structlog.get_logger("ringside.audit")


class AuditPlugin:
    """Structured audit trail of roster lifecycle events."""

    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []

    def _record(self, event: str, **fields: Any) -> None:
        self.entries.append({"event": event, **fields})
        log.info(event, **fields)

    @hookimpl
    def post_transition(
        self,
        entity_type: str,
        entity_id: int,
        transition: str,
        effective_date: str,
    ) -> None:
        self._record(
            "roster.transition",
            entity_type=entity_type,
            entity_id=entity_id,
            transition=transition,
            effective_date=effective_date,
        )

    @hookimpl
    def post_stable_merge(self, primary_id: int, secondary_id: int) -> None:
        self._record("stable.merge", primary_id=primary_id, secondary_id=secondary_id)

    @hookimpl
    def post_stable_split(self, original_id: int, new_stable_id: int) -> None:
        self._record("stable.split", original_id=original_id, new_stable_id=new_stable_id)

    @hookimpl
    def post_pipeline(self, succeeded: list[int], failed: list[int]) -> None:
        self._record("pipeline.complete", succeeded=succeeded, failed=failed)
