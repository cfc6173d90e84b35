"""Pluggy hook specifications for ringside lifecycle events.

Events are queued on the roster transaction and dispatched only after
the outermost transaction commits.
"""

from __future__ import annotations

import pluggy

hookspec = pluggy.HookspecMarker("ringside")


class RingsideHookSpec:
    """Hook specifications for the ringside plugin system."""

    @hookspec
    def post_transition(
        self,
        entity_type: str,
        entity_id: int,
        transition: str,
        effective_date: str,
    ) -> None:
        """Called after a status transition is applied to one entity."""

    @hookspec
    def post_stable_merge(self, primary_id: int, secondary_id: int) -> None:
        """Called after two stables are merged."""

    @hookspec
    def post_stable_split(self, original_id: int, new_stable_id: int) -> None:
        """Called after a stable is split into a new one."""

    @hookspec
    def post_pipeline(self, succeeded: list[int], failed: list[int]) -> None:
        """Called after an action pipeline commits, with operation indexes."""
