"""BaseService: foundation for all ringside services.

Every service receives a :class:`Roster` at construction time. The Roster
provides ambient transactions, entity loading, and the event bus.
Orchestration entry points own their transaction boundaries; services
translate their outcomes (and any :class:`RingsideError`) into
:class:`ServiceResult` values.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ringside.domain.errors import RingsideError
from ringside.services.result import ServiceResult

if TYPE_CHECKING:
    from ringside.infrastructure.roster import Roster

logger = logging.getLogger(__name__)


class BaseService:
    """Base for service-layer classes.

    Usage::

        class RosterService(BaseService):
            def employ(self, entity_id: int) -> ServiceResult:
                return self._guarded("employ", lambda: ...)
    """

    def __init__(self, roster: Roster) -> None:
        self._roster = roster

    def _guarded(self, op: str, fn: Callable[[], dict[str, Any]]) -> ServiceResult:
        """Run *fn* and wrap its payload, turning domain errors into failures."""
        try:
            data = fn()
        except RingsideError as exc:
            logger.debug("%s failed: %s", op, exc, exc_info=True)
            return ServiceResult.failure(op, exc.code, str(exc))
        return ServiceResult.success(op, data)
