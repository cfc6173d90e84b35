"""Effective-date resolution and the clock collaborator.

Every operation resolves its effective date the same way: an explicit
value wins, otherwise "now" from the injected clock. Dates are never
inferred from unrelated fields.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime, time
from typing import Protocol

from ringside.domain.errors import InvalidDateRangeError, ValidationError


class Clock(Protocol):
    """Source of "now" for default effective dates and status checks."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


@dataclass
class FixedClock:
    """A clock pinned to one instant (tests, replays, scheduled jobs)."""

    instant: datetime

    def now(self) -> datetime:
        return self.instant

    def advance_to(self, instant: datetime) -> None:
        self.instant = normalize(instant)


def normalize(value: date | datetime) -> datetime:
    """Coerce a date or naive datetime to an aware UTC datetime."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def effective_date(value: date | datetime | None, clock: Clock) -> datetime:
    """Return *value* (normalized to UTC) or the clock's "now"."""
    if value is None:
        return normalize(clock.now())
    return normalize(value)


def is_valid_date_range(start: datetime, end: datetime) -> bool:
    return normalize(start) <= normalize(end)


def ensure_valid_date_range(start: datetime, end: datetime) -> None:
    """Raise :class:`InvalidDateRangeError` unless ``start <= end``."""
    if not is_valid_date_range(start, end):
        msg = (
            f"End date ({normalize(end).date().isoformat()}) must be after or equal "
            f"to start date ({normalize(start).date().isoformat()})"
        )
        raise InvalidDateRangeError(msg)


def parse_date(raw: str) -> datetime:
    """Parse an ISO date or datetime string (CLI ``--date`` values)."""
    try:
        return normalize(datetime.fromisoformat(raw))
    except ValueError:
        msg = f"Invalid date '{raw}' (expected ISO format, e.g. 2024-01-31)"
        raise ValidationError(msg) from None
