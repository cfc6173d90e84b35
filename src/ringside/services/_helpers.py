"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    """Current UTC time as standard ISO 8601 (for audit trails, WAL rows)."""
    return datetime.now(UTC).isoformat()


def to_iso(value: datetime | None) -> str | None:
    """Render a stored timestamp for service payloads."""
    return value.isoformat() if value is not None else None
