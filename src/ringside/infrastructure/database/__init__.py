"""SQLite database engine and schema via SQLAlchemy Core."""

from ringside.infrastructure.database.engine import create_db_engine, init_database
from ringside.infrastructure.database.schema import (
    entities,
    event_wal,
    metadata,
    relationships,
    status_periods,
)

__all__ = [
    "create_db_engine",
    "entities",
    "event_wal",
    "init_database",
    "metadata",
    "relationships",
    "status_periods",
]
