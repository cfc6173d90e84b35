"""Database engine setup for SQLite with WAL mode.

SQLAlchemy Core (not ORM) is used because entities are live handles that
read state through the roster's ambient connection; there is no identity
map to keep in sync.

pysqlite's own transaction handling does not emit BEGIN in a way that
supports SAVEPOINT, so the driver's autocommit mode is enabled on connect
and BEGIN is issued from the engine's ``begin`` event instead.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine

from ringside.infrastructure.database.schema import metadata


def create_db_engine(db_path: Path | str) -> Engine:
    """Create a SQLite engine with WAL mode, foreign keys, and savepoints enabled.

    ``":memory:"`` creates an in-memory database.
    """
    url = "sqlite://" if str(db_path) == ":memory:" else f"sqlite:///{db_path}"
    engine = create_engine(url, echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _do_begin(conn: Connection) -> None:
        conn.exec_driver_sql("BEGIN")

    return engine


def init_database(db_path: Path | str) -> Engine:
    """Initialize the roster database at *db_path*.

    Creates the parent directory and all tables from :data:`schema.metadata`.
    Idempotent; safe to call on an existing database.

    Returns the engine ready for use.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_db_engine(db_path)
    metadata.create_all(engine)
    return engine
