"""SQLAlchemy Core table definitions for the roster database.

Timestamps are stored as ISO-8601 UTC text. Relationship edges point from
a container or managed entity (``source_id``) to the member or manager
(``target_id``); an edge is current while ``left_at`` is NULL.
"""

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
)

metadata = MetaData()

entities = Table(
    "entities",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", Text, nullable=False),  # wrestler | manager | referee | tag_team | stable
    Column("name", Text, nullable=False),
    Column("created", Text, nullable=False),
    Column("modified", Text, nullable=False),
)

status_periods = Table(
    "status_periods",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("entity_id", Integer, ForeignKey("entities.id"), nullable=False),
    Column("kind", Text, nullable=False),  # employment | suspension | injury | retirement
    Column("started_at", Text, nullable=False),
    Column("ended_at", Text),
    Column("notes", Text),
    CheckConstraint(
        "kind IN ('employment', 'suspension', 'injury', 'retirement')",
        name="ck_status_periods_kind",
    ),
)

relationships = Table(
    "relationships",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source_id", Integer, ForeignKey("entities.id"), nullable=False),
    Column("target_id", Integer, ForeignKey("entities.id"), nullable=False),
    Column("relation", Text, nullable=False),  # wrestler | tag_team | manager
    Column("joined_at", Text, nullable=False),
    Column("left_at", Text),
)

event_wal = Table(
    "event_wal",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("hook_name", Text, nullable=False),
    Column("payload", Text, nullable=False),  # JSON
    Column("status", Text, nullable=False),
    Column("error", Text),
    Column("retries", Integer, default=0, server_default="0"),
    Column("created", Text, nullable=False),
    Column("completed", Text),
)

# --- Indexes ---

Index("ix_entities_type", entities.c.type)
Index("ix_status_periods_entity_kind", status_periods.c.entity_id, status_periods.c.kind)
Index("ix_relationships_source", relationships.c.source_id, relationships.c.relation)
Index("ix_relationships_target", relationships.c.target_id, relationships.c.relation)
Index("ix_event_wal_status", event_wal.c.status)
