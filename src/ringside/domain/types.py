"""Roster entity types, transitions, and relationship enums.

These enums define the five roster entity types, the six lifecycle
transitions, the four state-period kinds, and the three relationship
kinds that connect teams and stables to their members.
"""

from __future__ import annotations

from enum import StrEnum
from typing import NamedTuple


class EntityType(StrEnum):
    """Roster entity types."""

    WRESTLER = "wrestler"
    MANAGER = "manager"
    REFEREE = "referee"
    TAG_TEAM = "tag_team"
    STABLE = "stable"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()


class Transition(StrEnum):
    """Named lifecycle state changes."""

    EMPLOY = "employ"
    SUSPEND = "suspend"
    RELEASE = "release"
    RETIRE = "retire"
    INJURE = "injure"
    REINSTATE = "reinstate"


class PeriodKind(StrEnum):
    """Kinds of state periods recorded against an entity."""

    EMPLOYMENT = "employment"
    SUSPENSION = "suspension"
    INJURY = "injury"
    RETIREMENT = "retirement"


class Relation(StrEnum):
    """Relationship edge kinds.

    Edges point from a container (tag team, stable) or a managed entity
    (wrestler, tag team) to the member or manager.
    """

    WRESTLER = "wrestler"
    TAG_TEAM = "tag_team"
    MANAGER = "manager"


class EntityKey(NamedTuple):
    """Stable identity of an entity across loads: ``(type, id)``."""

    type: EntityType
    id: int

    def __str__(self) -> str:
        return f"{self.type}:{self.id}"
