"""Capability model: what an entity supports.

An entity's capability set is the set of mixins its class declares.
Orchestration code checks capabilities with ``isinstance`` before it calls
a status predicate or traverses a relationship, so no code path touches a
relationship an entity type does not declare.

Entities are live handles: every predicate reads current state through the
:class:`StateSource` the entity was loaded from (the roster store), using the
ambient transaction when one is active.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar, Protocol

from ringside.domain.errors import (
    CannotBeEmployedError,
    CannotBeInjuredError,
    CannotBeReinstatedError,
    CannotBeReleasedError,
    CannotBeRetiredError,
    CannotBeSuspendedError,
)
from ringside.domain.types import EntityKey, EntityType, PeriodKind, Relation

if TYPE_CHECKING:
    from collections.abc import Sequence


@dataclass(frozen=True)
class Period:
    """One state period (employment, suspension, injury, retirement)."""

    kind: PeriodKind
    started_at: datetime
    ended_at: datetime | None = None
    notes: str | None = None


class StateSource(Protocol):
    """Read access to entity state, implemented by the persistence layer."""

    def now(self) -> datetime: ...

    def open_period(self, key: EntityKey, kind: PeriodKind) -> Period | None: ...

    def periods(self, key: EntityKey, kind: PeriodKind) -> Sequence[Period]: ...

    def members_of(self, key: EntityKey, relation: Relation) -> list[Entity]: ...

    def containers_of(
        self,
        key: EntityKey,
        relation: Relation,
        container_type: EntityType,
    ) -> list[Entity]: ...


class Entity:
    """Base roster entity: identity plus the state source it reads from."""

    entity_type: ClassVar[EntityType]

    def __init__(self, state: StateSource, entity_id: int, name: str) -> None:
        self._state = state
        self.id = entity_id
        self.name = name

    @property
    def key(self) -> EntityKey:
        return EntityKey(self.entity_type, self.id)

    @property
    def state(self) -> StateSource:
        return self._state

    def _open_since(self, kind: PeriodKind) -> Period | None:
        """The open period of *kind* that has already started, if any."""
        period = self._state.open_period(self.key, kind)
        if period is None or period.started_at > self._state.now():
            return None
        return period

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entity):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id}, name={self.name!r})"


# ---------------------------------------------------------------------------
# Status capabilities
# ---------------------------------------------------------------------------


class Employable(Entity):
    """Can be employed and released."""

    def is_employed(self) -> bool:
        return self._open_since(PeriodKind.EMPLOYMENT) is not None

    def has_future_employment(self) -> bool:
        period = self._state.open_period(self.key, PeriodKind.EMPLOYMENT)
        return period is not None and period.started_at > self._state.now()

    def is_unemployed(self) -> bool:
        """Never employed."""
        return not self._state.periods(self.key, PeriodKind.EMPLOYMENT)

    def is_not_in_employment(self) -> bool:
        return not self.is_employed() and not self.has_future_employment()

    def is_released(self) -> bool:
        if not self.is_not_in_employment() or self.is_unemployed():
            return False
        return not (isinstance(self, Retirable) and self.is_retired())

    def ensure_can_be_employed(self) -> None:
        if self.is_employed():
            raise CannotBeEmployedError.because("already employed", self)
        if self.has_future_employment():
            raise CannotBeEmployedError.because("has a future employment", self)

    def ensure_can_be_released(self) -> None:
        if self.has_future_employment():
            raise CannotBeReleasedError.because("has a future employment", self)
        if not self.is_employed():
            raise CannotBeReleasedError.because("not currently employed", self)
        if isinstance(self, Retirable) and self.is_retired():
            raise CannotBeReleasedError.because("retired", self)


class Suspendable(Employable):
    """Can be suspended and reinstated."""

    def is_suspended(self) -> bool:
        return self._open_since(PeriodKind.SUSPENSION) is not None

    def ensure_can_be_suspended(self) -> None:
        if self.is_unemployed():
            raise CannotBeSuspendedError.because("unemployed", self)
        if isinstance(self, Retirable) and self.is_retired():
            raise CannotBeSuspendedError.because("retired", self)
        if self.has_future_employment():
            raise CannotBeSuspendedError.because("has a future employment", self)
        if self.is_released():
            raise CannotBeSuspendedError.because("released", self)
        if self.is_suspended():
            raise CannotBeSuspendedError.because("already suspended", self)
        if isinstance(self, Injurable) and self.is_injured():
            raise CannotBeSuspendedError.because("injured", self)
        self._validate_suspension_members()

    def _validate_suspension_members(self) -> None:
        """Hook for team types whose members constrain suspension."""

    def ensure_can_be_reinstated(self) -> None:
        if self.is_unemployed():
            raise CannotBeReinstatedError.because("unemployed", self)
        if isinstance(self, Retirable) and self.is_retired():
            raise CannotBeReinstatedError.because("retired", self)
        if self.has_future_employment():
            raise CannotBeReinstatedError.because("has a future employment", self)
        if self.is_released():
            raise CannotBeReinstatedError.because("released", self)
        injured = isinstance(self, Injurable) and self.is_injured()
        if not self.is_suspended() and not injured:
            raise CannotBeReinstatedError.because("neither suspended nor injured", self)


class Injurable(Employable):
    """Can be injured (individual people only)."""

    def is_injured(self) -> bool:
        return self._open_since(PeriodKind.INJURY) is not None

    def ensure_can_be_injured(self) -> None:
        if self.is_unemployed():
            raise CannotBeInjuredError.because("unemployed", self)
        if self.is_released():
            raise CannotBeInjuredError.because("released", self)
        if isinstance(self, Retirable) and self.is_retired():
            raise CannotBeInjuredError.because("retired", self)
        if self.has_future_employment():
            raise CannotBeInjuredError.because("has a future employment", self)
        if self.is_injured():
            raise CannotBeInjuredError.because("already injured", self)
        if isinstance(self, Suspendable) and self.is_suspended():
            raise CannotBeInjuredError.because("suspended", self)


class Retirable(Entity):
    """Can be retired (and un-retired by a later employment)."""

    def is_retired(self) -> bool:
        return self._open_since(PeriodKind.RETIREMENT) is not None

    def ensure_can_be_retired(self) -> None:
        if self.is_retired():
            raise CannotBeRetiredError.because("already retired", self)
        if isinstance(self, Employable):
            if self.is_unemployed():
                raise CannotBeRetiredError.because("unemployed", self)
            if self.has_future_employment():
                raise CannotBeRetiredError.because("has a future employment", self)
        self._validate_retirement_members()

    def _validate_retirement_members(self) -> None:
        """Hook for team types whose members constrain retirement."""


# ---------------------------------------------------------------------------
# Relationship capabilities
# ---------------------------------------------------------------------------


class HasManagers(Entity):
    """Has current manager assignments."""

    def current_managers(self) -> list[Entity]:
        return self._state.members_of(self.key, Relation.MANAGER)


class HasWrestlers(Entity):
    """Has current wrestlers (partners, stable members, or managed talent)."""

    def current_wrestlers(self) -> list[Entity]:
        return self._state.members_of(self.key, Relation.WRESTLER)


class HasTagTeams(Entity):
    """Has current tag teams (stable members or managed teams)."""

    def current_tag_teams(self) -> list[Entity]:
        return self._state.members_of(self.key, Relation.TAG_TEAM)


class StableMember(Entity):
    """Can belong to a stable."""

    membership_relation: ClassVar[Relation]

    def current_stable(self) -> Entity | None:
        stables = self._state.containers_of(self.key, self.membership_relation, EntityType.STABLE)
        return stables[0] if stables else None

    def is_in_stable(self) -> bool:
        return self.current_stable() is not None


class TagTeamMember(Entity):
    """Can be a tag team partner."""

    def current_tag_team(self) -> Entity | None:
        teams = self._state.containers_of(self.key, Relation.WRESTLER, EntityType.TAG_TEAM)
        return teams[0] if teams else None

    def is_in_tag_team(self) -> bool:
        return self.current_tag_team() is not None


class Capability(StrEnum):
    """Named capabilities, for reporting and string-keyed lookups."""

    EMPLOYABLE = "employable"
    SUSPENDABLE = "suspendable"
    INJURABLE = "injurable"
    RETIRABLE = "retirable"
    HAS_MANAGERS = "has_managers"
    HAS_WRESTLERS = "has_wrestlers"
    HAS_TAG_TEAMS = "has_tag_teams"
    STABLE_MEMBER = "stable_member"
    TAG_TEAM_MEMBER = "tag_team_member"


CAPABILITY_TYPES: dict[Capability, type[Entity]] = {
    Capability.EMPLOYABLE: Employable,
    Capability.SUSPENDABLE: Suspendable,
    Capability.INJURABLE: Injurable,
    Capability.RETIRABLE: Retirable,
    Capability.HAS_MANAGERS: HasManagers,
    Capability.HAS_WRESTLERS: HasWrestlers,
    Capability.HAS_TAG_TEAMS: HasTagTeams,
    Capability.STABLE_MEMBER: StableMember,
    Capability.TAG_TEAM_MEMBER: TagTeamMember,
}


def has_capability(entity: object, capability: Capability) -> bool:
    return isinstance(entity, CAPABILITY_TYPES[capability])


def capabilities_of(entity: object) -> list[Capability]:
    return [cap for cap, cls in CAPABILITY_TYPES.items() if isinstance(entity, cls)]
