"""Roster status lifecycle.

Status is always computed from an entity's open state periods, never
stored. The six transitions are the only legal edges between statuses;
``retired`` and ``released`` re-open through ``employ``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from ringside.domain.capabilities import (
    Employable,
    Entity,
    Injurable,
    Retirable,
    Suspendable,
)
from ringside.domain.errors import (
    CannotBeEmployedError,
    CannotBeInjuredError,
    CannotBeReinstatedError,
    CannotBeReleasedError,
    CannotBeRetiredError,
    CannotBeSuspendedError,
    ConfigurationError,
    TransitionError,
)
from ringside.domain.types import Transition


class RosterStatus(StrEnum):
    """Computed lifecycle status of one entity."""

    UNEMPLOYED = "unemployed"
    FUTURE_EMPLOYMENT = "future_employment"
    EMPLOYED = "employed"
    SUSPENDED = "suspended"
    INJURED = "injured"
    RETIRED = "retired"
    RELEASED = "released"


# --- Transition map ---

STATUS_TRANSITIONS: dict[str, list[str]] = {
    "unemployed": ["employ"],
    "future_employment": [],
    "employed": ["suspend", "release", "retire", "injure"],
    "suspended": ["reinstate", "release", "retire"],
    "injured": ["reinstate", "release", "retire"],
    "retired": ["employ"],  # re-opens employment
    "released": ["employ", "retire"],
}


@dataclass(frozen=True)
class TransitionRule:
    """How one transition is checked and applied.

    ``capability`` is the mixin the entity must declare, ``guard`` the
    ``ensure_can_be_*`` method on it, and ``mutation`` the repository
    method that records the state change.
    """

    transition: Transition
    capability: type[Entity]
    guard: str
    mutation: str
    error: type[TransitionError]
    ends_retirement: bool = False


TRANSITION_RULES: dict[Transition, TransitionRule] = {
    Transition.EMPLOY: TransitionRule(
        Transition.EMPLOY,
        Employable,
        "ensure_can_be_employed",
        "create_employment",
        CannotBeEmployedError,
        ends_retirement=True,
    ),
    Transition.SUSPEND: TransitionRule(
        Transition.SUSPEND,
        Suspendable,
        "ensure_can_be_suspended",
        "create_suspension",
        CannotBeSuspendedError,
    ),
    Transition.RELEASE: TransitionRule(
        Transition.RELEASE,
        Employable,
        "ensure_can_be_released",
        "create_release",
        CannotBeReleasedError,
    ),
    Transition.RETIRE: TransitionRule(
        Transition.RETIRE,
        Retirable,
        "ensure_can_be_retired",
        "create_retirement",
        CannotBeRetiredError,
    ),
    Transition.INJURE: TransitionRule(
        Transition.INJURE,
        Injurable,
        "ensure_can_be_injured",
        "create_injury",
        CannotBeInjuredError,
    ),
    Transition.REINSTATE: TransitionRule(
        Transition.REINSTATE,
        Suspendable,
        "ensure_can_be_reinstated",
        "create_reinstatement",
        CannotBeReinstatedError,
    ),
}


def rule_for(transition: str) -> TransitionRule:
    """Look up the rule for a transition name.

    Raises :class:`ConfigurationError` for names outside the six transitions.
    """
    try:
        return TRANSITION_RULES[Transition(transition)]
    except ValueError:
        msg = f"Unknown transition '{transition}'"
        raise ConfigurationError(msg) from None


def is_valid_transition(
    current: str,
    transition: str,
    transitions: dict[str, list[str]] = STATUS_TRANSITIONS,
) -> bool:
    """Check if *transition* is an edge out of status *current*."""
    allowed = transitions.get(current, [])
    return transition in allowed


def compute_status(entity: Entity) -> RosterStatus:
    """Compute an entity's status from its state periods.

    Precedence: retired, injured, suspended, employed, future employment,
    released, unemployed.
    """
    if isinstance(entity, Retirable) and entity.is_retired():
        return RosterStatus.RETIRED
    if isinstance(entity, Injurable) and entity.is_injured():
        return RosterStatus.INJURED
    if isinstance(entity, Suspendable) and entity.is_suspended():
        return RosterStatus.SUSPENDED
    if not isinstance(entity, Employable):
        return RosterStatus.UNEMPLOYED
    if entity.is_employed():
        return RosterStatus.EMPLOYED
    if entity.has_future_employment():
        return RosterStatus.FUTURE_EMPLOYMENT
    if entity.is_released():
        return RosterStatus.RELEASED
    return RosterStatus.UNEMPLOYED


def available_transitions(entity: Entity) -> list[Transition]:
    """Transitions whose capability, guard and status edge currently accept *entity*."""
    status = compute_status(entity)
    allowed: list[Transition] = []
    for transition, rule in TRANSITION_RULES.items():
        if not isinstance(entity, rule.capability):
            continue
        try:
            getattr(entity, rule.guard)()
        except TransitionError:
            continue
        if not is_valid_transition(status, transition):
            continue
        allowed.append(transition)
    return allowed
