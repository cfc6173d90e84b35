"""Error taxonomy for the orchestration engine.

- ConfigurationError: programming defects (unknown transition, missing
  repository or mutation, runaway cascades). Fatal, never retried.
- ValidationError: business-rule violations. Expected; surfaced to the
  caller and aborts the enclosing transaction.
- CompensationError: a best-effort compensation failed. Logged by the
  action pipeline and never raised out of it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ringside.domain.entities import Entity


class RingsideError(Exception):
    """Base class for all ringside errors.

    ``code`` is the stable identifier used in ``ServiceError.code``.
    """

    code = "RINGSIDE_ERROR"


class ConfigurationError(RingsideError):
    """Raised for programming defects in the orchestration wiring."""

    code = "CONFIGURATION_ERROR"


class CascadeDepthError(ConfigurationError):
    """Raised when a cascade chain exceeds the configured depth limit."""


class EntityNotFoundError(RingsideError):
    """Raised when an entity ID does not exist in the roster."""

    code = "NOT_FOUND"


class CompensationError(RingsideError):
    """Raised (and caught) when a compensating action fails."""

    code = "COMPENSATION_FAILED"

    def __init__(self, index: int, original: BaseException) -> None:
        super().__init__(f"Compensation for operation {index} failed: {original}")
        self.index = index
        self.original = original


class ValidationError(RingsideError):
    """Raised when a business rule vetoes an operation."""

    code = "VALIDATION_FAILED"


class InvalidFilterError(ValidationError):
    """Raised for an unsupported status literal passed to a collection filter."""


class InvalidDateRangeError(ValidationError):
    """Raised when an end date precedes its start date."""


class MembershipConflictError(ValidationError):
    """Raised when a relationship edit conflicts with current membership."""


def _describe(entity: Entity | None) -> str:
    if entity is None:
        return "This entity"
    return f"{entity.entity_type.label} '{entity.name}'"


class TransitionError(ValidationError):
    """Base for guard failures raised by ``ensure_can_be_*`` checks."""

    action = "changed"

    @classmethod
    def because(cls, reason: str, entity: Entity | None = None) -> TransitionError:
        """``<Type> '<name>' cannot be <action>: <reason>.``"""
        return cls(f"{_describe(entity)} cannot be {cls.action}: {reason}.")

    @classmethod
    def unsupported(cls, entity: Entity) -> TransitionError:
        """The entity type lacks the capability this transition requires."""
        return cls(f"{entity.entity_type.label} entities cannot be {cls.action}.")


class CannotBeEmployedError(TransitionError):
    action = "employed"


class CannotBeReleasedError(TransitionError):
    action = "released"


class CannotBeSuspendedError(TransitionError):
    action = "suspended"


class CannotBeReinstatedError(TransitionError):
    action = "reinstated"


class CannotBeInjuredError(TransitionError):
    action = "injured"


class CannotBeRetiredError(TransitionError):
    action = "retired"
