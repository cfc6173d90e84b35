"""Roster telemetry: timed span trees over service calls and their cascades.

``@traced`` opens a root span around a service method. Every
:class:`~ringside.orchestration.transition.StatusTransitionPipeline` run
under it adds a child through :func:`trace_transition`, tagged with the
transition, the entity and the cascade depth, so one verbose action shows
the whole cascade tree it produced. The tree is returned in
``ServiceResult.meta["telemetry"]``.

Off by default; a disabled check costs one ContextVar read.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from ringside.domain.capabilities import Entity
from ringside.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)

APPLIED = "applied"
SKIPPED = "skipped"
FAILED = "failed"

_TAGS = ("transition", "entity_type", "entity_id", "depth", "outcome")


@dataclass
class Span:
    """One timed node: a service call, or one transition applied to one entity.

    Transition spans carry the tags in ``_TAGS``; ``depth`` is 0 for the
    action the caller asked for and grows by one per cascade level.
    """

    name: str
    parent: Span | None = None
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    transition: str | None = None
    entity_type: str | None = None
    entity_id: int | None = None
    depth: int | None = None
    outcome: str | None = None

    @classmethod
    def for_transition(
        cls, transition: str, entity: Entity, depth: int, parent: Span | None = None
    ) -> Span:
        entity_type = str(entity.entity_type)
        return cls(
            name=f"{transition} {entity_type}#{entity.id}",
            parent=parent,
            transition=str(transition),
            entity_type=entity_type,
            entity_id=entity.id,
            depth=depth,
        )

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self, outcome: str | None = None) -> None:
        self.end_time = time.perf_counter()
        if outcome is not None:
            self.outcome = outcome

    def applied_count(self) -> int:
        """Transitions applied in this subtree."""
        own = 1 if self.outcome == APPLIED else 0
        return own + sum(child.applied_count() for child in self.children)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
        }
        for tag in _TAGS:
            value = getattr(self, tag)
            if value is not None:
                result[tag] = value
        if self.children:
            result["children"] = [c.to_dict() for c in self.children]
        return result


def _active_parent() -> Span | None:
    if not _enabled.get():
        return None
    return _current_span.get()


@contextmanager
def trace_transition(transition: str, entity: Entity, depth: int) -> Generator[Span | None]:
    """Time one pipeline run as a child of the active span.

    Yields None when telemetry is off or no service span is open. The span
    ends ``applied``, or ``failed`` when the body raises.
    """
    parent = _active_parent()
    if parent is None:
        yield None
        return

    span = Span.for_transition(transition, entity, depth, parent)
    parent.children.append(span)
    token = _current_span.set(span)
    try:
        yield span
    except BaseException:
        span.end(FAILED)
        raise
    else:
        span.end(APPLIED)
    finally:
        _current_span.reset(token)
        _log_transition(span)


def note_skipped(transition: str, entity: Entity, depth: int) -> None:
    """Record a zero-length ``skipped`` span for a transition the chain already applied."""
    parent = _active_parent()
    if parent is None:
        return
    span = Span.for_transition(transition, entity, depth, parent)
    span.end_time = span.start_time
    span.outcome = SKIPPED
    parent.children.append(span)
    _log_transition(span)


def _inject_meta(result: ServiceResult, span: Span) -> ServiceResult:
    """Return a copy of *result* with the span tree merged into meta (results are frozen)."""
    merged_meta = {**(result.meta or {}), "telemetry": span.to_dict()}
    return result.model_copy(update={"meta": merged_meta})


def _log_transition(span: Span) -> None:
    structlog.get_logger("ringside.telemetry").debug(
        "transition.span",
        transition=span.transition,
        entity_type=span.entity_type,
        entity_id=span.entity_id,
        depth=span.depth,
        outcome=span.outcome,
        duration_ms=round(span.duration_ms, 2),
    )


def _log_call(span: Span, *, ok: bool) -> None:
    structlog.get_logger("ringside.telemetry").debug(
        "service.span",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        transitions=span.applied_count(),
    )


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Decorator: time a service method and inject its span tree into ServiceResult.meta."""

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        token = _current_span.set(span)
        try:
            result = func(*args, **kwargs)
        except Exception:
            span.end()
            _current_span.reset(token)
            _log_call(span, ok=False)
            raise

        span.end()
        _current_span.reset(token)

        if isinstance(result, ServiceResult):
            result = _inject_meta(result, span)  # type: ignore[assignment]
        _log_call(span, ok=True)

        return result

    return wrapper


def enable_telemetry() -> None:
    """Enable telemetry (called by AppContext when ``--verbose`` is set)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)
