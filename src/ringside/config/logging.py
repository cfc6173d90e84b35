"""structlog configuration for ringside.

Human output (colored console) by default, JSON lines with ``--log-json``;
both go to stderr. Every record carries the roster database it concerns,
and lifecycle records that name an entity get a compact ``entity`` label
(``wrestler#3``) in place of separate type and id fields.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Third-party loggers kept at WARNING even under --verbose.
QUIET_LOGGERS = ("sqlalchemy", "pluggy")


def label_entity(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Fold ``entity_type`` and ``entity_id`` into one ``entity`` field."""
    if "entity" in event_dict or "entity_type" not in event_dict:
        return event_dict
    entity_type = event_dict.pop("entity_type")
    entity_id = event_dict.pop("entity_id", None)
    event_dict["entity"] = entity_type if entity_id is None else f"{entity_type}#{entity_id}"
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        label_entity,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    database: Path | str | None = None,
) -> None:
    """Configure structlog and route stdlib logging through it.

    Args:
        verbose: ``ringside`` loggers at DEBUG instead of WARNING.
        log_json: Render JSON lines instead of console output.
        database: Bound as ``roster`` on every record when given.
    """
    shared = _shared_processors()
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if log_json
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("ringside").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.contextvars.clear_contextvars()
    if database is not None:
        structlog.contextvars.bind_contextvars(roster=str(database))
