"""Structured logging with analysis_id support.

Uses structlog for structured logging with JSON or console output.
Every log entry emitted during an analysis carries the ``analysis_id``
of the invocation that produced it.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Iterator

import structlog

_analysis_id: ContextVar[str] = ContextVar("analysis_id", default="")


def get_analysis_id() -> str:
    """Get the analysis ID bound to the current context ("" outside one)."""
    return _analysis_id.get()


def set_analysis_id(analysis_id: str) -> None:
    """Bind an analysis ID to the current context."""
    _analysis_id.set(analysis_id)


@contextmanager
def analysis_context(analysis_id: str) -> Iterator[str]:
    """Bind an analysis ID for the duration of a block, then restore."""
    token = _analysis_id.set(analysis_id)
    try:
        yield analysis_id
    finally:
        _analysis_id.reset(token)


def _add_analysis_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor: add analysis_id when one is bound."""
    aid = get_analysis_id()
    if aid:
        event_dict.setdefault("analysis_id", aid)
    return event_dict


def setup_logging(
    level: str = "INFO",
    format: str = "console",
) -> None:
    """Configure structured logging for the engine.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        format: "json" for machine consumption, "console" for humans.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _add_analysis_id,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Any
    if format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib ``logging.getLogger(__name__)`` records through the
    # same processor chain so engine modules need no structlog import.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.ExtraAdder(),
            *shared,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger for a module."""
    return structlog.get_logger(name)
