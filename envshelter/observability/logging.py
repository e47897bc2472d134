"""Structured logging with text or JSON output."""

from __future__ import annotations

import contextvars
import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Generator, Optional, TextIO

import structlog

# Context variable for correlation IDs
correlation_id: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add correlation ID to log events."""
    corr_id = correlation_id.get()
    if corr_id:
        event_dict["correlation_id"] = corr_id
    return event_dict


def _shared_processors() -> list[Any]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(
    level: str = "WARNING",
    fmt: str = "text",
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """
    Install a single structlog-rendering handler on the ``envshelter`` logger.

    Records from plain ``logging`` loggers and from structlog loggers obtained
    through ``get_logger`` go through the same processors and renderer.
    Loggers outside the package are left alone.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        fmt: ``"text"`` or ``"json"``
        stream: Output stream, stderr by default so masked output on
            stdout stays clean

    Returns:
        The installed handler
    """
    shared = _shared_processors()

    renderers: list[Any] = [structlog.stdlib.ProcessorFormatter.remove_processors_meta]
    if fmt == "json":
        renderers.extend(
            [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        )
    else:
        renderers.append(structlog.dev.ConsoleRenderer(colors=False))

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=renderers,
        foreign_pre_chain=[*shared, structlog.stdlib.ExtraAdder()],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("envshelter")
    package_logger.handlers.clear()
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    return handler


def get_logger(name: str) -> Any:
    """Get a structlog logger backed by the stdlib logger ``name``."""
    return structlog.stdlib.get_logger(name)


@contextmanager
def correlation_context(corr_id: Optional[str] = None) -> Generator[str, None, None]:
    """Context manager for correlation ID."""
    if corr_id is None:
        corr_id = str(uuid.uuid4())

    token = correlation_id.set(corr_id)
    try:
        yield corr_id
    finally:
        correlation_id.reset(token)
