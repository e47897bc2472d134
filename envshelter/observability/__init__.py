"""envshelter logging setup."""

from .logging import add_correlation_id, configure_logging, correlation_context, get_logger

__all__ = [
    "add_correlation_id",
    "configure_logging",
    "correlation_context",
    "get_logger",
]
