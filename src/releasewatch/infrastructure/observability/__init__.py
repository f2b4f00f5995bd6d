"""Observability: logging setup, correlation ids and log message templates."""

from .log_messages import LogMessages, LogTemplate
from .logging import configure_logging, get_correlation_id, set_correlation_id

__all__ = [
    "LogMessages",
    "LogTemplate",
    "configure_logging",
    "get_correlation_id",
    "set_correlation_id",
]
