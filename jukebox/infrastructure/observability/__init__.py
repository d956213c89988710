"""Structured logging and request correlation for the jukebox."""

from jukebox.infrastructure.observability.correlation import (
    CORRELATION_HEADER,
    add_correlation_id,
    get_correlation_id,
    new_correlation_id,
    reset_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)
from jukebox.infrastructure.observability.logging import (
    configure_structlog,
    resolve_log_level,
)

__all__: list[str] = [
    "CORRELATION_HEADER",
    "add_correlation_id",
    "configure_structlog",
    "get_correlation_id",
    "new_correlation_id",
    "reset_correlation_id",
    "resolve_correlation_id",
    "resolve_log_level",
    "set_correlation_id",
]
