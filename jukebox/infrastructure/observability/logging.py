"""structlog setup for the jukebox service.

Production output is one JSON object per line:

    {"event": "take_next_completed", "level": "info",
     "timestamp": "2026-01-01T21:14:03.120Z", "app": "venue-jukebox",
     "correlation_id": "...", "service": "SchedulerService",
     "operation": "take_next", "venue_id": "venue-1", ...}

Development output goes through the coloured console renderer.

Environment:
    ENVIRONMENT: "production" (default) or "development".
    LOG_LEVEL: standard level name, INFO by default.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, cast

import structlog
from structlog.typing import Processor

from jukebox.infrastructure.observability.correlation import add_correlation_id

APP_NAME = "venue-jukebox"
ENVIRONMENT_ENV = "ENVIRONMENT"
LOG_LEVEL_ENV = "LOG_LEVEL"

# Library loggers routed through the stdlib handler at the same level
_STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "sqlalchemy.engine")


def resolve_log_level(name: str | None = None) -> int:
    """Map a level name (or LOG_LEVEL) to a logging level; unknown names give INFO."""
    level_name = (name or os.environ.get(LOG_LEVEL_ENV) or "INFO").upper()
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def _add_app_name(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict.setdefault("app", APP_NAME)
    return event_dict


def configure_structlog(
    environment: str | None = None,
    level: str | None = None,
) -> None:
    """Configure structlog once at startup.

    Args:
        environment: "production" for JSON lines, anything else for console
            output. Falls back to ENVIRONMENT, then "production".
        level: Level name. Falls back to LOG_LEVEL, then INFO.
    """
    environment = environment or os.environ.get(ENVIRONMENT_ENV, "production")
    log_level = resolve_log_level(level)
    production = environment == "production"

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        cast(Processor, _add_app_name),
        cast(Processor, add_correlation_id),
        structlog.processors.StackInfoRenderer(),
    ]
    if production:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(name)s %(levelname)s %(message)s"))
    for name in _STDLIB_LOGGERS:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [handler]
        stdlib_logger.setLevel(log_level)
        stdlib_logger.propagate = False
