"""Request logging and correlation id middleware.

Each request runs under the correlation id resolved from
``X-Correlation-ID`` (or a generated one), which is echoed back on the
response. Venue and table ids found in the path are bound to the
request's log context, so every line logged while serving, e.g.,
``POST /v1/venues/bar-7/queue/next`` carries ``venue_id="bar-7"``.
"""

from __future__ import annotations

import re
import time
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from jukebox.infrastructure.observability.correlation import (
    CORRELATION_HEADER,
    reset_correlation_id,
    resolve_correlation_id,
    set_correlation_id,
)

_PATH_IDS = re.compile(r"/(?P<kind>venues|tables)/(?P<value>[^/]+)")
_PATH_KEYS = {"venues": "venue_id", "tables": "table_id"}

__all__ = ["CORRELATION_HEADER", "LoggingMiddleware"]


def _path_context(path: str) -> dict[str, str]:
    return {_PATH_KEYS[m["kind"]]: m["value"] for m in _PATH_IDS.finditer(path)}


class LoggingMiddleware(BaseHTTPMiddleware):
    """Binds the correlation id and logs request start and end."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        correlation_id = resolve_correlation_id(request.headers.get(CORRELATION_HEADER))
        token = set_correlation_id(correlation_id)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**_path_context(request.url.path))

        log = structlog.get_logger().bind(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )
        log.info("request_started")
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            log.exception(
                "request_failed",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                error_type=type(exc).__name__,
            )
            raise
        else:
            log.info(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            response.headers[CORRELATION_HEADER] = correlation_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()
            reset_correlation_id(token)
