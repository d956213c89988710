"""Request correlation ids.

Every HTTP request to the jukebox runs under one correlation id, kept
in a contextvar so service and store log lines emitted while handling
the request can be tied back to it. Table phones and operator consoles
may send their own id in ``X-Correlation-ID``; anything that does not
look like an opaque token is replaced with a fresh one so header
contents never end up verbatim in the logs.
"""

from __future__ import annotations

import re
from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4

CORRELATION_HEADER = "X-Correlation-ID"

_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def new_correlation_id() -> str:
    """Return a fresh UUID4 correlation id."""
    return str(uuid4())


def resolve_correlation_id(header_value: str | None) -> str:
    """Pick the correlation id for an incoming request.

    Args:
        header_value: Raw value of the correlation header, if any.

    Returns:
        The client-supplied id when it is a plain token of at most
        128 characters, otherwise a newly generated one.
    """
    if header_value and _ACCEPTED_ID.match(header_value):
        return header_value
    return new_correlation_id()


def get_correlation_id() -> str:
    """Correlation id of the current context ("" outside a request)."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> Token[str]:
    """Bind a correlation id to the current context.

    Returns:
        Token for reset_correlation_id().
    """
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token[str]) -> None:
    """Restore the correlation id that was current before set_correlation_id()."""
    _correlation_id.reset(token)


def add_correlation_id(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor stamping the current correlation id.

    An id bound explicitly on the logger wins over the context one.
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
