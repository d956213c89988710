"""Structured logging shared by application services."""

from __future__ import annotations

from uuid import UUID

import structlog

from jukebox.infrastructure.observability.correlation import get_correlation_id


class LoggingMixin:
    """Gives a service a logger bound to its class name and component.

    Call ``_init_logger(component)`` from ``__init__``; then, per operation:

        log = self._log_operation("take_next", venue_id=venue_id)
        log.info("take_next_completed", item_id=item.id)

    Attributes:
        _log: Logger bound with ``service`` and ``component``.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str) -> None:
        self._log = structlog.get_logger().bind(
            service=type(self).__name__,
            component=component,
        )

    def _log_operation(
        self, operation: str, **context: object
    ) -> structlog.BoundLogger:
        """Logger for one operation, carrying the request correlation id.

        UUID values in ``context`` are bound as strings so JSON output
        stays flat.
        """
        bound = {
            key: str(value) if isinstance(value, UUID) else value
            for key, value in context.items()
        }
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **bound,
        )
