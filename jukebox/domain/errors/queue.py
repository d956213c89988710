"""Queue scheduling errors.

Error taxonomy for the fair video scheduler. Every error kind is
raised to the caller; none is converted into an empty result. An empty
queue is not an error and is reported as ``None`` by the service.

- TableNotFoundError: the directory has no (active) table for the id/code
- InvalidPayloadError: the payload validator rejected the submission
- QueueItemNotFoundError: no queue item with the given id
- InvalidTransitionError: the state machine forbids the transition
- ConcurrentUpdateConflictError: a conditional update lost a race
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from jukebox.domain.exceptions import JukeboxError

if TYPE_CHECKING:
    from jukebox.domain.models.queue_item import QueueState


class QueueError(JukeboxError):
    """Base class for queue scheduling errors."""

    pass


class TableNotFoundError(QueueError):
    """Raised when a table cannot be resolved to a venue.

    Attributes:
        table_ref: The table id or table code that failed to resolve.
    """

    def __init__(self, table_ref: str) -> None:
        self.table_ref = table_ref
        super().__init__(f"Table not found: {table_ref}")


class InvalidPayloadError(QueueError):
    """Raised when a submitted payload is rejected.

    Attributes:
        payload: The rejected payload.
        reason: Why the payload was rejected.
    """

    def __init__(self, payload: str, reason: str) -> None:
        self.payload = payload
        self.reason = reason
        super().__init__(f"Invalid payload {payload!r}: {reason}")


class QueueItemNotFoundError(QueueError):
    """Raised when a queue item does not exist.

    Attributes:
        item_id: The missing item id.
    """

    def __init__(self, item_id: UUID) -> None:
        self.item_id = item_id
        super().__init__(f"Queue item not found: {item_id}")


class InvalidTransitionError(QueueError):
    """Raised when a queue item cannot move to the requested state.

    Callers can tell "already done" (``is_terminal``) apart from
    "not allowed from here" (a non-terminal ``from_state``).

    Attributes:
        item_id: The item whose transition was rejected.
        from_state: Current state of the item.
        to_state: Requested target state.
        allowed_transitions: Valid target states from ``from_state``.
    """

    def __init__(
        self,
        item_id: UUID,
        from_state: QueueState,
        to_state: QueueState,
        allowed_transitions: list[QueueState] | None = None,
    ) -> None:
        self.item_id = item_id
        self.from_state = from_state
        self.to_state = to_state
        self.allowed_transitions = allowed_transitions or []

        allowed_str = (
            f" Valid transitions: {[s.value for s in self.allowed_transitions]}"
            if self.allowed_transitions
            else ""
        )
        super().__init__(
            f"Invalid transition for queue item {item_id}: "
            f"{from_state.value} -> {to_state.value}.{allowed_str}"
        )

    @property
    def is_terminal(self) -> bool:
        """Whether the item had already reached a terminal state."""
        return self.from_state.is_terminal()


class ConcurrentUpdateConflictError(QueueError):
    """Raised when a conditional update finds state it did not expect.

    This is a transient error produced by benign races between
    concurrent callers. The scheduler re-reads and retries a bounded
    number of times before surfacing it.

    Attributes:
        item_id: The item being updated.
        expected_state: The state the update was conditioned on.
        operation: The operation that lost the race.
    """

    transient = True

    def __init__(
        self,
        item_id: UUID,
        expected_state: QueueState,
        operation: str = "state_update",
    ) -> None:
        self.item_id = item_id
        self.expected_state = expected_state
        self.operation = operation
        super().__init__(
            f"Concurrent update detected for queue item {item_id} "
            f"during {operation}. Expected state: {expected_state.value}."
        )
