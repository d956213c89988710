"""Domain errors for the venue jukebox.

All exceptions inherit from JukeboxError.
"""

from jukebox.domain.errors.queue import (
    ConcurrentUpdateConflictError,
    InvalidPayloadError,
    InvalidTransitionError,
    QueueError,
    QueueItemNotFoundError,
    TableNotFoundError,
)

__all__: list[str] = [
    "ConcurrentUpdateConflictError",
    "InvalidPayloadError",
    "InvalidTransitionError",
    "QueueError",
    "QueueItemNotFoundError",
    "TableNotFoundError",
]
