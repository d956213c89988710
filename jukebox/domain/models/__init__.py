"""Domain models for the venue jukebox."""

from jukebox.domain.models.queue_item import (
    STATE_TRANSITION_MATRIX,
    TERMINAL_STATES,
    QueueItem,
    QueueState,
)

__all__: list[str] = [
    "QueueItem",
    "QueueState",
    "STATE_TRANSITION_MATRIX",
    "TERMINAL_STATES",
]
