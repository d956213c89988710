"""Queue item domain model.

A queue item is one video link submitted from a table, awaiting,
undergoing, or having completed playback on its venue's shared output.

State Machine:
    PENDING -> PLAYING   (MarkPlaying / TakeNext)
    PENDING -> REMOVED   (Remove)
    PLAYING -> FINISHED  (Complete, or replaced by the next item)
    PLAYING -> REMOVED   (operator cancels active playback)

Terminal States:
    FINISHED and REMOVED admit no further transitions. Terminal items
    are kept for audit and listing but never take part in fairness
    ordering again.

Only ``state`` (and ``updated_at``) ever change after creation; the
owning table, venue and payload are fixed for the life of the item.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID


class QueueState(Enum):
    """State in the queue item lifecycle.

    States:
        PENDING: Submitted and waiting for its turn
        PLAYING: Currently occupying the venue's playback output
        FINISHED: Played to completion (terminal)
        REMOVED: Deleted by the operator or the table (terminal)
    """

    PENDING = "PENDING"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"
    REMOVED = "REMOVED"

    def is_terminal(self) -> bool:
        """Check if this state admits no further transitions.

        Returns:
            True for FINISHED and REMOVED, False otherwise.
        """
        return self in TERMINAL_STATES

    def valid_transitions(self) -> frozenset[QueueState]:
        """Get valid transitions from this state.

        Returns:
            Frozenset of states this state can transition to.
            Empty set for terminal states.
        """
        return STATE_TRANSITION_MATRIX.get(self, frozenset())


TERMINAL_STATES: frozenset[QueueState] = frozenset(
    {
        QueueState.FINISHED,
        QueueState.REMOVED,
    }
)

# Maps each state to its valid target states
STATE_TRANSITION_MATRIX: dict[QueueState, frozenset[QueueState]] = {
    QueueState.PENDING: frozenset(
        {
            QueueState.PLAYING,
            QueueState.REMOVED,
        }
    ),
    QueueState.PLAYING: frozenset(
        {
            QueueState.FINISHED,
            QueueState.REMOVED,
        }
    ),
    QueueState.FINISHED: frozenset(),
    QueueState.REMOVED: frozenset(),
}


def _utc_now() -> datetime:
    """Return current UTC time with timezone info."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=True)
class QueueItem:
    """A video submitted from a table for communal playback.

    Attributes:
        id: UUID4 unique identifier, assigned at creation.
        table_id: Owning table.
        venue_id: Owning venue, resolved from the table at submission time.
        payload: The submitted link exactly as received.
        content_id: Normalized content identifier (e.g. YouTube video id).
        sequence: Store-assigned, strictly increasing submission counter.
            Orders items within a table; 0 until the item is appended.
        played_sequence: Value drawn from the same counter when the item
            entered PLAYING; None while it has never played. Comparing it
            with another item's sequence tells whether this play happened
            after that item was submitted.
        state: Current lifecycle state.
        submitted_at: Submission timestamp (UTC).
        updated_at: Last state change timestamp (UTC).
    """

    id: UUID
    table_id: str
    venue_id: str
    payload: str
    content_id: str
    sequence: int = field(default=0)
    played_sequence: int | None = field(default=None)
    state: QueueState = field(default=QueueState.PENDING)
    submitted_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Validate queue item fields."""
        if not self.table_id:
            raise ValueError("table_id must not be empty")
        if not self.venue_id:
            raise ValueError("venue_id must not be empty")
        if not self.payload:
            raise ValueError("payload must not be empty")
        if self.sequence < 0:
            raise ValueError(f"sequence must be non-negative, got {self.sequence}")
        if self.played_sequence is not None and self.played_sequence <= self.sequence:
            raise ValueError("played_sequence must be greater than sequence")

    def with_state(self, new_state: QueueState) -> QueueItem:
        """Create a copy of this item in a new state.

        The transition is not checked here; callers go through the
        queue state machine before persisting.

        Args:
            new_state: The state to move to.

        Returns:
            New QueueItem with updated state and updated_at.
        """
        return replace(self, state=new_state, updated_at=_utc_now())

    def with_sequence(self, sequence: int) -> QueueItem:
        """Create a copy of this item carrying its store-assigned sequence."""
        return replace(self, sequence=sequence)

    def with_playback(self, played_sequence: int) -> QueueItem:
        """Create a PLAYING copy of this item stamped with its play order."""
        return replace(
            self,
            state=QueueState.PLAYING,
            played_sequence=played_sequence,
            updated_at=_utc_now(),
        )

    @property
    def is_pending(self) -> bool:
        """Whether the item still takes part in fairness ordering."""
        return self.state == QueueState.PENDING
