"""Unit tests for the QueueItem domain model."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from jukebox.domain.models.queue_item import (
    STATE_TRANSITION_MATRIX,
    TERMINAL_STATES,
    QueueState,
)
from tests.helpers import make_item


class TestQueueState:
    """Tests for QueueState enum."""

    def test_terminal_states(self) -> None:
        """FINISHED and REMOVED are terminal."""
        assert TERMINAL_STATES == {QueueState.FINISHED, QueueState.REMOVED}
        assert QueueState.FINISHED.is_terminal()
        assert QueueState.REMOVED.is_terminal()
        assert not QueueState.PENDING.is_terminal()
        assert not QueueState.PLAYING.is_terminal()

    def test_pending_transitions(self) -> None:
        """PENDING can start playing or be removed."""
        assert QueueState.PENDING.valid_transitions() == {
            QueueState.PLAYING,
            QueueState.REMOVED,
        }

    def test_playing_transitions(self) -> None:
        """PLAYING can finish or be removed, never go back to PENDING."""
        allowed = QueueState.PLAYING.valid_transitions()
        assert allowed == {QueueState.FINISHED, QueueState.REMOVED}
        assert QueueState.PENDING not in allowed

    def test_terminal_states_have_no_transitions(self) -> None:
        """Terminal states admit nothing."""
        for state in TERMINAL_STATES:
            assert state.valid_transitions() == frozenset()

    def test_matrix_covers_every_state(self) -> None:
        """Every state has a row in the transition matrix."""
        assert set(STATE_TRANSITION_MATRIX) == set(QueueState)


class TestQueueItem:
    """Tests for QueueItem dataclass."""

    def test_defaults(self) -> None:
        """New items are PENDING with an unassigned sequence."""
        item = make_item()
        assert item.state == QueueState.PENDING
        assert item.sequence == 0
        assert item.is_pending
        assert item.submitted_at.tzinfo is not None

    def test_frozen(self) -> None:
        """Items are immutable."""
        item = make_item()
        with pytest.raises(FrozenInstanceError):
            item.state = QueueState.PLAYING  # type: ignore[misc]

    @pytest.mark.parametrize("field_name", ["table_id", "venue_id", "payload"])
    def test_required_text_fields(self, field_name: str) -> None:
        """Owner and payload fields must not be empty."""
        with pytest.raises(ValueError, match=field_name):
            make_item(**{field_name: ""})

    def test_negative_sequence_rejected(self) -> None:
        """Sequence is non-negative."""
        with pytest.raises(ValueError, match="sequence"):
            make_item(sequence=-1)

    def test_with_state_keeps_identity(self) -> None:
        """with_state changes only state and updated_at."""
        earlier = datetime(2024, 1, 1, tzinfo=timezone.utc)
        item = make_item(sequence=3, submitted_at=earlier, updated_at=earlier)

        playing = item.with_state(QueueState.PLAYING)

        assert playing.state == QueueState.PLAYING
        assert playing.updated_at > earlier
        assert playing.id == item.id
        assert playing.table_id == item.table_id
        assert playing.payload == item.payload
        assert playing.sequence == 3
        assert playing.submitted_at == earlier
        assert item.state == QueueState.PENDING
        assert not playing.is_pending

    def test_with_sequence(self) -> None:
        """with_sequence returns a copy carrying the sequence."""
        item = make_item()
        stored = item.with_sequence(7)
        assert stored.sequence == 7
        assert item.sequence == 0

    def test_with_playback(self) -> None:
        """with_playback enters PLAYING and records the play order."""
        item = make_item(sequence=2)
        playing = item.with_playback(9)
        assert playing.state == QueueState.PLAYING
        assert playing.played_sequence == 9
        assert item.played_sequence is None

    def test_played_sequence_after_submission(self) -> None:
        """An item cannot play before it was submitted."""
        with pytest.raises(ValueError, match="played_sequence"):
            make_item(sequence=5, played_sequence=5)
