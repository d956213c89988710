"""Queue store stub implementation.

In-memory stub of QueueStoreProtocol for development and testing.
Conditional updates run under an asyncio lock, the in-memory
equivalent of the row locks a database takes for
UPDATE ... WHERE state = :expected.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection
from itertools import count
from uuid import UUID

from jukebox.application.ports.queue_store import QueueStoreProtocol
from jukebox.domain.errors.queue import (
    ConcurrentUpdateConflictError,
    QueueItemNotFoundError,
)
from jukebox.domain.models.queue_item import QueueItem, QueueState


class QueueStoreStub(QueueStoreProtocol):
    """In-memory stub implementation of QueueStoreProtocol.

    It is NOT suitable for production use.

    Attributes:
        _items: Dictionary mapping item.id to QueueItem.
        _sequence: Source of strictly increasing submission and play sequences.
    """

    def __init__(self) -> None:
        """Initialize the stub with empty storage."""
        self._items: dict[UUID, QueueItem] = {}
        self._sequence = count(1)
        # Lock for simulating atomic conditional updates
        self._cas_lock = asyncio.Lock()

    async def append(self, item: QueueItem) -> QueueItem:
        """Store a new item, assigning its sequence.

        Raises:
            ValueError: If item.id already exists.
        """
        async with self._cas_lock:
            if item.id in self._items:
                raise ValueError(f"Queue item already exists: {item.id}")
            stored = item.with_sequence(next(self._sequence))
            self._items[stored.id] = stored
            return stored

    async def get(self, item_id: UUID) -> QueueItem | None:
        """Retrieve an item by id."""
        return self._items.get(item_id)

    async def list_pending(self, venue_id: str) -> list[QueueItem]:
        """List the PENDING items of a venue, oldest first."""
        return await self.list_for_venue(venue_id, states=(QueueState.PENDING,))

    async def fairness_snapshot(self, venue_id: str) -> list[QueueItem]:
        """Pending items plus the latest play of each table with pending items."""
        items = await self.list_for_venue(venue_id)
        pending_tables = {i.table_id for i in items if i.is_pending}
        latest: dict[str, QueueItem] = {}
        for item in items:
            if item.table_id not in pending_tables or item.played_sequence is None:
                continue
            current = latest.get(item.table_id)
            if current is None or item.played_sequence > (current.played_sequence or 0):
                latest[item.table_id] = item
        snapshot = [i for i in items if i.is_pending] + list(latest.values())
        snapshot.sort(key=lambda i: i.sequence)
        return snapshot

    async def list_for_venue(
        self,
        venue_id: str,
        states: Collection[QueueState] | None = None,
    ) -> list[QueueItem]:
        """List items of a venue ordered by sequence."""
        matching = [
            i
            for i in self._items.values()
            if i.venue_id == venue_id and (states is None or i.state in states)
        ]
        matching.sort(key=lambda i: i.sequence)
        return matching

    async def list_for_table(self, table_id: str) -> list[QueueItem]:
        """List every item of a table ordered by sequence."""
        matching = [i for i in self._items.values() if i.table_id == table_id]
        matching.sort(key=lambda i: i.sequence)
        return matching

    async def get_playing(self, venue_id: str) -> QueueItem | None:
        """Get the venue's PLAYING item, if any."""
        return self._find_playing(venue_id)

    async def update_state_cas(
        self,
        item_id: UUID,
        expected_state: QueueState,
        new_state: QueueState,
    ) -> QueueItem:
        """Move an item to new_state only if it is in expected_state.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            ConcurrentUpdateConflictError: If the current state differs.
            ValueError: If new_state is PLAYING (use start_playback_cas).
        """
        if new_state == QueueState.PLAYING:
            raise ValueError("Use start_playback_cas to enter PLAYING")

        async with self._cas_lock:
            item = self._items.get(item_id)
            if item is None:
                raise QueueItemNotFoundError(item_id)
            if item.state != expected_state:
                raise ConcurrentUpdateConflictError(
                    item_id=item_id,
                    expected_state=expected_state,
                    operation="update_state",
                )
            updated = item.with_state(new_state)
            self._items[item_id] = updated
            return updated

    async def start_playback_cas(
        self,
        item_id: UUID,
        expected_state: QueueState,
        expected_playing_id: UUID | None,
    ) -> QueueItem:
        """Atomically retire the venue's PLAYING item and start item_id.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            ConcurrentUpdateConflictError: If the item's state or the
                venue's PLAYING item is not what the caller expected.
            ValueError: If expected_state is not PENDING.
        """
        if expected_state != QueueState.PENDING:
            raise ValueError("Only PENDING items can start playback")

        async with self._cas_lock:
            item = self._items.get(item_id)
            if item is None:
                raise QueueItemNotFoundError(item_id)
            if item.state != expected_state:
                raise ConcurrentUpdateConflictError(
                    item_id=item_id,
                    expected_state=expected_state,
                    operation="start_playback",
                )

            playing = self._find_playing(item.venue_id)
            playing_id = playing.id if playing is not None else None
            if playing_id != expected_playing_id:
                raise ConcurrentUpdateConflictError(
                    item_id=item_id,
                    expected_state=expected_state,
                    operation="start_playback",
                )

            if playing is not None:
                self._items[playing.id] = playing.with_state(QueueState.FINISHED)
            started = item.with_playback(next(self._sequence))
            self._items[item_id] = started
            return started

    def _find_playing(self, venue_id: str) -> QueueItem | None:
        for item in self._items.values():
            if item.venue_id == venue_id and item.state == QueueState.PLAYING:
                return item
        return None

    def clear(self) -> None:
        """Clear all items (for testing)."""
        self._items.clear()
        self._sequence = count(1)
