"""Queue store port.

Durable keyed storage for queue items. The scheduler reads snapshots
from the store and mutates item state only through conditional
(compare-and-swap) updates, so several service instances can share one
store without an in-process lock.

Developer Golden Rules:
1. FAIL LOUD - Stores raise on missing items and lost races
2. CAS FOR STATE - Every state change is conditioned on the state read
3. ONE PLAYING PER VENUE - start_playback_cas is the only way into PLAYING
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol
from uuid import UUID

from jukebox.domain.models.queue_item import QueueItem, QueueState


class QueueStoreProtocol(Protocol):
    """Protocol for queue item persistence.

    Implementations may use PostgreSQL, in-memory storage, or any
    backend offering conditional updates.

    Methods:
        append: Store a new item and assign its sequence
        get: Retrieve an item by id
        list_pending: Pending items of a venue
        fairness_snapshot: Pending items plus each waiting table's latest play
        list_for_venue: Items of a venue, optionally filtered by state
        list_for_table: Items of a table in submission order
        get_playing: The venue's current Playing item
        update_state_cas: Conditional state update
        start_playback_cas: Conditional venue-wide playback switch
    """

    async def append(self, item: QueueItem) -> QueueItem:
        """Append a new item.

        Args:
            item: The item to store, in PENDING state.

        Returns:
            The stored item carrying its assigned sequence.

        Raises:
            ValueError: If an item with the same id already exists.
        """
        ...

    async def get(self, item_id: UUID) -> QueueItem | None:
        """Retrieve an item by id.

        Returns:
            The item if found, None otherwise.
        """
        ...

    async def list_pending(self, venue_id: str) -> list[QueueItem]:
        """List the PENDING items of a venue, oldest first."""
        ...

    async def fairness_snapshot(self, venue_id: str) -> list[QueueItem]:
        """List what the fairness selector needs to rank a venue.

        Returns the venue's PENDING items plus, for each table that has
        a pending item, the table's most recently played item (highest
        played_sequence, in any state), ordered by sequence. Older plays
        cannot change the order and are left out.
        """
        ...

    async def list_for_venue(
        self,
        venue_id: str,
        states: Collection[QueueState] | None = None,
    ) -> list[QueueItem]:
        """List items of a venue ordered by sequence.

        Args:
            venue_id: The venue to list.
            states: Optional state filter; None lists every state.
        """
        ...

    async def list_for_table(self, table_id: str) -> list[QueueItem]:
        """List every item of a table ordered by sequence."""
        ...

    async def get_playing(self, venue_id: str) -> QueueItem | None:
        """Get the venue's PLAYING item, if any."""
        ...

    async def update_state_cas(
        self,
        item_id: UUID,
        expected_state: QueueState,
        new_state: QueueState,
    ) -> QueueItem:
        """Move an item to ``new_state`` only if it is in ``expected_state``.

        Not used for entering PLAYING; see start_playback_cas.

        Returns:
            The updated item.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            ConcurrentUpdateConflictError: If the current state differs.
        """
        ...

    async def start_playback_cas(
        self,
        item_id: UUID,
        expected_state: QueueState,
        expected_playing_id: UUID | None,
    ) -> QueueItem:
        """Atomically make ``item_id`` the venue's PLAYING item.

        In one atomic step:
        - the venue's current PLAYING item, which must be
          ``expected_playing_id`` (or absent when None), becomes FINISHED;
        - ``item_id``, which must be in ``expected_state``, becomes PLAYING
          and is stamped with the next value of the sequence counter as
          its played_sequence.

        Returns:
            The item now playing.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            ConcurrentUpdateConflictError: If either condition fails.
        """
        ...
