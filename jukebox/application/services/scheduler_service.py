"""Scheduler Service - fair round-robin video queue for a venue.

Orchestrates table submissions and operator playback control against
the queue store, the fairness selector and the queue state machine.

Key responsibilities:
1. Accept submissions from tables (single link or a batch)
2. Expose the fairness-ordered "coming up" view of a venue
3. Hand out the next item to play, exactly once
4. Apply operator overrides (force play, complete, remove)

Concurrency:
    The service keeps no in-process lock. "Select next + mark PLAYING"
    is made atomic per venue by the store's conditional update
    (start_playback_cas): a caller that lost a race gets
    ConcurrentUpdateConflictError, re-reads a fresh snapshot and selects
    again. A race lost to another caller's completed playback switch is
    retried freely; other conflicts surface after max_conflict_attempts.

Developer Golden Rules:
1. DIRECTORY FIRST - Resolve the table before validating or storing anything
2. VALIDATE ALL - A batch is validated completely before the first append
3. FAIL LOUD - Collaborator and guard failures reach the caller unchanged
4. EMPTY IS NOT AN ERROR - An empty queue returns None
5. LOG EVERY MUTATION - All state changes have structured logging
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TypeVar
from uuid import UUID, uuid4

import structlog

from jukebox.application.ports.payload_validator import PayloadValidatorProtocol
from jukebox.application.ports.queue_store import QueueStoreProtocol
from jukebox.application.ports.table_directory import TableDirectoryProtocol
from jukebox.application.services.base import LoggingMixin
from jukebox.config.scheduler_config import SchedulerConfig
from jukebox.domain.errors.queue import (
    ConcurrentUpdateConflictError,
    InvalidPayloadError,
    QueueItemNotFoundError,
    TableNotFoundError,
)
from jukebox.domain.models.queue_item import QueueItem, QueueState
from jukebox.domain.services.fairness_selector import (
    RankedQueueItem,
    rank_pending,
    select_next,
)
from jukebox.domain.services.queue_state_machine import (
    QueueStateMachine,
    QueueTrigger,
    TransitionPlan,
)

T = TypeVar("T")


@dataclass
class _PlaybackRead:
    """What a playback switch read before its conditional update."""

    item: QueueItem | None = None
    playing_id: UUID | None = None


class SchedulerService(LoggingMixin):
    """Fair video scheduler for venues.

    Attributes:
        _store: Queue item storage with conditional updates.
        _directory: Table/venue directory.
        _validator: Payload validator.
        _config: Retry and batch limits.
        _state_machine: Queue item transition rules.
    """

    def __init__(
        self,
        store: QueueStoreProtocol,
        directory: TableDirectoryProtocol,
        validator: PayloadValidatorProtocol,
        config: SchedulerConfig | None = None,
        state_machine: QueueStateMachine | None = None,
    ) -> None:
        """Initialize the scheduler service.

        Args:
            store: Queue store.
            directory: Directory resolving tables to venues.
            validator: Validator for submitted payloads.
            config: Scheduler configuration. Defaults to SchedulerConfig().
            state_machine: Transition rules. Defaults to QueueStateMachine().
        """
        self._store = store
        self._directory = directory
        self._validator = validator
        self._config = config or SchedulerConfig()
        self._state_machine = state_machine or QueueStateMachine()
        self._init_logger(component="scheduler")

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(self, table_id: str, payload: str) -> QueueItem:
        """Submit one payload from a table.

        Args:
            table_id: The submitting table.
            payload: The submitted link.

        Returns:
            The new PENDING queue item.

        Raises:
            TableNotFoundError: If the table doesn't resolve to a venue.
            InvalidPayloadError: If the validator rejects the payload.
        """
        items = await self._submit_batch("submit", table_id, [payload])
        return items[0]

    async def submit_many(
        self, table_id: str, payloads: Sequence[str]
    ) -> list[QueueItem]:
        """Submit several payloads from one table.

        The whole batch is validated before anything is stored: one
        rejected payload rejects the batch.

        Args:
            table_id: The submitting table.
            payloads: Links in the order the table wants them played.

        Returns:
            The new PENDING items, in submission order.

        Raises:
            TableNotFoundError: If the table doesn't resolve to a venue.
            InvalidPayloadError: If the batch is empty, too large, or any
                payload is rejected.
        """
        return await self._submit_batch("submit_many", table_id, payloads)

    async def submit_by_table_code(
        self, code: str, payloads: Sequence[str]
    ) -> list[QueueItem]:
        """Submit payloads from the table carrying a public code.

        Args:
            code: The code printed at the table (e.g. its QR code).
            payloads: Links to queue.

        Returns:
            The new PENDING items, in submission order.

        Raises:
            TableNotFoundError: If no table carries the code.
            InvalidPayloadError: As for submit_many.
        """
        table_id = await self._directory.resolve_table_code(code)
        if table_id is None:
            self._log_operation("submit_by_table_code").warning(
                "table_code_not_found"
            )
            raise TableNotFoundError(code)
        return await self._submit_batch("submit_by_table_code", table_id, payloads)

    async def _submit_batch(
        self, operation: str, table_id: str, payloads: Sequence[str]
    ) -> list[QueueItem]:
        log = self._log_operation(
            operation, table_id=table_id, payload_count=len(payloads)
        )

        venue_id = await self._directory.resolve_venue_for_table(table_id)
        if venue_id is None:
            log.warning("submission_rejected_table_not_found")
            raise TableNotFoundError(table_id)

        if not payloads:
            log.warning("submission_rejected_empty")
            raise InvalidPayloadError("", "no payloads submitted")
        if len(payloads) > self._config.max_batch_size:
            log.warning(
                "submission_rejected_batch_too_large",
                max_batch_size=self._config.max_batch_size,
            )
            raise InvalidPayloadError(
                f"<{len(payloads)} payloads>",
                f"at most {self._config.max_batch_size} payloads per submission",
            )

        validated: list[tuple[str, str]] = []
        for payload in payloads:
            try:
                content_id = self._validator.validate(payload)
            except InvalidPayloadError as e:
                log.warning("submission_rejected_invalid_payload", reason=e.reason)
                raise
            validated.append((payload.strip(), content_id))

        log.info("submission_started", venue_id=venue_id)

        created: list[QueueItem] = []
        for payload, content_id in validated:
            now = datetime.now(timezone.utc)
            item = QueueItem(
                id=uuid4(),
                table_id=table_id,
                venue_id=venue_id,
                payload=payload,
                content_id=content_id,
                state=QueueState.PENDING,
                submitted_at=now,
                updated_at=now,
            )
            created.append(await self._store.append(item))

        log.info(
            "submission_completed",
            venue_id=venue_id,
            item_ids=[str(i.id) for i in created],
        )
        return created

    # =========================================================================
    # Queue views
    # =========================================================================

    async def peek_queue(self, venue_id: str) -> list[QueueItem]:
        """Get the venue's pending items in the order they will be served.

        Read-only.
        """
        return [ranked.item for ranked in await self.peek_ranked(venue_id)]

    async def peek_ranked(self, venue_id: str) -> list[RankedQueueItem]:
        """Like peek_queue, keeping each item's per-table turn."""
        snapshot = await self._store.fairness_snapshot(venue_id)
        return rank_pending(snapshot)

    async def now_playing(self, venue_id: str) -> QueueItem | None:
        """Get the item currently occupying the venue's playback output."""
        return await self._store.get_playing(venue_id)

    async def get_item(self, item_id: UUID) -> QueueItem:
        """Get a queue item.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
        """
        return await self._require_item(item_id)

    async def list_table_items(self, table_id: str) -> list[QueueItem]:
        """List every item a table has submitted, in submission order.

        Includes finished and removed items.

        Raises:
            TableNotFoundError: If the table doesn't resolve to a venue.
        """
        venue_id = await self._directory.resolve_venue_for_table(table_id)
        if venue_id is None:
            raise TableNotFoundError(table_id)
        return await self._store.list_for_table(table_id)

    # =========================================================================
    # Playback control
    # =========================================================================

    async def take_next(self, venue_id: str) -> QueueItem | None:
        """Hand out the next item to play and mark it PLAYING.

        The previously playing item of the venue, if any, is retired to
        FINISHED in the same conditional update. When nothing is
        pending, nothing is mutated.

        Args:
            venue_id: The venue whose queue to advance.

        Returns:
            The item now playing, or None if no item is pending.

        Raises:
            ConcurrentUpdateConflictError: If every attempt lost a race.
        """
        log = self._log_operation("take_next", venue_id=venue_id)
        read = _PlaybackRead()

        async def attempt() -> QueueItem | None:
            snapshot = await self._store.fairness_snapshot(venue_id)
            candidate = select_next(snapshot)
            if candidate is None:
                return None
            self._state_machine.plan(candidate, QueueTrigger.MARK_PLAYING)
            return await self._start_playback(candidate, read)

        item = await self._retry_on_conflict(
            log, attempt, overtaken=lambda: self._playback_overtaken(read)
        )
        if item is None:
            log.debug("queue_empty")
        else:
            log.info(
                "take_next_completed",
                item_id=str(item.id),
                table_id=item.table_id,
            )
        return item

    async def mark_playing(self, item_id: UUID) -> QueueItem:
        """Force a specific item to PLAYING, out of fairness order.

        Idempotent: an item that is already PLAYING is left alone and
        the call succeeds.

        Returns:
            The item as it was left playing.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            InvalidTransitionError: If the item is FINISHED or REMOVED.
            ConcurrentUpdateConflictError: If every attempt lost a race.
        """
        log = self._log_operation("mark_playing", item_id=item_id)
        read = _PlaybackRead()

        async def attempt() -> QueueItem:
            item = await self._require_item(item_id)
            plan = self._state_machine.plan(item, QueueTrigger.MARK_PLAYING)
            if plan is TransitionPlan.NOOP:
                log.debug("already_playing")
                return item
            return await self._start_playback(item, read)

        item = await self._retry_on_conflict(
            log, attempt, overtaken=lambda: self._playback_overtaken(read)
        )
        log.info("mark_playing_completed", venue_id=item.venue_id)
        return item

    async def complete(self, item_id: UUID) -> QueueItem:
        """Mark a PLAYING item as FINISHED (playback ended).

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            InvalidTransitionError: If the item is not PLAYING.
            ConcurrentUpdateConflictError: If every attempt lost a race.
        """
        log = self._log_operation("complete", item_id=item_id)
        item = await self._retry_on_conflict(
            log, lambda: self._transition(item_id, QueueTrigger.COMPLETE)
        )
        log.info("complete_completed", venue_id=item.venue_id)
        return item

    async def remove(self, item_id: UUID) -> QueueItem:
        """Remove a PENDING or PLAYING item from the queue.

        The item is kept in the store in REMOVED state for listing.

        Returns:
            The removed item.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            InvalidTransitionError: If the item is FINISHED or REMOVED.
            ConcurrentUpdateConflictError: If every attempt lost a race.
        """
        log = self._log_operation("remove", item_id=item_id)
        item = await self._retry_on_conflict(
            log, lambda: self._transition(item_id, QueueTrigger.REMOVE)
        )
        log.info("remove_completed", venue_id=item.venue_id)
        return item

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _require_item(self, item_id: UUID) -> QueueItem:
        item = await self._store.get(item_id)
        if item is None:
            raise QueueItemNotFoundError(item_id)
        return item

    async def _start_playback(
        self, item: QueueItem, read: _PlaybackRead
    ) -> QueueItem:
        playing = await self._store.get_playing(item.venue_id)
        read.item = item
        read.playing_id = playing.id if playing is not None else None
        return await self._store.start_playback_cas(
            item_id=item.id,
            expected_state=item.state,
            expected_playing_id=read.playing_id,
        )

    async def _playback_overtaken(self, read: _PlaybackRead) -> bool:
        """Whether another caller switched playback since ``read`` was taken.

        True when the candidate item left the state it was read in, or
        the venue's PLAYING item changed. Either way some other playback
        switch succeeded, so the lost race was progress and not
        contention.
        """
        if read.item is None:
            return False
        current = await self._store.get(read.item.id)
        if current is None or current.state != read.item.state:
            return True
        playing = await self._store.get_playing(read.item.venue_id)
        return (playing.id if playing is not None else None) != read.playing_id

    async def _transition(self, item_id: UUID, trigger: QueueTrigger) -> QueueItem:
        item = await self._require_item(item_id)
        if self._state_machine.plan(item, trigger) is TransitionPlan.NOOP:
            return item
        return await self._store.update_state_cas(
            item_id=item.id,
            expected_state=item.state,
            new_state=trigger.target_state,
        )

    async def _retry_on_conflict(
        self,
        log: structlog.BoundLogger,
        attempt: Callable[[], Awaitable[T]],
        overtaken: Callable[[], Awaitable[bool]] | None = None,
    ) -> T:
        """Run ``attempt`` until it stops losing races.

        Each attempt re-reads its snapshot. Errors other than
        ConcurrentUpdateConflictError propagate immediately.

        A conflict for which ``overtaken`` returns True was caused by
        another caller's successful update; retrying it does not use up
        max_conflict_attempts. Such retries are bounded by the other
        callers' progress, since each one follows a completed update.
        """
        max_attempts = self._config.max_conflict_attempts
        attempt_number = 0
        while True:
            try:
                return await attempt()
            except ConcurrentUpdateConflictError as e:
                if overtaken is not None and await overtaken():
                    log.debug(
                        "concurrent_update_overtaken",
                        conflicting_item_id=str(e.item_id),
                    )
                    continue
                attempt_number += 1
                if attempt_number == max_attempts:
                    log.error(
                        "concurrent_update_conflict_exhausted",
                        attempts=max_attempts,
                        conflicting_item_id=str(e.item_id),
                    )
                    raise
                log.warning(
                    "concurrent_update_conflict_retry",
                    attempt=attempt_number,
                    conflicting_item_id=str(e.item_id),
                )
