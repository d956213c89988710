"""PostgreSQL queue store (SQLAlchemy async + asyncpg).

Every state change is a conditional UPDATE:

    UPDATE queue_items SET state = :new_state
    WHERE id = :id AND state = :expected_state
    RETURNING ...

Zero rows updated means another caller changed the item first, which is
reported as ConcurrentUpdateConflictError. Starting playback retires the
venue's PLAYING item and starts the new one in a single transaction;
the partial unique index on (venue_id) WHERE state = 'PLAYING' rejects
a second PLAYING item that slipped in concurrently.

Entering PLAYING draws played_sequence from the same database sequence
that numbers submissions.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from datetime import datetime, timezone
from typing import Any, NoReturn
from uuid import UUID

from sqlalchemy import bindparam, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from jukebox.application.ports.queue_store import QueueStoreProtocol
from jukebox.domain.errors.queue import (
    ConcurrentUpdateConflictError,
    QueueItemNotFoundError,
)
from jukebox.domain.models.queue_item import QueueItem, QueueState

logger = get_logger()

_COLUMNS = (
    "id, sequence, played_sequence, table_id, venue_id, payload, content_id, "
    "state, submitted_at, updated_at"
)


def _row_to_item(row: Mapping[str, Any]) -> QueueItem:
    """Map a queue_items row to a QueueItem."""
    return QueueItem(
        id=row["id"],
        sequence=row["sequence"],
        played_sequence=row["played_sequence"],
        table_id=row["table_id"],
        venue_id=row["venue_id"],
        payload=row["payload"],
        content_id=row["content_id"],
        state=QueueState(row["state"]),
        submitted_at=row["submitted_at"],
        updated_at=row["updated_at"],
    )


class PostgresQueueStore(QueueStoreProtocol):
    """PostgreSQL implementation of QueueStoreProtocol.

    Attributes:
        _session_factory: SQLAlchemy async session factory for DB access.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory

    async def append(self, item: QueueItem) -> QueueItem:
        """Insert a new item; the database assigns its sequence.

        Raises:
            ValueError: If item.id already exists.
        """
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(
                    text(f"""
                        INSERT INTO queue_items
                            (id, table_id, venue_id, payload, content_id,
                             state, submitted_at, updated_at)
                        VALUES
                            (:id, :table_id, :venue_id, :payload, :content_id,
                             :state, :submitted_at, :updated_at)
                        RETURNING {_COLUMNS}
                    """),
                    {
                        "id": item.id,
                        "table_id": item.table_id,
                        "venue_id": item.venue_id,
                        "payload": item.payload,
                        "content_id": item.content_id,
                        "state": item.state.value,
                        "submitted_at": item.submitted_at,
                        "updated_at": item.updated_at,
                    },
                )
                row = result.mappings().one()
        except IntegrityError as e:
            raise ValueError(f"Queue item already exists: {item.id}") from e
        return _row_to_item(row)

    async def get(self, item_id: UUID) -> QueueItem | None:
        """Retrieve an item by id."""
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"SELECT {_COLUMNS} FROM queue_items WHERE id = :id"),
                {"id": item_id},
            )
            row = result.mappings().first()
        return _row_to_item(row) if row is not None else None

    async def list_pending(self, venue_id: str) -> list[QueueItem]:
        """List the PENDING items of a venue, oldest first."""
        return await self.list_for_venue(venue_id, states=(QueueState.PENDING,))

    async def fairness_snapshot(self, venue_id: str) -> list[QueueItem]:
        """Pending items plus the latest play of each table with pending items."""
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {_COLUMNS} FROM (
                        SELECT {_COLUMNS} FROM queue_items
                        WHERE venue_id = :venue_id AND state = 'PENDING'
                        UNION ALL
                        (
                            SELECT DISTINCT ON (table_id) {_COLUMNS} FROM queue_items
                            WHERE venue_id = :venue_id
                              AND played_sequence IS NOT NULL
                              AND table_id IN (
                                  SELECT table_id FROM queue_items
                                  WHERE venue_id = :venue_id AND state = 'PENDING'
                              )
                            ORDER BY table_id, played_sequence DESC
                        )
                    ) AS snapshot
                    ORDER BY sequence ASC
                """),
                {"venue_id": venue_id},
            )
            rows = result.mappings().all()
        return [_row_to_item(row) for row in rows]

    async def list_for_venue(
        self,
        venue_id: str,
        states: Collection[QueueState] | None = None,
    ) -> list[QueueItem]:
        """List items of a venue ordered by sequence."""
        params: dict[str, Any] = {"venue_id": venue_id}
        if states is None:
            statement = text(f"""
                SELECT {_COLUMNS} FROM queue_items
                WHERE venue_id = :venue_id
                ORDER BY sequence ASC
            """)
        else:
            statement = text(f"""
                SELECT {_COLUMNS} FROM queue_items
                WHERE venue_id = :venue_id AND state IN :states
                ORDER BY sequence ASC
            """).bindparams(bindparam("states", expanding=True))
            params["states"] = [s.value for s in states]

        async with self._session_factory() as session:
            result = await session.execute(statement, params)
            rows = result.mappings().all()
        return [_row_to_item(row) for row in rows]

    async def list_for_table(self, table_id: str) -> list[QueueItem]:
        """List every item of a table ordered by sequence."""
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {_COLUMNS} FROM queue_items
                    WHERE table_id = :table_id
                    ORDER BY sequence ASC
                """),
                {"table_id": table_id},
            )
            rows = result.mappings().all()
        return [_row_to_item(row) for row in rows]

    async def get_playing(self, venue_id: str) -> QueueItem | None:
        """Get the venue's PLAYING item, if any."""
        async with self._session_factory() as session:
            result = await session.execute(
                text(f"""
                    SELECT {_COLUMNS} FROM queue_items
                    WHERE venue_id = :venue_id AND state = 'PLAYING'
                """),
                {"venue_id": venue_id},
            )
            row = result.mappings().first()
        return _row_to_item(row) if row is not None else None

    async def update_state_cas(
        self,
        item_id: UUID,
        expected_state: QueueState,
        new_state: QueueState,
    ) -> QueueItem:
        """Conditional state update.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            ConcurrentUpdateConflictError: If the current state differs.
            ValueError: If new_state is PLAYING (use start_playback_cas).
        """
        if new_state == QueueState.PLAYING:
            raise ValueError("Use start_playback_cas to enter PLAYING")

        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                text(f"""
                    UPDATE queue_items
                    SET state = :new_state, updated_at = :now
                    WHERE id = :id AND state = :expected_state
                    RETURNING {_COLUMNS}
                """),
                {
                    "id": item_id,
                    "new_state": new_state.value,
                    "expected_state": expected_state.value,
                    "now": datetime.now(timezone.utc),
                },
            )
            row = result.mappings().first()
            if row is None:
                await self._raise_missing_or_conflict(
                    session, item_id, expected_state, "update_state"
                )
        return _row_to_item(row)

    async def start_playback_cas(
        self,
        item_id: UUID,
        expected_state: QueueState,
        expected_playing_id: UUID | None,
    ) -> QueueItem:
        """Retire the venue's PLAYING item and start item_id, atomically.

        Raises:
            QueueItemNotFoundError: If the item doesn't exist.
            ConcurrentUpdateConflictError: If the item's state or the
                venue's PLAYING item is not what the caller expected.
            ValueError: If expected_state is not PENDING.
        """
        if expected_state != QueueState.PENDING:
            raise ValueError("Only PENDING items can start playback")

        now = datetime.now(timezone.utc)
        try:
            async with self._session_factory() as session, session.begin():
                if expected_playing_id is not None:
                    retired = await session.execute(
                        text("""
                            UPDATE queue_items
                            SET state = 'FINISHED', updated_at = :now
                            WHERE id = :playing_id
                              AND state = 'PLAYING'
                              AND venue_id = (
                                  SELECT venue_id FROM queue_items WHERE id = :item_id
                              )
                        """),
                        {
                            "playing_id": expected_playing_id,
                            "item_id": item_id,
                            "now": now,
                        },
                    )
                    if retired.rowcount != 1:
                        await self._raise_missing_or_conflict(
                            session, item_id, expected_state, "start_playback"
                        )

                result = await session.execute(
                    text(f"""
                        UPDATE queue_items
                        SET state = 'PLAYING',
                            played_sequence = nextval(
                                pg_get_serial_sequence('queue_items', 'sequence')
                            ),
                            updated_at = :now
                        WHERE id = :id AND state = :expected_state
                        RETURNING {_COLUMNS}
                    """),
                    {
                        "id": item_id,
                        "expected_state": expected_state.value,
                        "now": now,
                    },
                )
                row = result.mappings().first()
                if row is None:
                    await self._raise_missing_or_conflict(
                        session, item_id, expected_state, "start_playback"
                    )
        except IntegrityError as e:
            # Another transaction committed a PLAYING item for the venue
            logger.warning(
                "start_playback_unique_violation",
                item_id=str(item_id),
            )
            raise ConcurrentUpdateConflictError(
                item_id=item_id,
                expected_state=expected_state,
                operation="start_playback",
            ) from e
        return _row_to_item(row)

    @staticmethod
    async def _raise_missing_or_conflict(
        session: AsyncSession,
        item_id: UUID,
        expected_state: QueueState,
        operation: str,
    ) -> NoReturn:
        exists = await session.execute(
            text("SELECT 1 FROM queue_items WHERE id = :id"),
            {"id": item_id},
        )
        if exists.first() is None:
            raise QueueItemNotFoundError(item_id)
        raise ConcurrentUpdateConflictError(
            item_id=item_id,
            expected_state=expected_state,
            operation=operation,
        )
