"""Integration tests for PostgresQueueStore and PostgresTableDirectory.

Run against a real PostgreSQL database; skipped unless DATABASE_URL is
set. Each test starts from empty tables.
"""

import asyncio
import os
from uuid import uuid4

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from jukebox.bootstrap.database import get_database_url
from jukebox.domain.errors.queue import (
    ConcurrentUpdateConflictError,
    QueueItemNotFoundError,
)
from jukebox.domain.models.queue_item import QueueState
from jukebox.infrastructure.adapters.postgres_queue_store import PostgresQueueStore
from jukebox.infrastructure.adapters.postgres_schema import ensure_schema
from jukebox.infrastructure.adapters.postgres_table_directory import (
    PostgresTableDirectory,
)
from tests.helpers import make_item

# Skip all tests if no database configured
pytestmark = pytest.mark.skipif(
    os.environ.get("DATABASE_URL") is None,
    reason="DATABASE_URL environment variable not set",
)


@pytest.fixture
async def session_factory():
    """Session factory over freshly truncated jukebox tables."""
    engine = create_async_engine(get_database_url(), echo=False)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await ensure_schema(factory)
    async with factory() as session, session.begin():
        await session.execute(text("TRUNCATE queue_items, venue_tables"))
    yield factory
    await engine.dispose()


@pytest.fixture
def store(session_factory) -> PostgresQueueStore:
    return PostgresQueueStore(session_factory)


class TestPostgresQueueStore:
    """Tests for the PostgreSQL queue store."""

    @pytest.mark.asyncio
    async def test_append_and_get(self, store: PostgresQueueStore) -> None:
        first = await store.append(make_item("A"))
        second = await store.append(make_item("A"))

        assert second.sequence > first.sequence
        assert await store.get(first.id) == first
        assert await store.get(uuid4()) is None

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, store: PostgresQueueStore) -> None:
        item = make_item()
        await store.append(item)
        with pytest.raises(ValueError):
            await store.append(item)

    @pytest.mark.asyncio
    async def test_listings(self, store: PostgresQueueStore) -> None:
        a = await store.append(make_item("A"))
        b = await store.append(make_item("B"))
        await store.append(make_item("C", venue_id="venue-2"))
        await store.update_state_cas(b.id, QueueState.PENDING, QueueState.REMOVED)

        assert [i.id for i in await store.list_pending("venue-1")] == [a.id]
        assert [i.id for i in await store.list_for_venue("venue-1")] == [a.id, b.id]
        removed = await store.list_for_venue("venue-1", states=[QueueState.REMOVED])
        assert [i.id for i in removed] == [b.id]
        assert [i.id for i in await store.list_for_table("B")] == [b.id]

    @pytest.mark.asyncio
    async def test_update_state_cas(self, store: PostgresQueueStore) -> None:
        item = await store.append(make_item())

        removed = await store.update_state_cas(
            item.id, QueueState.PENDING, QueueState.REMOVED
        )
        assert removed.state == QueueState.REMOVED

        with pytest.raises(ConcurrentUpdateConflictError):
            await store.update_state_cas(item.id, QueueState.PENDING, QueueState.REMOVED)
        with pytest.raises(QueueItemNotFoundError):
            await store.update_state_cas(uuid4(), QueueState.PENDING, QueueState.REMOVED)

    @pytest.mark.asyncio
    async def test_start_playback_switch(self, store: PostgresQueueStore) -> None:
        first = await store.append(make_item())
        second = await store.append(make_item())

        started = await store.start_playback_cas(first.id, QueueState.PENDING, None)
        assert started.state == QueueState.PLAYING
        assert started.played_sequence > second.sequence

        with pytest.raises(ConcurrentUpdateConflictError):
            await store.start_playback_cas(second.id, QueueState.PENDING, None)

        await store.start_playback_cas(second.id, QueueState.PENDING, first.id)
        assert (await store.get(first.id)).state == QueueState.FINISHED
        assert (await store.get_playing("venue-1")).id == second.id

    @pytest.mark.asyncio
    async def test_fairness_snapshot(self, store: PostgresQueueStore) -> None:
        """Pending items plus the latest play of each table still waiting."""
        old = await store.append(make_item("A"))
        await store.start_playback_cas(old.id, QueueState.PENDING, None)
        a1 = await store.append(make_item("A"))
        a2 = await store.append(make_item("A"))
        b0 = await store.append(make_item("B"))
        await store.start_playback_cas(b0.id, QueueState.PENDING, old.id)
        await store.start_playback_cas(a1.id, QueueState.PENDING, b0.id)
        c1 = await store.append(make_item("C"))

        snapshot = await store.fairness_snapshot("venue-1")
        assert [i.id for i in snapshot] == [a1.id, a2.id, c1.id]
        assert snapshot[0].played_sequence is not None

    @pytest.mark.asyncio
    async def test_concurrent_playback_single_winner(
        self, store: PostgresQueueStore
    ) -> None:
        items = [await store.append(make_item()) for _ in range(5)]

        results = await asyncio.gather(
            *(
                store.start_playback_cas(item.id, QueueState.PENDING, None)
                for item in items
            ),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        assert len(winners) == 1
        assert all(
            isinstance(r, ConcurrentUpdateConflictError)
            for r in results
            if isinstance(r, Exception)
        )
        playing = await store.list_for_venue("venue-1", states=[QueueState.PLAYING])
        assert len(playing) == 1


class TestPostgresTableDirectory:
    """Tests for the PostgreSQL table directory."""

    @pytest.mark.asyncio
    async def test_resolution(self, session_factory) -> None:
        async with session_factory() as session, session.begin():
            await session.execute(
                text("""
                    INSERT INTO venue_tables (id, venue_id, code, active) VALUES
                        ('T1', 'venue-1', 'QR-1', TRUE),
                        ('T2', 'venue-1', 'QR-2', FALSE)
                """)
            )
        directory = PostgresTableDirectory(session_factory)

        assert await directory.resolve_venue_for_table("T1") == "venue-1"
        assert await directory.resolve_venue_for_table("T2") is None
        assert await directory.resolve_venue_for_table("T9") is None
        assert await directory.resolve_table_code("QR-1") == "T1"
        assert await directory.resolve_table_code("QR-2") is None
