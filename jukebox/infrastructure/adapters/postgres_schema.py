"""PostgreSQL schema for the queue store and table directory.

The partial unique index ``ux_queue_items_one_playing`` is what keeps
at most one PLAYING item per venue across every service instance.

Statements are kept separate because asyncpg executes one statement
per call.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

logger = get_logger()

SCHEMA_STATEMENTS: tuple[str, ...] = (
    """
    CREATE TABLE IF NOT EXISTS venue_tables (
        id TEXT PRIMARY KEY,
        venue_id TEXT NOT NULL,
        code TEXT UNIQUE,
        active BOOLEAN NOT NULL DEFAULT TRUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS queue_items (
        id UUID PRIMARY KEY,
        sequence BIGSERIAL NOT NULL UNIQUE,
        played_sequence BIGINT,
        table_id TEXT NOT NULL,
        venue_id TEXT NOT NULL,
        payload TEXT NOT NULL,
        content_id TEXT NOT NULL,
        state TEXT NOT NULL
            CHECK (state IN ('PENDING', 'PLAYING', 'FINISHED', 'REMOVED')),
        submitted_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_queue_items_venue_state
        ON queue_items (venue_id, state, sequence)
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_queue_items_table_played
        ON queue_items (venue_id, table_id, played_sequence DESC)
        WHERE played_sequence IS NOT NULL
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_queue_items_table
        ON queue_items (table_id, sequence)
    """,
    """
    CREATE UNIQUE INDEX IF NOT EXISTS ux_queue_items_one_playing
        ON queue_items (venue_id) WHERE state = 'PLAYING'
    """,
)


async def ensure_schema(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Create the jukebox tables and indexes if they don't exist."""
    async with session_factory() as session, session.begin():
        for statement in SCHEMA_STATEMENTS:
            await session.execute(text(statement))
    logger.info("queue_schema_ensured", statements=len(SCHEMA_STATEMENTS))
