"""PostgreSQL table directory.

Reads the ``venue_tables`` table maintained by the venue administration
side of the system. Inactive tables do not resolve.
"""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jukebox.application.ports.table_directory import TableDirectoryProtocol


class PostgresTableDirectory(TableDirectoryProtocol):
    """PostgreSQL implementation of TableDirectoryProtocol."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def resolve_venue_for_table(self, table_id: str) -> str | None:
        """Resolve the venue of an active table."""
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT venue_id FROM venue_tables
                    WHERE id = :table_id AND active
                """),
                {"table_id": table_id},
            )
            return result.scalar_one_or_none()

    async def resolve_table_code(self, code: str) -> str | None:
        """Resolve the active table carrying a public code."""
        async with self._session_factory() as session:
            result = await session.execute(
                text("""
                    SELECT id FROM venue_tables
                    WHERE code = :code AND active
                """),
                {"code": code},
            )
            return result.scalar_one_or_none()
