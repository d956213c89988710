"""Table/venue directory port.

The scheduler does not own tables or venues. It only asks the directory
whether a table exists (and is active) and which venue it belongs to.
"""

from __future__ import annotations

from typing import Protocol


class TableDirectoryProtocol(Protocol):
    """Protocol for resolving tables to venues.

    Methods:
        resolve_venue_for_table: Venue id of an active table
        resolve_table_code: Table id printed on a table's QR code
    """

    async def resolve_venue_for_table(self, table_id: str) -> str | None:
        """Resolve the venue owning a table.

        Args:
            table_id: The table identifier.

        Returns:
            The venue id, or None if the table doesn't exist or is inactive.
        """
        ...

    async def resolve_table_code(self, code: str) -> str | None:
        """Resolve a table's public code (e.g. from its QR sticker).

        Args:
            code: The code shown at the table.

        Returns:
            The table id, or None if no table carries the code.
        """
        ...
