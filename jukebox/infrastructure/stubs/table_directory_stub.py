"""Table directory stub implementation.

In-memory stub of TableDirectoryProtocol for development and testing.

Testing Features:
- Register tables with venue and optional public code
- Deactivate/reactivate tables (inactive tables do not resolve)
- Track lookups for assertions
"""

from __future__ import annotations

from dataclasses import dataclass

from jukebox.application.ports.table_directory import TableDirectoryProtocol


@dataclass
class TableRecord:
    """A table known to the stub directory.

    Attributes:
        table_id: Table identifier.
        venue_id: Owning venue.
        code: Public code printed at the table (optional).
        active: Inactive tables resolve to nothing.
    """

    table_id: str
    venue_id: str
    code: str | None = None
    active: bool = True


class TableDirectoryStub(TableDirectoryProtocol):
    """In-memory stub implementation of TableDirectoryProtocol.

    It is NOT suitable for production use.

    Attributes:
        _tables: Dictionary of table_id -> TableRecord
        _codes: Dictionary of code -> table_id
        lookups: Table ids passed to resolve_venue_for_table, in call order
    """

    def __init__(self) -> None:
        """Initialize the stub with no tables."""
        self._tables: dict[str, TableRecord] = {}
        self._codes: dict[str, str] = {}
        self.lookups: list[str] = []

    def register_table(
        self,
        table_id: str,
        venue_id: str,
        code: str | None = None,
        active: bool = True,
    ) -> TableRecord:
        """Register (or replace) a table.

        Args:
            table_id: Table identifier.
            venue_id: Owning venue.
            code: Optional public code for the table.
            active: Whether the table resolves.

        Returns:
            The stored record.
        """
        existing = self._tables.get(table_id)
        if existing is not None and existing.code is not None:
            self._codes.pop(existing.code, None)

        record = TableRecord(
            table_id=table_id, venue_id=venue_id, code=code, active=active
        )
        self._tables[table_id] = record
        if code is not None:
            self._codes[code] = table_id
        return record

    def deactivate_table(self, table_id: str) -> None:
        """Mark a table inactive.

        Raises:
            KeyError: If the table isn't registered.
        """
        self._tables[table_id].active = False

    def activate_table(self, table_id: str) -> None:
        """Mark a table active again.

        Raises:
            KeyError: If the table isn't registered.
        """
        self._tables[table_id].active = True

    # Protocol implementation

    async def resolve_venue_for_table(self, table_id: str) -> str | None:
        """Resolve the venue of an active table."""
        self.lookups.append(table_id)
        record = self._tables.get(table_id)
        if record is None or not record.active:
            return None
        return record.venue_id

    async def resolve_table_code(self, code: str) -> str | None:
        """Resolve the table carrying an active public code."""
        table_id = self._codes.get(code)
        if table_id is None or not self._tables[table_id].active:
            return None
        return table_id

    def clear(self) -> None:
        """Clear all tables (for testing)."""
        self._tables.clear()
        self._codes.clear()
        self.lookups.clear()
