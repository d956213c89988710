"""Production adapters for the application ports."""

from jukebox.infrastructure.adapters.postgres_queue_store import PostgresQueueStore
from jukebox.infrastructure.adapters.postgres_schema import (
    SCHEMA_STATEMENTS,
    ensure_schema,
)
from jukebox.infrastructure.adapters.postgres_table_directory import (
    PostgresTableDirectory,
)
from jukebox.infrastructure.adapters.youtube_link_validator import (
    YouTubeLinkValidator,
)

__all__: list[str] = [
    "PostgresQueueStore",
    "PostgresTableDirectory",
    "SCHEMA_STATEMENTS",
    "YouTubeLinkValidator",
    "ensure_schema",
]
