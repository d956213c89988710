"""In-memory stub implementations of the application ports.

For development and testing only.
"""

from jukebox.infrastructure.stubs.queue_store_stub import QueueStoreStub
from jukebox.infrastructure.stubs.table_directory_stub import (
    TableDirectoryStub,
    TableRecord,
)

__all__: list[str] = ["QueueStoreStub", "TableDirectoryStub", "TableRecord"]
