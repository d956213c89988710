"""Application ports (outbound collaborator contracts)."""

from jukebox.application.ports.payload_validator import PayloadValidatorProtocol
from jukebox.application.ports.queue_store import QueueStoreProtocol
from jukebox.application.ports.table_directory import TableDirectoryProtocol

__all__: list[str] = [
    "PayloadValidatorProtocol",
    "QueueStoreProtocol",
    "TableDirectoryProtocol",
]
