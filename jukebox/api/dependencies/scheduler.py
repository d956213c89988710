"""Scheduler API dependencies.

Dependency injection setup for the scheduler service and its
collaborators. The queue store backend is chosen by
SchedulerConfig.store_backend:

- "memory": QueueStoreStub + TableDirectoryStub (development and tests)
- "postgres": PostgresQueueStore + PostgresTableDirectory (DATABASE_URL)

The payload validator is always the real YouTubeLinkValidator.
"""

from __future__ import annotations

from jukebox.application.ports.payload_validator import PayloadValidatorProtocol
from jukebox.application.ports.queue_store import QueueStoreProtocol
from jukebox.application.ports.table_directory import TableDirectoryProtocol
from jukebox.application.services.scheduler_service import SchedulerService
from jukebox.bootstrap.database import get_session_factory
from jukebox.config.scheduler_config import SchedulerConfig
from jukebox.infrastructure.adapters.postgres_queue_store import PostgresQueueStore
from jukebox.infrastructure.adapters.postgres_table_directory import (
    PostgresTableDirectory,
)
from jukebox.infrastructure.adapters.youtube_link_validator import (
    YouTubeLinkValidator,
)
from jukebox.infrastructure.stubs.queue_store_stub import QueueStoreStub
from jukebox.infrastructure.stubs.table_directory_stub import TableDirectoryStub

# Singleton instances, configured from the environment on first use

_scheduler_config: SchedulerConfig | None = None
_queue_store: QueueStoreProtocol | None = None
_table_directory: TableDirectoryProtocol | None = None
_payload_validator: PayloadValidatorProtocol | None = None
_scheduler_service: SchedulerService | None = None


def get_scheduler_config() -> SchedulerConfig:
    """Get scheduler configuration.

    Returns singleton SchedulerConfig loaded from environment.
    """
    global _scheduler_config
    if _scheduler_config is None:
        _scheduler_config = SchedulerConfig.from_environment()
    return _scheduler_config


def get_queue_store() -> QueueStoreProtocol:
    """Get queue store instance for the configured backend."""
    global _queue_store
    if _queue_store is None:
        if get_scheduler_config().store_backend == "postgres":
            _queue_store = PostgresQueueStore(get_session_factory())
        else:
            _queue_store = QueueStoreStub()
    return _queue_store


def get_table_directory() -> TableDirectoryProtocol:
    """Get table directory instance for the configured backend."""
    global _table_directory
    if _table_directory is None:
        if get_scheduler_config().store_backend == "postgres":
            _table_directory = PostgresTableDirectory(get_session_factory())
        else:
            _table_directory = TableDirectoryStub()
    return _table_directory


def get_payload_validator() -> PayloadValidatorProtocol:
    """Get the YouTube link validator for the configured hosts."""
    global _payload_validator
    if _payload_validator is None:
        _payload_validator = YouTubeLinkValidator(
            allowed_hosts=get_scheduler_config().allowed_video_hosts
        )
    return _payload_validator


def get_scheduler_service() -> SchedulerService:
    """Get the scheduler service wired to the singleton collaborators."""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService(
            store=get_queue_store(),
            directory=get_table_directory(),
            validator=get_payload_validator(),
            config=get_scheduler_config(),
        )
    return _scheduler_service


def set_scheduler_config(config: SchedulerConfig) -> None:
    """Override the scheduler configuration (for testing).

    Call reset_scheduler_dependencies() first so dependent singletons
    are rebuilt with the new configuration.
    """
    global _scheduler_config
    _scheduler_config = config


def reset_scheduler_dependencies() -> None:
    """Reset all singletons (for testing)."""
    global _scheduler_config, _queue_store, _table_directory
    global _payload_validator, _scheduler_service
    _scheduler_config = None
    _queue_store = None
    _table_directory = None
    _payload_validator = None
    _scheduler_service = None
