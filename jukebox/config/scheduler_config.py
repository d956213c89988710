"""Scheduler configuration.

Configuration for the fair video scheduler with environment variable
overrides for production tuning.

Environment Variables:
- JUKEBOX_MAX_CONFLICT_ATTEMPTS: Attempts at a conditional update before a
  concurrent-update conflict is surfaced (default: 5)
- JUKEBOX_MAX_BATCH_SIZE: Max links accepted in one table submission (default: 20)
- JUKEBOX_ALLOWED_VIDEO_HOSTS: Comma separated accepted video hosts
  (default: YouTube hosts)
- JUKEBOX_CONFLICT_RETRY_AFTER: Retry-After seconds on a surfaced conflict (default: 1)
- JUKEBOX_STORE_BACKEND: "memory" or "postgres" (default: memory)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_ALLOWED_VIDEO_HOSTS: tuple[str, ...] = (
    "youtube.com",
    "www.youtube.com",
    "m.youtube.com",
    "music.youtube.com",
    "youtu.be",
)

STORE_BACKENDS: frozenset[str] = frozenset({"memory", "postgres"})


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_hosts_env(key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Get a comma separated host list from the environment."""
    value = os.environ.get(key)
    if value is None:
        return default
    hosts = tuple(h.strip().lower() for h in value.split(",") if h.strip())
    return hosts or default


@dataclass(frozen=True)
class SchedulerConfig:
    """Configuration for the fair video scheduler.

    All values can be overridden via environment variables.

    Attributes:
        max_conflict_attempts: Attempts at a select-and-transition (or a
            single-item transition) before ConcurrentUpdateConflictError
            reaches the caller. Default: 5.
        max_batch_size: Maximum links a table may submit in one request.
            Default: 20.
        allowed_video_hosts: Hosts accepted by the link validator.
        conflict_retry_after_seconds: Retry-After header value returned
            when a conflict surfaces over HTTP. Default: 1.
        store_backend: Queue store implementation ("memory" or "postgres").
    """

    max_conflict_attempts: int = 5
    max_batch_size: int = 20
    allowed_video_hosts: tuple[str, ...] = DEFAULT_ALLOWED_VIDEO_HOSTS
    conflict_retry_after_seconds: int = 1
    store_backend: str = "memory"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_conflict_attempts < 1:
            raise ValueError(
                f"max_conflict_attempts must be at least 1, got {self.max_conflict_attempts}"
            )
        if self.max_batch_size < 1:
            raise ValueError(
                f"max_batch_size must be at least 1, got {self.max_batch_size}"
            )
        if not self.allowed_video_hosts:
            raise ValueError("allowed_video_hosts must not be empty")
        if self.conflict_retry_after_seconds < 1:
            raise ValueError(
                "conflict_retry_after_seconds must be at least 1, "
                f"got {self.conflict_retry_after_seconds}"
            )
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(
                f"store_backend must be one of {sorted(STORE_BACKENDS)}, "
                f"got {self.store_backend!r}"
            )

    @classmethod
    def from_environment(cls) -> "SchedulerConfig":
        """Create config from environment variables with defaults.

        Returns:
            SchedulerConfig with values from environment or defaults.
        """
        return cls(
            max_conflict_attempts=_get_int_env("JUKEBOX_MAX_CONFLICT_ATTEMPTS", 5),
            max_batch_size=_get_int_env("JUKEBOX_MAX_BATCH_SIZE", 20),
            allowed_video_hosts=_get_hosts_env(
                "JUKEBOX_ALLOWED_VIDEO_HOSTS", DEFAULT_ALLOWED_VIDEO_HOSTS
            ),
            conflict_retry_after_seconds=_get_int_env(
                "JUKEBOX_CONFLICT_RETRY_AFTER", 1
            ),
            store_backend=os.environ.get("JUKEBOX_STORE_BACKEND", "memory").lower(),
        )


# Default production config
DEFAULT_SCHEDULER_CONFIG = SchedulerConfig()
