"""Configuration module for the venue jukebox.

Available Configurations:
- SchedulerConfig: conflict retries, batch limits, accepted video hosts
"""

from jukebox.config.scheduler_config import (
    DEFAULT_ALLOWED_VIDEO_HOSTS,
    DEFAULT_SCHEDULER_CONFIG,
    SchedulerConfig,
)

__all__ = [
    "SchedulerConfig",
    "DEFAULT_ALLOWED_VIDEO_HOSTS",
    "DEFAULT_SCHEDULER_CONFIG",
]
