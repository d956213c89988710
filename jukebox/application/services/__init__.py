"""Application services."""

from jukebox.application.services.base import LoggingMixin
from jukebox.application.services.scheduler_service import SchedulerService

__all__: list[str] = ["LoggingMixin", "SchedulerService"]
