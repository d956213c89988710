"""Health check response models."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness and store reachability of the jukebox.

    Attributes:
        status: "healthy", or "degraded" when the store cannot be reached.
        version: Running jukebox version.
        store_backend: Configured queue store backend.
        store_reachable: Whether the queue store answered a health check.
    """

    status: Literal["healthy", "degraded"]
    version: str
    store_backend: str = Field(examples=["memory", "postgres"])
    store_reachable: bool
