"""FastAPI application entry point for the venue jukebox."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from structlog import get_logger

from jukebox import __version__
from jukebox.api.dependencies.scheduler import get_scheduler_config
from jukebox.api.middleware.logging_middleware import LoggingMiddleware
from jukebox.api.routes.health import router as health_router
from jukebox.api.routes.queue import router as queue_router
from jukebox.bootstrap.database import close_database_engine, get_session_factory
from jukebox.infrastructure.adapters.postgres_schema import ensure_schema
from jukebox.infrastructure.observability import configure_structlog

logger = get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and, for the postgres backend, the schema."""
    configure_structlog()
    config = get_scheduler_config()
    log = logger.bind(component="startup")
    log.info("jukebox_starting", store_backend=config.store_backend)

    if config.store_backend == "postgres":
        await ensure_schema(get_session_factory())
    try:
        yield
    finally:
        if config.store_backend == "postgres":
            await close_database_engine()
        log.info("jukebox_stopped")


app = FastAPI(
    title="Venue Jukebox API",
    description="Fair round-robin video queue for tables in a venue",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(LoggingMiddleware)
app.include_router(health_router)
app.include_router(queue_router)
