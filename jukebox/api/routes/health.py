"""Health check endpoint for the jukebox API."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from structlog import get_logger

from jukebox import __version__
from jukebox.api.dependencies.scheduler import get_scheduler_config
from jukebox.api.models.health import HealthResponse
from jukebox.bootstrap.database import get_session_factory
from jukebox.config.scheduler_config import SchedulerConfig

logger = get_logger()

router = APIRouter(prefix="/v1", tags=["health"])


async def check_store(config: SchedulerConfig) -> bool:
    """Check that the configured queue store answers.

    The in-memory store always answers.
    """
    if config.store_backend != "postgres":
        return True
    try:
        async with get_session_factory()() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("store_check_failed", error=str(e))
        return False
    return True


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def health_check(
    response: Response,
    config: SchedulerConfig = Depends(get_scheduler_config),
) -> HealthResponse:
    """Report liveness; 503 when the queue store is unreachable."""
    reachable = await check_store(config)
    if not reachable:
        response.status_code = 503
    return HealthResponse(
        status="healthy" if reachable else "degraded",
        version=__version__,
        store_backend=config.store_backend,
        store_reachable=reachable,
    )
