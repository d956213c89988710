"""PostgreSQL engine and session factory for the postgres store backend.

Environment:
    DATABASE_URL: any SQLAlchemy/libpq style PostgreSQL URL; the driver
        is forced to asyncpg (``postgres://``, ``postgresql://`` and
        ``postgresql+psycopg://`` all become ``postgresql+asyncpg://``).
    SQLALCHEMY_ECHO: "1", "true" or "yes" to echo SQL.
    JUKEBOX_DB_POOL_SIZE: connection pool size, default 5.
"""

from __future__ import annotations

import os

from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from structlog import get_logger

logger = get_logger()

ASYNC_DRIVER = "postgresql+asyncpg"
DEFAULT_POOL_SIZE = 5

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_database_url() -> URL:
    """Read DATABASE_URL and switch it to the asyncpg driver.

    Raises:
        ValueError: If DATABASE_URL is unset, unparsable or not PostgreSQL.
    """
    raw = os.environ.get("DATABASE_URL", "").strip()
    if not raw:
        raise ValueError(
            "DATABASE_URL environment variable not set. "
            "Required for the postgres queue store."
        )
    if "://" not in raw:
        raw = f"{ASYNC_DRIVER}://{raw}"
    try:
        url = make_url(raw)
    except ArgumentError as e:
        raise ValueError(f"DATABASE_URL is not a valid database URL: {e}") from e

    if url.get_backend_name() not in ("postgres", "postgresql"):
        raise ValueError(
            f"DATABASE_URL must point at PostgreSQL, got {url.get_backend_name()!r}"
        )
    return url.set(drivername=ASYNC_DRIVER)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def _pool_size() -> int:
    raw = os.environ.get("JUKEBOX_DB_POOL_SIZE")
    if raw is None:
        return DEFAULT_POOL_SIZE
    try:
        size = int(raw)
    except ValueError as e:
        raise ValueError(f"JUKEBOX_DB_POOL_SIZE must be an integer, got {raw!r}") from e
    if size < 1:
        raise ValueError(f"JUKEBOX_DB_POOL_SIZE must be >= 1, got {size}")
    return size


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the process-wide session factory, creating the engine on first use.

    Raises:
        ValueError: If the database settings are invalid.
    """
    global _engine, _session_factory

    if _session_factory is None:
        url = get_database_url()
        log = logger.bind(component="database_bootstrap")
        log.info(
            "creating_database_engine",
            url=url.render_as_string(hide_password=True),
        )
        _engine = create_async_engine(
            url,
            echo=_env_flag("SQLALCHEMY_ECHO"),
            pool_size=_pool_size(),
            pool_pre_ping=True,
        )
        _session_factory = async_sessionmaker(
            _engine, class_=AsyncSession, expire_on_commit=False
        )

    return _session_factory


async def close_database_engine() -> None:
    """Dispose the engine on shutdown; a later call to get_session_factory() starts over."""
    global _engine, _session_factory
    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        await engine.dispose()
        logger.info("database_engine_closed")


def reset_database_bootstrap() -> None:
    """Forget the engine without disposing it (tests only)."""
    global _engine, _session_factory
    _engine = None
    _session_factory = None
