"""
Async database engine and session management.

A single pooled engine is shared by every request and live-channel message.
The pool size is the fixed concurrency ceiling for store access.
"""

from collections.abc import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings

logger = structlog.get_logger(__name__)


def create_engine() -> AsyncEngine:
    """Create the pooled async engine from settings."""
    return create_async_engine(
        settings.database_url,
        echo=settings.DB_ECHO,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=0,
        pool_timeout=settings.DB_CONNECT_TIMEOUT,
        pool_pre_ping=True,
        connect_args={"timeout": settings.DB_CONNECT_TIMEOUT},
    )


engine = create_engine()

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def get_engine() -> AsyncEngine:
    return engine


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding a database session.

    Services commit explicitly; anything left uncommitted is rolled back
    when the session closes.
    """
    async with async_session_maker() as session:
        yield session


async def check_connection() -> None:
    """Run a trivial query; raises when the store is unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def init_db() -> None:
    """Verify the database is reachable at startup."""
    await check_connection()
    logger.info("database_connected", pool_size=settings.DB_POOL_SIZE)


async def close_db() -> None:
    """Dispose of the connection pool."""
    await engine.dispose()
    logger.info("database_closed")
