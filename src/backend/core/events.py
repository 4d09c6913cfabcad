"""
Application lifecycle event handlers.

Startup verifies the database and applies pending migrations; either
failure aborts startup. Shutdown disposes of the connection pool.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from core.config import settings
from db.migrations import run_migrations
from db.session import close_db, get_engine, init_db

logger = structlog.get_logger(__name__)


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        logger.info("Starting LiveVote API...", env=settings.APP_ENV)

        try:
            await init_db()
        except Exception as e:
            logger.error("database_unreachable", error=str(e))
            raise

        if settings.RUN_MIGRATIONS_ON_STARTUP:
            try:
                applied = await run_migrations(get_engine())
            except Exception as e:
                logger.error("startup_migrations_failed", error=str(e))
                raise
            logger.info("Migrations checked", applied=len(applied))

        logger.info(
            "LiveVote API started successfully",
            room=app.state.live_channel.name,
            live_admin_policy=settings.LIVE_ADMIN_POLICY.value,
            cors_origins=settings.cors_origins_list,
        )

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("Shutting down LiveVote API...", subscribers=len(app.state.live_channel))
        await close_db()
        logger.info("LiveVote API shutdown complete")

    return stop_app
