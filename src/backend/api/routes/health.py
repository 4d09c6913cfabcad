"""
Health check endpoint.

Reports process uptime and whether the store answers a trivial query.
A store failure is the one place a DataAccessError surfaces as 503.
"""

import time
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import STORE_EXCEPTIONS
from db.session import get_db
from schemas.converters import to_iso

logger = structlog.get_logger(__name__)

router = APIRouter()

STARTED_AT = time.monotonic()


@router.get("")
async def health_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Health check endpoint for load balancers and monitoring."""
    timestamp = to_iso(datetime.now(timezone.utc))
    try:
        await db.execute(text("SELECT 1"))
    except STORE_EXCEPTIONS as e:
        logger.error("health_check_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "ok": False,
                "timestamp": timestamp,
                "error": "Database connection failed",
            },
        )

    return JSONResponse(
        content={
            "ok": True,
            "timestamp": timestamp,
            "uptime": round(time.monotonic() - STARTED_AT, 3),
            "database": "connected",
        }
    )
