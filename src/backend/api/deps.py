"""
Shared dependencies for API endpoints.

Includes:
- Service construction (vote service, state aggregator)
- Access to the live channel and role gate held on ``app.state``
- HTTP Basic admin authentication
"""

import secrets
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Annotated, AsyncContextManager, AsyncIterator, Optional

import structlog
from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection

from core.config import settings
from core.errors import AuthError
from db.session import async_session_maker, get_db
from repositories.settings_repository import SettingsRepository
from repositories.vote_repository import VoteRepository
from services.aggregator import StateAggregator
from services.live_channel import LiveChannel
from services.role_gate import RoleGate
from services.vote_service import VoteService

logger = structlog.get_logger(__name__)

# auto_error=False so a missing header goes through our own 401 body
security_basic = HTTPBasic(auto_error=False)

LiveServiceScope = Callable[[], AsyncContextManager[VoteService]]


# =============================================================================
# Live channel
# =============================================================================


def get_live_channel(connection: HTTPConnection) -> LiveChannel:
    """The application's single live room."""
    return connection.app.state.live_channel


def get_role_gate(connection: HTTPConnection) -> RoleGate:
    return connection.app.state.role_gate


def get_live_service_scope(
    channel: Annotated[LiveChannel, Depends(get_live_channel)],
) -> LiveServiceScope:
    """
    Factory of per-message vote services for WebSocket handlers.

    A WebSocket lives far longer than a request, so each incoming message
    opens its own session instead of holding a pooled connection for the
    lifetime of the socket.
    """

    @asynccontextmanager
    async def scope() -> AsyncIterator[VoteService]:
        async with async_session_maker() as db:
            yield VoteService(db, publisher=channel)

    return scope


# =============================================================================
# Services
# =============================================================================


def get_state_aggregator(db: AsyncSession = Depends(get_db)) -> StateAggregator:
    return StateAggregator(VoteRepository(db), SettingsRepository(db))


def get_vote_service(
    channel: Annotated[LiveChannel, Depends(get_live_channel)],
    db: AsyncSession = Depends(get_db),
) -> VoteService:
    """Vote service publishing through the live channel."""
    return VoteService(db, publisher=channel)


# =============================================================================
# Admin Authentication (HTTP Basic)
# =============================================================================


def _matches(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def require_admin(
    credentials: Annotated[Optional[HTTPBasicCredentials], Depends(security_basic)],
) -> str:
    """
    Require the shared admin credential.

    Raises:
        AuthError: If the header is missing or the credential does not match.
    """
    if credentials is None:
        raise AuthError("Authorization required")

    # Evaluate both comparisons so timing does not reveal which part was wrong
    username_ok = _matches(credentials.username, settings.ADMIN_USERNAME)
    password_ok = _matches(credentials.password, settings.ADMIN_PASSWORD)
    if not (username_ok and password_ok):
        logger.warning("admin_auth_failed", username=credentials.username)
        raise AuthError("Invalid credentials")

    return credentials.username
