"""
Pytest fixtures for LiveVote backend tests.
"""

import os
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("POSTGRES_PASSWORD", "test-password")
os.environ.setdefault("POSTGRES_DB", "livevote_test")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "test-admin-password")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

ADMIN_AUTH = ("admin", "test-admin-password")

DEFAULT_SETTINGS = {
    "target_count": "110",
    "brightness_min": "0.1",
    "brightness_max": "1.10",
    "code": "8375",
}


class FakeVoteRepository:
    """In-memory stand-in for VoteRepository."""

    def __init__(self) -> None:
        self.votes: list[SimpleNamespace] = []
        self._clock = datetime(2025, 3, 14, 18, 0, 0, tzinfo=timezone.utc)

    def add(self, name: str, choice: int) -> SimpleNamespace:
        """Insert synchronously (test setup)."""
        self._clock += timedelta(seconds=1)
        vote = SimpleNamespace(id=str(uuid4()), name=name, choice=choice, created_at=self._clock)
        self.votes.append(vote)
        return vote

    async def create(self, name: str, choice: int) -> SimpleNamespace:
        return self.add(name, choice)

    async def count(self) -> int:
        return len(self.votes)

    async def count_by_choice(self) -> dict[int, int]:
        counts = {1: 0, 2: 0, 3: 0, 4: 0}
        for vote in self.votes:
            counts[vote.choice] += 1
        return counts

    async def get_recent(self, limit: int = 50) -> list[SimpleNamespace]:
        return list(reversed(self.votes))[:limit]

    async def get_all(self) -> list[SimpleNamespace]:
        return list(reversed(self.votes))

    async def delete_all(self) -> int:
        deleted = len(self.votes)
        self.votes.clear()
        return deleted


class FakeSettingsRepository:
    """In-memory stand-in for SettingsRepository."""

    def __init__(self, values: Optional[dict[str, str]] = None) -> None:
        self.values = dict(values or {})

    async def get_all(self) -> dict[str, str]:
        return dict(self.values)

    async def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def upsert(self, key: str, value: str) -> None:
        self.values[key] = value


class RecordingPublisher:
    """Publisher that remembers what it was asked to send."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any, Any]] = []

    async def publish(self, event: str, data: Any, role: Any = None) -> None:
        self.events.append((event, data, role))

    @property
    def names(self) -> list[str]:
        return [event for event, _, _ in self.events]


class FakeWebSocket:
    """Collects JSON frames sent to it."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = fail

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """Create mock database session."""
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    return session


@pytest.fixture
def vote_repo() -> FakeVoteRepository:
    return FakeVoteRepository()


@pytest.fixture
def settings_repo() -> FakeSettingsRepository:
    return FakeSettingsRepository(DEFAULT_SETTINGS)


@pytest.fixture
def aggregator(vote_repo: FakeVoteRepository, settings_repo: FakeSettingsRepository) -> Any:
    from services.aggregator import StateAggregator

    return StateAggregator(vote_repo, settings_repo)


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def vote_service(
    mock_db_session: AsyncMock,
    publisher: RecordingPublisher,
    vote_repo: FakeVoteRepository,
    aggregator: Any,
) -> Any:
    from services.vote_service import VoteService

    return VoteService(mock_db_session, publisher=publisher, votes=vote_repo, aggregator=aggregator)


@pytest.fixture
def app(mock_db_session: AsyncMock, vote_repo: FakeVoteRepository, aggregator: Any) -> Any:
    """FastAPI application wired to the in-memory repositories."""
    from api.deps import (
        get_live_service_scope,
        get_state_aggregator,
        get_vote_service,
    )
    from core.config import settings
    from db.session import get_db
    from main import app as fastapi_app
    from services.live_channel import LiveChannel
    from services.role_gate import RoleGate
    from services.vote_service import VoteService

    channel = LiveChannel()
    fastapi_app.state.live_channel = channel
    fastapi_app.state.role_gate = RoleGate(settings.LIVE_ADMIN_POLICY, settings.ADMIN_PASSWORD)

    def build_service() -> VoteService:
        return VoteService(mock_db_session, publisher=channel, votes=vote_repo, aggregator=aggregator)

    @asynccontextmanager
    async def service_scope() -> AsyncIterator[VoteService]:
        yield build_service()

    fastapi_app.dependency_overrides[get_db] = lambda: mock_db_session
    fastapi_app.dependency_overrides[get_state_aggregator] = lambda: aggregator
    fastapi_app.dependency_overrides[get_vote_service] = build_service
    fastapi_app.dependency_overrides[get_live_service_scope] = lambda: service_scope

    yield fastapi_app

    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def make_live_connection() -> Any:
    """Factory for live connections backed by a FakeWebSocket."""
    from services.live_channel import LiveConnection

    def factory(role: Any = None, fail: bool = False) -> LiveConnection:
        connection = LiveConnection(FakeWebSocket(fail=fail))
        connection.session.role = role
        return connection

    return factory


@pytest.fixture
def admin_auth() -> tuple[str, str]:
    """HTTP Basic credential matching the test environment."""
    return ADMIN_AUTH
