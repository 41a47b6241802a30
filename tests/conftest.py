"""
Shared test fixtures for pytest.

Provides common helpers and test data for all test modules:
- fake_settings: Test environment configuration (in-memory goal store)
- clock: Deterministic UTC clock that advances one second per call
- owner_id, other_owner_id: Fixed user UUIDs
- repository: Goal repository, parametrised over in-memory and SQLite
- service: GoalService over ``repository`` driven by ``clock``
- test_app / client: FastAPI app and async HTTP client (auth headers set)
- make_token: Helper to create test JWT tokens
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import httpx
import jwt
import pytest
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from goaltracker.config import Environment, GoalStoreBackend, Settings, get_settings
from goaltracker.database import create_schema
from goaltracker.services.goal_service import GoalService
from goaltracker.store.base import GoalRepository
from goaltracker.store.memory import InMemoryGoalRepository
from goaltracker.store.sql import SqlGoalRepository

# ------------------------------------------------------------------ #
# Session-scoped: clear settings cache between test sessions
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True, scope="session")
def _clear_settings_cache():
    """Clear the lru_cache on get_settings so test overrides take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ------------------------------------------------------------------ #
# Constants for Test JWTs
# ------------------------------------------------------------------ #

TEST_JWT_SECRET = "test-jwt-secret-for-goaltracker-suite"
TEST_AUDIENCE = "goaltracker-api"

OWNER_ID = uuid.UUID("11111111-1111-4111-8111-111111111111")
OTHER_OWNER_ID = uuid.UUID("22222222-2222-4222-8222-222222222222")


def make_token(
    sub: str | uuid.UUID,
    *,
    audience: str = TEST_AUDIENCE,
    secret: str = TEST_JWT_SECRET,
    expires_in: int = 3600,
) -> str:
    """Create a test JWT token using HS256.

    Args:
        sub: Subject claim (the goal owner id)
        audience: 'aud' claim
        secret: Signing secret
        expires_in: Seconds until expiry (negative for an expired token)

    Returns:
        Encoded JWT token string
    """
    now = int(datetime.now(UTC).timestamp())
    payload = {
        "sub": str(sub),
        "email": "test@example.com",
        "aud": audience,
        "iat": now,
        "exp": now + expires_in,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(sub: str | uuid.UUID = OWNER_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub)}"}


# ------------------------------------------------------------------ #
# Clock & identities
# ------------------------------------------------------------------ #


class TickingClock:
    """UTC clock that advances by ``step`` every time it is read."""

    def __init__(self, start: datetime, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = now + self.step
        return now

    def set(self, moment: datetime) -> None:
        self.current = moment


CLOCK_START = datetime(2026, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(CLOCK_START)


@pytest.fixture
def owner_id() -> uuid.UUID:
    return OWNER_ID


@pytest.fixture
def other_owner_id() -> uuid.UUID:
    return OTHER_OWNER_ID


# ------------------------------------------------------------------ #
# Settings
# ------------------------------------------------------------------ #


@pytest.fixture
def fake_settings() -> Settings:
    """Test environment settings with safe defaults."""
    return Settings(
        environment=Environment.TEST,
        database_url="sqlite+aiosqlite:///:memory:",
        goal_store=GoalStoreBackend.MEMORY,
        jwt_secret=TEST_JWT_SECRET,
        jwt_audience=TEST_AUDIENCE,
        debug=True,
        db_echo_sql=False,
    )


# ------------------------------------------------------------------ #
# Repositories & service
# ------------------------------------------------------------------ #


@pytest.fixture
async def sqlite_session_factory(
    tmp_path: Path,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory on a throwaway SQLite file with the schema created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'goals.db'}", poolclass=NullPool)
    await create_schema(engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture(params=["memory", "sqlite"])
async def repository(
    request: pytest.FixtureRequest,
    tmp_path: Path,
) -> AsyncGenerator[GoalRepository, None]:
    """Every GoalRepository implementation, so contract tests run on each."""
    if request.param == "memory":
        yield InMemoryGoalRepository()
        return

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'goals.db'}", poolclass=NullPool)
    await create_schema(engine)
    yield SqlGoalRepository(async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False))
    await engine.dispose()


@pytest.fixture
def service(repository: GoalRepository, clock: TickingClock) -> GoalService:
    return GoalService(repository, clock=clock)


# ------------------------------------------------------------------ #
# App & HTTP client
# ------------------------------------------------------------------ #


@pytest.fixture
def test_app(fake_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> FastAPI:
    """FastAPI app wired to an in-memory repository.

    The lifespan is not run by ASGITransport, so the repository is placed
    on app.state directly and get_settings is overridden for dependencies.
    """
    from goaltracker.main import create_app

    get_settings.cache_clear()
    monkeypatch.setattr("goaltracker.main.get_settings", lambda: fake_settings)

    app = create_app()
    app.dependency_overrides[get_settings] = lambda: fake_settings
    app.state.goal_repository = InMemoryGoalRepository()
    return app


@pytest.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client authenticated as OWNER_ID."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers=auth_headers(OWNER_ID),
    ) as ac:
        yield ac


@pytest.fixture
async def anon_client(test_app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client without credentials."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def headers_for():
    """Factory for Authorization headers of an arbitrary owner id."""
    return auth_headers


@pytest.fixture
def token_factory():
    """Factory for raw test JWTs (see make_token)."""
    return make_token
