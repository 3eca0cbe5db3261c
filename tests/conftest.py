"""
Global test fixtures and configuration.

This module provides base fixtures for all tests:
- Database session on a fresh in-memory SQLite database per test
- Redis client (in-memory fake)
- A controllable clock for the throttling gates
- HTTP client with dependency overrides
- Base data fixtures (users, listing, auth headers)
"""

import os
import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from fakeredis import FakeAsyncRedis

# Set test environment variables BEFORE importing app
os.environ["MODE"] = "test"
os.environ["POSTGRES_INTERNAL_URL"] = "sqlite+aiosqlite://"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["EMAIL_BACKEND"] = "console"
os.environ["DEBUG_ECHO_CODES"] = "true"
os.environ["SENTRY_DSN"] = ""

from propfind.main import app
from propfind.api.dependencies import get_db, get_login_gate, get_redis, get_verification_gate
from propfind.db.base import Base
from propfind.services.login_gate import LoginAttemptGate
from propfind.services.verification_gate import VerificationGate
from tests.helpers import FakeClock, bearer

TEST_DATABASE_URL = "sqlite+aiosqlite://"


# ==================== Database ====================

@pytest.fixture(scope="function")
async def test_engine():
    """
    In-memory database shared by every connection of a single test.

    Tables are created per test, so nothing leaks between tests.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False  # Set to True for SQL debugging
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Session shared by the test body and the application under test.
    """
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


# ==================== Redis ====================

@pytest.fixture(scope="function")
async def redis_client() -> AsyncGenerator[FakeAsyncRedis, None]:
    """
    Fake Redis client (in-memory) for each test.

    decode_responses matches the production client.
    """
    redis = FakeAsyncRedis(decode_responses=True)
    yield redis
    await redis.flushall()
    await redis.aclose()


# ==================== Gates ====================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def verification_gate(redis_client, clock) -> VerificationGate:
    return VerificationGate(redis_client, clock=clock)


@pytest.fixture
def login_gate(redis_client, clock) -> LoginAttemptGate:
    return LoginAttemptGate(redis_client, clock=clock)


# ==================== FastAPI Client ====================

@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    redis_client: FakeAsyncRedis,
    verification_gate: VerificationGate,
    login_gate: LoginAttemptGate,
) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client for testing FastAPI endpoints.

    Overrides get_db, get_redis and the gate dependencies so tests can
    move the gates' clock.
    """

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        yield redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_verification_gate] = lambda: verification_gate
    app.dependency_overrides[get_login_gate] = lambda: login_gate

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    # Clear overrides after test
    app.dependency_overrides.clear()


# ==================== Base Data Fixtures ====================

@pytest.fixture
async def user(db_session: AsyncSession):
    """
    A renter: the user who sends access requests.
    """
    from tests.factories import UserFactory
    user = await UserFactory.create_async(
        db_session,
        email="renter@loyveil.edu",
        name="Renter"
    )
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def owner(db_session: AsyncSession):
    """
    A listing owner: the user who answers access requests.
    """
    from tests.factories import UserFactory
    user = await UserFactory.create_async(
        db_session,
        email="owner@loyveil.edu",
        name="Owner"
    )
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def admin_user(db_session: AsyncSession):
    """
    Operator allowed to reset throttling state.
    """
    from tests.factories import UserFactory
    user = await UserFactory.create_async(
        db_session,
        email="admin@loyveil.edu",
        name="Admin User",
        is_admin=True
    )
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def listing(db_session: AsyncSession, owner):
    from tests.factories import ListingFactory
    listing = await ListingFactory.create_async(
        db_session,
        owner_id=owner.id,
        title="Sunny studio near campus",
        location="Loyveil",
        price=650.0
    )
    await db_session.commit()
    await db_session.refresh(listing)
    return listing


@pytest.fixture
async def auth_headers(user):
    """
    Authentication headers for the renter.
    """
    return bearer(user)


@pytest.fixture
async def owner_auth_headers(owner):
    return bearer(owner)


@pytest.fixture
async def admin_auth_headers(admin_user):
    return bearer(admin_user)


# ==================== Helper Fixtures ====================

@pytest.fixture
def anyio_backend():
    """
    Configure anyio backend for httpx AsyncClient.
    """
    return "asyncio"
