"""Test fixtures — a fresh in-memory database and app instance per test.

Tests run against SQLite (aiosqlite) by default so they need no running
services. Point CREATORCOMPASS_TEST_DATABASE_URL at a Postgres database to
run the same suite there.

Each test gets its own create_app() instance, which means its own
connection registries on app.state; nothing leaks between tests.
"""

import os

# Must be set before creatorcompass.config is imported
os.environ.setdefault("CREATORCOMPASS_ENVIRONMENT", "test")
os.environ.setdefault("CREATORCOMPASS_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("CREATORCOMPASS_REDIS_URL", "redis://localhost:6399/0")

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from creatorcompass.auth.dependencies import CurrentIdentity, get_current_user
from creatorcompass.db.engine import get_db
from creatorcompass.db.models import Base, Subscription, User
from creatorcompass.main import create_app

TEST_DB_URL = os.environ.get("CREATORCOMPASS_TEST_DATABASE_URL", "sqlite+aiosqlite://")

TEST_USER_ID = "00000000-0000-0000-0000-000000000001"


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # One shared in-memory database for every session in the test
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {}


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a freshly created schema."""
    engine = create_async_engine(TEST_DB_URL, echo=False, **_engine_options(TEST_DB_URL))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def app():
    return create_app()


async def make_user(
    db: AsyncSession,
    user_id: str = TEST_USER_ID,
    *,
    email: str = "creator@example.com",
    preferences: dict | None = None,
    subscription_status: str | None = None,
    **subscription_fields,
) -> User:
    """Insert a user, optionally with a subscription in the given status."""
    subscription = None
    if subscription_status is not None:
        subscription = Subscription(
            plan="pro", status=subscription_status, **subscription_fields
        )
    user = User(
        id=uuid.UUID(user_id),
        email=email,
        name="Test Creator",
        notification_preferences=preferences or {},
        subscription=subscription,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture()
async def user(db_session):
    """The creator every `client` request is authenticated as."""
    return await make_user(db_session)


@pytest_asyncio.fixture()
async def client(app, db_session):
    """HTTP client with get_db and auth overridden.

    Every request is made as TEST_USER_ID. The user row itself is not
    created here; request the `user` fixture for that.
    """

    async def override_get_db():
        yield db_session

    def override_get_current_user():
        return CurrentIdentity(user_id=TEST_USER_ID)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(app, db_session):
    """HTTP client WITHOUT the auth override, for real JWT flows."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def user_factory(db_session):
    """Call with the same arguments as make_user, minus the session."""

    async def _make(user_id: str = TEST_USER_ID, **kwargs) -> User:
        return await make_user(db_session, user_id, **kwargs)

    return _make
