"""
Pytest fixtures for testing.
"""
import uuid
import pytest
import pytest_asyncio
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Import database module BEFORE app to allow override
import opportunity.database
from opportunity.config import settings
from opportunity.database import Base
# Import ALL models so Base.metadata knows about all tables
from opportunity.models import User, Job
from opportunity.schemas.auth import AuthenticatedUser
from opportunity.security import create_session_token

# Now import app (after we can override database)
from opportunity.main import app as fastapi_app


# Test database URL (use in-memory SQLite for fast tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test.
    Ensures cleanup happens even if test fails.
    """
    # StaticPool keeps a single connection alive so every session
    # sees the same in-memory database
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Replace the app's engine and sessionmaker so get_db() uses the test DB
    original_engine = opportunity.database.engine
    original_sessionmaker = opportunity.database.AsyncSessionLocal

    opportunity.database.engine = test_engine
    opportunity.database.AsyncSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)()

    try:
        yield session
    finally:
        await session.close()
        async with test_engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await test_engine.dispose()

        opportunity.database.engine = original_engine
        opportunity.database.AsyncSessionLocal = original_sessionmaker
        fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing endpoints.

    Redirects are not followed so the OAuth callback's Location header
    can be asserted.
    """
    transport = ASGITransport(app=fastapi_app)

    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def _create_user(db: AsyncSession, email: str, metadata: dict) -> User:
    user = User(id=uuid.uuid4(), email=email, user_metadata=metadata)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db: AsyncSession) -> User:
    """A signed-in user mirror (no profile yet)."""
    return await _create_user(db, "testuser@example.com", {"full_name": "Test User"})


@pytest_asyncio.fixture
async def other_user(db: AsyncSession) -> User:
    """A second user, for ownership checks."""
    return await _create_user(db, "other@example.com", {"name": "Other Person"})


@pytest.fixture
def identity(test_user: User) -> AuthenticatedUser:
    return AuthenticatedUser(id=test_user.id, email=test_user.email, user_metadata=test_user.user_metadata)


@pytest.fixture
def make_job(db: AsyncSession):
    """Factory inserting a job directly, bypassing the service."""
    async def _make_job(user: User, **overrides) -> Job:
        values = {
            "title": "Backend Engineer",
            "company": "Acme",
            "country": "US",
            "currency": "USD",
            "status": "saved",
        }
        values.update(overrides)
        job = Job(user_id=user.id, **values)
        db.add(job)
        await db.commit()
        await db.refresh(job)
        return job

    return _make_job


@pytest_asyncio.fixture
async def job(make_job, test_user: User) -> Job:
    return await make_job(test_user)


@pytest_asyncio.fixture
async def client(async_client: AsyncClient, test_user: User) -> AsyncClient:
    """Authenticated client carrying a signed session cookie."""
    async_client.cookies.set(settings.auth_cookie_name, create_session_token(test_user.id))
    return async_client
