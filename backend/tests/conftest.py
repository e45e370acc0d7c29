"""Pytest configuration and fixtures for the chat backend tests."""

import os

# Configure the environment before the application (and its settings) is imported
os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SMTP_HOST"] = ""

from datetime import timedelta
from typing import AsyncGenerator

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.deps import get_token_service
from app.core.database import Base, get_db
from app.core.rate_limit import limiter
from app.core.security import get_password_hash
from app.crud.user import identity_for
from app.main import app
from app.models.user import User
from app.services.token_service import TokenService

# Use SQLite in-memory database for tests (faster and no setup needed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_USER_EMAIL = "test@example.com"
TEST_USER_PASSWORD = "Test123!@#"


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Start every test with empty rate limit counters."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
async def engine():
    """Create async engine for tests with SQLite in-memory database."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,  # StaticPool for in-memory SQLite
        connect_args={"check_same_thread": False},  # Required for SQLite
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
def client() -> TestClient:
    """Synchronous test client for endpoints that do not touch the database."""
    return TestClient(app)


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client with database session override."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def token_service() -> TokenService:
    """The token service the application uses."""
    return get_token_service()


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user for authentication tests."""
    user = User(
        email=TEST_USER_EMAIL,
        hashed_password=get_password_hash(TEST_USER_PASSWORD),
        full_name="Test User",
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def authenticated_async_client(
    async_client: AsyncClient, test_user: User, token_service: TokenService
) -> AsyncClient:
    """Async test client carrying a valid access token cookie."""
    async_client.cookies.set(
        "accessToken",
        token_service.issue_access_token(identity_for(test_user)),
    )
    return async_client


@pytest.fixture
def expired_access_token(test_user: User, token_service: TokenService) -> str:
    """Correctly signed access token that expired a minute ago."""
    return token_service.issue_access_token(identity_for(test_user), expires_delta=timedelta(minutes=-1))


@pytest.fixture
def signup_payload() -> dict:
    """A valid signup body."""
    return {
        "email": "newuser@example.com",
        "fullName": "New User",
        "password": "SecurePass123!",
        "confirmPassword": "SecurePass123!",
    }
