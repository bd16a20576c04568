"""
Pytest configuration and fixtures for chat pairing tests.
"""

import os
from datetime import datetime, timedelta

# Set test environment variables before importing config
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from chatpair import models  # noqa: F401
from chatpair.core.database import Base, get_db
from chatpair.main import app
from chatpair.models.user import User


class FakeClock:
    """Callable clock the services read instead of the wall clock."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def make_user(db):
    """Insert a user directly and return its id."""

    async def _make_user(name: str) -> int:
        user = User(name=name, email=f"{name.lower()}@example.com", hashed_password="not-a-real-hash")
        db.add(user)
        await db.commit()
        return user.id

    return _make_user


@pytest_asyncio.fixture
async def alice(make_user):
    return await make_user("Alice")


@pytest_asyncio.fixture
async def bob(make_user):
    return await make_user("Bob")


@pytest_asyncio.fixture
async def carol(make_user):
    return await make_user("Carol")


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register and log in a user through the API, returning auth headers."""

    async def _signup(name: str, password: str = "password123") -> dict:
        email = f"{name.lower()}@example.com"
        res = await client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert res.status_code == 200, res.text
        res = await client.post("/auth/login", data={"username": email, "password": password})
        assert res.status_code == 200, res.text
        return {"Authorization": f"Bearer {res.json()['access_token']}"}

    return _signup
