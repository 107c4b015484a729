"""
StreetPaws Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Each test gets its own SQLite database file (aiosqlite) with the full
       schema created from the ORM metadata, and a freshly built FastAPI app
       whose session dependency points at that database.

Fixture Hierarchy (all function-scoped):
    engine ── session_factory ──┬── db_session      direct service tests
                                └── app ── client   HTTPX AsyncClient over ASGI
    register_user / create_pet   factories that go through the public API
    make_admin                   promotes a user straight in the database
"""

import os
import tempfile

# Settings are read once at import; set the environment BEFORE any
# streetpaws import so nothing ever points at a real database
os.environ["DATABASE_URL"] = (
    "sqlite+aiosqlite:///" + os.path.join(tempfile.mkdtemp(prefix="streetpaws_test_"), "app.db")
)
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CLIENT_URL"] = ""

from typing import Any, Dict, Optional, Tuple
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from streetpaws.database import Base, get_db_session
from streetpaws.main import create_app
from streetpaws.models.user import User


PET_PAYLOAD: Dict[str, Any] = {
    "name": "Biscuit",
    "type": "Dog",
    "age": "2 years",
    "location": "Riverside Park",
    "description": "Friendly terrier mix found near the river, loves people.",
    "contactNumber": "+1 555 0100",
    "contactName": "Sam",
}


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# Application & Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory):
    application = create_app()

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def register_user(client):
    """
    Register through POST /api/auth/register.

    Returns (user JSON, bearer token).
    """
    async def _register(
        username: str = "alice",
        email: Optional[str] = None,
        password: str = "secret123",
        **profile: Any,
    ) -> Tuple[Dict[str, Any], str]:
        response = await client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
                **profile,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return data["user"], data["token"]

    return _register


@pytest.fixture
def create_pet(client):
    """Create a pet through POST /api/pets; returns the pet JSON."""
    async def _create(token: str, **overrides: Any) -> Dict[str, Any]:
        response = await client.post(
            "/api/pets", json={**PET_PAYLOAD, **overrides}, headers=bearer(token)
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def make_admin(session_factory):
    async def _promote(user_id: str) -> None:
        async with session_factory() as session:
            await session.execute(
                update(User).where(User.id == UUID(user_id)).values(role="admin")
            )
            await session.commit()

    return _promote
