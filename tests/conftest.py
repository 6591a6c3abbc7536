"""Shared fixtures: a fresh in-memory database and an HTTP client per test."""
import os

os.environ["SECRET_KEY"] = "test-secret-key-with-at-least-32-characters"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.pop("GOOGLE_BOOKS_API_KEY", None)

import httpx
import pytest
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from library_lookup.database import Base, get_async_session
from library_lookup.main import app
from library_lookup.models.user_model import User


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
async def client(session_factory):
    async def override_session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_async_session] = override_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def signup(client):
    """Register + log in; returns (user dict, Authorization headers)."""

    async def _signup(username="reader", email=None, password="secret"):
        email = email or f"{username}@example.com"
        res = await client.post(
            "/api/users/register",
            json={"username": username, "email": email, "password": password},
        )
        assert res.status_code == 201, res.text
        res = await client.post("/api/users/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        body = res.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _signup


@pytest.fixture
def set_role(session_factory):
    async def _set_role(user_id: int, role: str):
        async with session_factory() as s:
            await s.execute(update(User).where(User.id == user_id).values(role=role))
            await s.commit()

    return _set_role


@pytest.fixture
def admin(signup, set_role):
    async def _admin(username="librarian"):
        user, headers = await signup(username)
        await set_role(user["id"], "admin")
        return user, headers

    return _admin
