"""
Shared fixtures: in-memory SQLite database, fakeredis, and an httpx client bound
to the ASGI app. Settings are read from the environment at import time, so the
variables below must be set before anything under school_auth is imported.
"""
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "4c1f0d8e2b7a49e3a6f5c0d9b8e7a1f2-access-signing")
os.environ.setdefault("JWT_REFRESH_SECRET_KEY", "9e8d7c6b5a4f3e2d1c0b9a8f7e6d5c4b-refresh-signing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("EXPOSE_RESET_TOKEN", "true")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_MAX_ATTEMPTS", "5")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import fakeredis  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from school_auth.core import redis_client  # noqa: E402
from school_auth.core.config import get_settings  # noqa: E402
from school_auth.core.passwords import password_hasher  # noqa: E402
from school_auth.core.revocation import TokenDenylist  # noqa: E402
from school_auth.core.tokens import token_service  # noqa: E402
from school_auth.db.database import Base, get_db  # noqa: E402
from school_auth.db.user_store import UserStore  # noqa: E402
from school_auth.main import app  # noqa: E402
from school_auth.services.auth_service import AuthService  # noqa: E402


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def fake_redis(monkeypatch):
    client = fakeredis.FakeAsyncRedis(decode_responses=True)
    monkeypatch.setattr(redis_client, "_redis_client", client)
    yield client
    await client.flushall()


@pytest.fixture
def store(db_session):
    return UserStore(db_session)


@pytest.fixture
def denylist(fake_redis):
    return TokenDenylist(fake_redis)


@pytest.fixture
def auth_service(store, denylist):
    return AuthService(store, password_hasher, token_service, denylist, get_settings())


@pytest.fixture
async def client(session_factory, fake_redis):
    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def register_payload():
    return {
        "email": "alice@example.com",
        "password": "Secret123",
        "fullName": "Alice Teacher",
    }


@pytest.fixture
async def registered(client, register_payload):
    """Register alice@example.com and return the response data."""
    r = await client.post("/auth/register", json=register_payload)
    assert r.status_code == 201, r.text
    return r.json()["data"]
