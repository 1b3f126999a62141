"""
Pytest configuration for the application
"""
import os

# Settings and the engine are built at import time, so configure first.
os.environ["ENV"] = "test"
os.environ["DATABASE_URI"] = "sqlite+aiosqlite://"
os.environ["CACHE__BACKEND_TYPE"] = "memory"

from typing import AsyncGenerator, Dict, Optional
from uuid import UUID, uuid4

import httpx
import jwt
import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from vetsaas.core.config import settings
from vetsaas.db import models  # noqa: F401
from vetsaas.db.base import Base
from vetsaas.db.models.user import User
from vetsaas.db.session import get_db
from vetsaas.main import create_application
from vetsaas.services import throttle
from vetsaas.services.plan_catalog import seed_plans
from vetsaas.services.provisioning import create_tenant_with_defaults


API_PREFIX = f"{settings.API_PREFIX}/v1"


class FakeRedis:
    """Minimal async Redis stub for rate limiting and idempotency tests."""

    def __init__(self) -> None:
        self.store: Dict[str, int | str] = {}

    async def incr(self, key: str) -> int:
        current = int(self.store.get(key, 0)) + 1
        self.store[key] = current
        return current

    async def expire(self, key: str, seconds: int) -> None:
        self.store.setdefault(f"{key}:ttl", seconds)

    async def set(self, key: str, value: str, ex: int | None = None, nx: bool = False) -> bool:
        if nx and key in self.store:
            return False
        self.store[key] = value
        if ex is not None:
            self.store[f"{key}:ttl"] = ex
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
            self.store.pop(f"{key}:ttl", None)
        return removed


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch) -> FakeRedis:
    """Patch the throttle module to use an in-memory Redis stub."""

    fake = FakeRedis()
    monkeypatch.setattr(throttle, "_redis_client", fake, raising=False)
    yield fake
    monkeypatch.setattr(throttle, "_redis_client", None, raising=False)


@pytest_asyncio.fixture
async def test_db_engine(tmp_path):
    """
    A fresh SQLite database per test.

    Services commit and roll back on their own, so each test gets its own
    file instead of an outer transaction.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_db_engine) -> async_sessionmaker[AsyncSession]:
    factory = async_sessionmaker(test_db_engine, expire_on_commit=False, autoflush=False)
    async with factory() as session:
        await seed_plans(session)
        await session.commit()
    return factory


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def test_app(session_factory) -> AsyncGenerator[FastAPI, None]:
    """
    Create a FastAPI test application bound to the per-test database.
    """
    app = create_application()

    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _override_get_db
    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def client(test_app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def make_user(session_factory):
    async def _make_user(email: Optional[str] = None) -> User:
        user = User(
            id=f"user_{uuid4().hex[:12]}",
            email=email or f"{uuid4().hex[:8]}@example.com",
            first_name="Test",
            last_name="Vet",
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _make_user


@pytest.fixture
def provision(session_factory, make_user):
    """Create a user and a trialing tenant through the provisioning service."""

    async def _provision(
        slug: Optional[str] = None,
        plan_key: str = "PROFESIONAL",
        billing_interval: str = "monthly",
    ):
        user = await make_user()
        async with session_factory() as session:
            provisioned = await create_tenant_with_defaults(
                session,
                name="Test Clinic",
                slug=slug or f"test-clinic-{uuid4().hex[:8]}",
                user_id=user.id,
                plan_key=plan_key,
                billing_interval=billing_interval,
            )
        return user, provisioned

    return _provision


def build_auth_header(user_id: str, tenant_id: Optional[UUID] = None) -> Dict[str, str]:
    claims = {"sub": user_id}
    if tenant_id is not None:
        claims["tenant_id"] = str(tenant_id)
    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_header():
    return build_auth_header
