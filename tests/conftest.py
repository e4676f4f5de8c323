# tests/conftest.py
from __future__ import annotations

import os
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# 在 import ortho_orders.main 之前固定测试配置
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TASK_QUEUE_BACKEND"] = "background"

from ortho_orders.api.deps import get_cache, get_session  # noqa: E402
from ortho_orders.core.config import AppSettings, get_settings  # noqa: E402
from ortho_orders.db.base import Base, init_models  # noqa: E402
from ortho_orders.db.engine import create_async_engine_safe  # noqa: E402
from ortho_orders.db.session import get_session_maker  # noqa: E402
from ortho_orders.main import app  # noqa: E402

from tests._helpers import InMemoryCache, make_settings  # noqa: E402


# =========================================
# 每用例独立的内存 SQLite（StaticPool，所有会话共用一个连接）
# =========================================
@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    init_models()
    engine = create_async_engine_safe("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture(scope="function")
def async_session_maker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=async_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest_asyncio.fixture(scope="function")
async def session(async_session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as sess:
        try:
            yield sess
        finally:
            if sess.in_transaction():
                await sess.rollback()


@pytest.fixture
def cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def settings() -> AppSettings:
    return make_settings()


# =========================================
# FastAPI / httpx AsyncClient（依赖整体 override）
# =========================================
@pytest_asyncio.fixture(scope="function")
async def client(
    async_session_maker, cache, settings
) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def _get_session() -> AsyncGenerator[AsyncSession, None]:
        async with async_session_maker() as sess:
            yield sess

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_session_maker] = lambda: async_session_maker
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_settings] = lambda: settings

    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
            yield c
    finally:
        app.dependency_overrides.clear()
