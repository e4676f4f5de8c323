# ortho_orders/db/session.py
# 异步 Engine / AsyncSession 工厂 + FastAPI 依赖
from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ortho_orders.core.config import get_settings
from ortho_orders.db.engine import create_async_engine_safe

log = logging.getLogger("orthoorders.db")

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker[AsyncSession]] = None


def get_engine() -> AsyncEngine:
    """按 settings.DATABASE_URL 懒加载全局 AsyncEngine。"""
    global _engine
    if _engine is None:
        settings = get_settings()
        _engine = create_async_engine_safe(settings.DATABASE_URL, echo=settings.SQL_ECHO)
        log.info("async engine created: backend=%s", _engine.url.get_backend_name())
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    全局 AsyncSession 工厂。

    同时作为 FastAPI 依赖使用：后台任务（库存预占 / 缓存清理）要在请求会话关闭后
    自己开新会话，因此拿的是工厂而不是会话本身；测试里整体 override。
    """
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_maker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_session_maker()() as session:
        yield session


async def close_engines() -> None:
    """关闭引擎（生命周期 / 测试）"""
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
