# ortho_orders/api/deps.py
from __future__ import annotations

from typing import AsyncGenerator

from fastapi import BackgroundTasks, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ortho_orders.core.config import AppSettings, get_settings
from ortho_orders.db.session import get_session as _get_session
from ortho_orders.db.session import get_session_maker
from ortho_orders.services.background_jobs import JobContext
from ortho_orders.services.kv_cache import KeyValueCache
from ortho_orders.services.kv_cache import get_cache as _get_cache
from ortho_orders.services.order_create_types import CreateOrderOptions
from ortho_orders.services.task_queue import BackgroundTaskQueue, CeleryTaskQueue, TaskQueue


# ---------------------------
# 会话 / 缓存（测试里整体 override）
# ---------------------------


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in _get_session():
        yield session


def get_cache() -> KeyValueCache:
    return _get_cache()


# ---------------------------
# 当前 partner
# ---------------------------


def get_current_partner_id(x_partner_id: str | None = Header(default=None)) -> int:
    """
    认证由网关完成，这里只读取网关注入的 X-Partner-Id。
    """
    if not x_partner_id or not x_partner_id.strip().isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid X-Partner-Id header",
        )
    return int(x_partner_id.strip())


# ---------------------------
# 下单配置 / 后台任务
# ---------------------------


def get_order_options(settings: AppSettings = Depends(get_settings)) -> CreateOrderOptions:
    return CreateOrderOptions(
        reservation_mode=settings.STOCK_RESERVATION_MODE,
        order_number_strategy=settings.ORDER_NUMBER_STRATEGY,
    )


def get_task_queue(
    background_tasks: BackgroundTasks,
    settings: AppSettings = Depends(get_settings),
    session_maker: async_sessionmaker[AsyncSession] = Depends(get_session_maker),
    cache: KeyValueCache = Depends(get_cache),
) -> TaskQueue:
    if settings.TASK_QUEUE_BACKEND == "celery":
        from ortho_orders.worker import celery

        return CeleryTaskQueue(celery)
    return BackgroundTaskQueue(
        background_tasks, JobContext(session_maker=session_maker, cache=cache)
    )
