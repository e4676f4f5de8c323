# ortho_orders/tasks.py
from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ortho_orders.core.config import get_settings
from ortho_orders.db.engine import create_async_engine_safe
from ortho_orders.services.background_jobs import (
    JOB_INVENTORY_RESERVE,
    JOB_SHADOW_SUPPLY_DISCARD,
    JobContext,
    run_job,
)
from ortho_orders.services.kv_cache import RedisKeyValueCache
from ortho_orders.worker import celery


async def _run_isolated(job_name: str, **kwargs: Any) -> Any:
    """
    每次任务独立的 engine / redis 连接：
    asyncio.run 每次新建事件循环，连接池不能跨循环复用。
    """
    settings = get_settings()
    engine = create_async_engine_safe(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    cache = RedisKeyValueCache.from_url(settings.REDIS_URL)
    try:
        ctx = JobContext(
            session_maker=async_sessionmaker(
                bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            ),
            cache=cache,
        )
        return await run_job(ctx, job_name, **kwargs)
    finally:
        await cache.close()
        await engine.dispose()


@celery.task(name=JOB_INVENTORY_RESERVE)
def inventory_reserve(order_id: int) -> Any:
    return asyncio.run(_run_isolated(JOB_INVENTORY_RESERVE, order_id=order_id))


@celery.task(name=JOB_SHADOW_SUPPLY_DISCARD)
def shadow_supply_discard(key: str) -> Any:
    return asyncio.run(_run_isolated(JOB_SHADOW_SUPPLY_DISCARD, key=key))
