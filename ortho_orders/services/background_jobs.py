# ortho_orders/services/background_jobs.py
"""
订单提交后的后台作业（按名字注册，进程内 / Celery 两种后端共用）。

- inventory.reserve      : 扣减一件库存（deferred 模式）
- shadow_supply.discard  : 删除已转正的影子 Versorgung 缓存

作业自己开会话；失败只记日志，不向调用方抛出。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ortho_orders.services.inventory_reservation_worker import InventoryReservationWorker
from ortho_orders.services.kv_cache import KeyValueCache
from ortho_orders.services.shadow_supply_service import ShadowSupplyService

log = logging.getLogger("orthoorders.jobs")

JOB_INVENTORY_RESERVE = "inventory.reserve"
JOB_SHADOW_SUPPLY_DISCARD = "shadow_supply.discard"


@dataclass(frozen=True)
class JobContext:
    session_maker: async_sessionmaker[AsyncSession]
    cache: KeyValueCache


async def inventory_reserve(ctx: JobContext, *, order_id: int) -> str:
    result = await InventoryReservationWorker(ctx.session_maker).run(int(order_id))
    return result.outcome.value


async def shadow_supply_discard(ctx: JobContext, *, key: str) -> bool:
    return await ShadowSupplyService.discard(ctx.cache, key)


JOBS: Dict[str, Callable[..., Awaitable[Any]]] = {
    JOB_INVENTORY_RESERVE: inventory_reserve,
    JOB_SHADOW_SUPPLY_DISCARD: shadow_supply_discard,
}


async def run_job(ctx: JobContext, job_name: str, **kwargs: Any) -> Any:
    job = JOBS.get(job_name)
    if job is None:
        raise KeyError(f"unknown job: {job_name}")
    try:
        return await job(ctx, **kwargs)
    except Exception:
        log.exception("job failed: name=%s kwargs=%s", job_name, kwargs)
        return None
