# ortho_orders/services/order_number_sequencer.py
"""
partner 维度订单号分配。

两种策略（ORDER_NUMBER_STRATEGY）：

- max_plus_one（默认，与历史行为一致）：
    SELECT max(order_number) + 1，没有则从 1000 起。
    读完即用、不加锁：同一 partner 并发下单可能拿到同一个号。
    这是已知缺陷，保持原样，需要时切到 atomic_counter。

- atomic_counter：
    partner_order_counters 一行一个 partner，
    UPDATE ... SET last_value = last_value + 1 RETURNING last_value，单语句完成自增。
    计数器行不存在时按当前 max+1 初始化，与历史订单号衔接。
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.models.order import CustomerOrder
from ortho_orders.models.order_counter import PartnerOrderCounter

log = logging.getLogger("orthoorders.order_number")

ORDER_NUMBER_FLOOR = 1000
COUNTER_SCOPE_INSOLE = "insole"


async def next_order_number_max_plus_one(
    session: AsyncSession, partner_id: int, *, floor: int = ORDER_NUMBER_FLOOR
) -> int:
    current = (
        await session.execute(
            select(func.max(CustomerOrder.order_number)).where(
                CustomerOrder.partner_id == partner_id
            )
        )
    ).scalar_one_or_none()
    return int(current) + 1 if current is not None else floor


async def next_order_number_atomic(
    session: AsyncSession,
    partner_id: int,
    *,
    floor: int = ORDER_NUMBER_FLOOR,
    scope: str = COUNTER_SCOPE_INSOLE,
) -> int:
    res = await session.execute(
        update(PartnerOrderCounter)
        .where(
            PartnerOrderCounter.partner_id == partner_id,
            PartnerOrderCounter.scope == scope,
        )
        .values(last_value=PartnerOrderCounter.last_value + 1)
        .returning(PartnerOrderCounter.last_value)
    )
    value = res.scalar_one_or_none()
    if value is not None:
        return int(value)

    # 首次使用：从现有订单衔接
    seed = await next_order_number_max_plus_one(session, partner_id, floor=floor)
    session.add(PartnerOrderCounter(partner_id=partner_id, scope=scope, last_value=seed))
    await session.flush()
    log.info("order counter initialized: partner_id=%s scope=%s seed=%s", partner_id, scope, seed)
    return seed


async def next_order_number(
    session: AsyncSession,
    partner_id: int,
    *,
    strategy: str = "max_plus_one",
    floor: int = ORDER_NUMBER_FLOOR,
) -> int:
    if strategy == "atomic_counter":
        return await next_order_number_atomic(session, partner_id, floor=floor)
    if strategy == "max_plus_one":
        return await next_order_number_max_plus_one(session, partner_id, floor=floor)
    raise ValueError(f"unknown order number strategy: {strategy!r}")
