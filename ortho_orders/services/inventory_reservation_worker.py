# ortho_orders/services/inventory_reservation_worker.py
"""
库存预占（每单扣 1 件）。

- deferred 模式：订单提交、响应发出后由后台任务调用 InventoryReservationWorker.run；
  自己开会话、自己提交；任何异常只记日志，绝不影响已提交的订单。
- strict 模式：下单事务内（库存位已加行锁）直接调用 apply_reservation。

扣减前重新读库存：
    标签已不在 map 里   → skipped
    数量 < 1            → out_of_stock（记 warning，不写任何东西）
    否则                → 数量 -1，整体替换 groessen_mengen，追加一条 StoreHistory
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.db.uow import SessionOrFactory, UnitOfWork
from ortho_orders.metrics import INVENTORY_RESERVATIONS
from ortho_orders.models.order import CustomerOrder
from ortho_orders.models.store import STORE_TYPE_BLOCK, Store, StoreHistory
from ortho_orders.services.size_resolver import size_quantity, with_quantity

log = logging.getLogger("orthoorders.inventory")

CHANGE_TYPE_SALES = "sales"
HISTORY_STATUS_SELL_OUT = "SELL_OUT"


class ReservationOutcome(str, Enum):
    APPLIED = "applied"
    OUT_OF_STOCK = "out_of_stock"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ReservationResult:
    outcome: ReservationOutcome
    order_id: int
    store_id: Optional[int] = None
    size_key: Optional[str] = None
    new_stock: Optional[int] = None


def _reason(store: Store, size_key: str) -> str:
    label = "block" if store.type == STORE_TYPE_BLOCK else "size"
    return f"Order {label} {size_key}"


async def apply_reservation(
    session: AsyncSession,
    *,
    store: Store,
    size_key: str,
    order_id: int,
    customer_id: Optional[int] = None,
) -> ReservationResult:
    """在调用方事务内扣减一件；只 flush，不 commit。"""
    sizes = dict(store.groessen_mengen or {})
    if size_key not in sizes:
        log.warning(
            "reservation skipped, size vanished: order_id=%s store_id=%s size=%s",
            order_id,
            store.id,
            size_key,
        )
        return ReservationResult(ReservationOutcome.SKIPPED, order_id, store.id, size_key)

    current = size_quantity(sizes[size_key])
    if current < 1:
        log.warning(
            "reservation out of stock: order_id=%s store_id=%s size=%s qty=%s",
            order_id,
            store.id,
            size_key,
            current,
        )
        return ReservationResult(ReservationOutcome.OUT_OF_STOCK, order_id, store.id, size_key)

    new_stock = current - 1
    sizes[size_key] = with_quantity(sizes[size_key], new_stock)
    # 整体替换，保证 JSON 列被识别为已修改
    store.groessen_mengen = sizes

    session.add(
        StoreHistory(
            store_id=store.id,
            change_type=CHANGE_TYPE_SALES,
            size_key=size_key,
            quantity=1,
            new_stock=new_stock,
            reason=_reason(store, size_key),
            status=HISTORY_STATUS_SELL_OUT,
            partner_id=store.partner_id,
            customer_id=customer_id,
            order_id=order_id,
        )
    )
    await session.flush()

    log.info(
        "reservation applied: order_id=%s store_id=%s size=%s new_stock=%s",
        order_id,
        store.id,
        size_key,
        new_stock,
    )
    return ReservationResult(
        ReservationOutcome.APPLIED, order_id, store.id, size_key, new_stock
    )


async def lock_store(session: AsyncSession, store_id: int) -> Optional[Store]:
    """SELECT ... FOR UPDATE（sqlite 下忽略锁语义）；总是用加锁读到的行覆盖 identity map"""
    res = await session.execute(
        select(Store)
        .where(Store.id == store_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


class InventoryReservationWorker:
    def __init__(self, session_or_factory: SessionOrFactory) -> None:
        self._session_or_factory = session_or_factory

    async def run(self, order_id: int) -> ReservationResult:
        try:
            async with UnitOfWork(self._session_or_factory) as uow:
                if uow.session is None:
                    raise RuntimeError("UnitOfWork did not open a session")
                result = await self._reserve(uow.session, order_id)
        except Exception:
            log.exception("reservation failed: order_id=%s", order_id)
            result = ReservationResult(ReservationOutcome.FAILED, order_id)

        INVENTORY_RESERVATIONS.labels(result.outcome.value).inc()
        return result

    async def _reserve(self, session: AsyncSession, order_id: int) -> ReservationResult:
        order = await session.get(CustomerOrder, order_id)
        if order is None:
            log.warning("reservation skipped, order missing: order_id=%s", order_id)
            return ReservationResult(ReservationOutcome.SKIPPED, order_id)

        if order.store_id is None or not order.matched_size_key:
            return ReservationResult(ReservationOutcome.SKIPPED, order_id, order.store_id)

        store = await lock_store(session, order.store_id)
        if store is None:
            log.warning(
                "reservation skipped, store missing: order_id=%s store_id=%s",
                order_id,
                order.store_id,
            )
            return ReservationResult(ReservationOutcome.SKIPPED, order_id, order.store_id)

        return await apply_reservation(
            session,
            store=store,
            size_key=order.matched_size_key,
            order_id=order.id,
            customer_id=order.customer_id,
        )
