# ortho_orders/api/routers/orders.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.api.deps import (
    get_cache,
    get_current_partner_id,
    get_order_options,
    get_session,
    get_task_queue,
)
from ortho_orders.core.audit import SOURCE_ORDER_CREATE, new_trace
from ortho_orders.schemas.order import OrderCreateIn, OrderCreateOut, OrderDetailOut
from ortho_orders.services.kv_cache import KeyValueCache
from ortho_orders.services.order_create_types import CreateOrderCommand, CreateOrderOptions
from ortho_orders.services.order_service import OrderService
from ortho_orders.services.task_queue import TaskQueue

router = APIRouter(tags=["orders"])


@router.post("/orders", response_model=OrderCreateOut, status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreateIn,
    session: AsyncSession = Depends(get_session),
    cache: KeyValueCache = Depends(get_cache),
    queue: TaskQueue = Depends(get_task_queue),
    options: CreateOrderOptions = Depends(get_order_options),
    partner_id: int = Depends(get_current_partner_id),
):
    result = await OrderService.create(
        session,
        cache,
        queue,
        partner_id=partner_id,
        cmd=CreateOrderCommand(**payload.model_dump()),
        options=options,
        trace=new_trace(SOURCE_ORDER_CREATE, partner_id=partner_id),
    )
    return OrderCreateOut(
        orderId=result.order_id,
        matchedSize=result.matched_size,
        supplyType=result.supply_type,
    )


@router.get("/orders/{order_id}", response_model=OrderDetailOut)
async def get_order(
    order_id: int,
    session: AsyncSession = Depends(get_session),
    partner_id: int = Depends(get_current_partner_id),
):
    data = await OrderService.get_order_detail(session, order_id=order_id, partner_id=partner_id)
    return OrderDetailOut(data=data)
