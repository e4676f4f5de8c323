# ortho_orders/services/order_service.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.core.audit import SOURCE_ORDER_CREATE, TraceContext, ensure_trace
from ortho_orders.metrics import ORDER_REJECTIONS, ORDERS_CREATED
from ortho_orders.models.customer import Customer
from ortho_orders.models.order import CustomerOrder
from ortho_orders.models.store import Store
from ortho_orders.services.background_jobs import (
    JOB_INVENTORY_RESERVE,
    JOB_SHADOW_SUPPLY_DISCARD,
)
from ortho_orders.services.kv_cache import KeyValueCache
from ortho_orders.services.order_create_flow import create_order_flow
from ortho_orders.services.order_create_types import (
    CreateOrderCommand,
    CreateOrderOptions,
    CreateOrderResult,
)
from ortho_orders.services.order_errors import OrderError, OrderNotFound
from ortho_orders.services.order_utils import deserialize_material
from ortho_orders.services.size_resolver import LENGTH_ALLOWANCE_MM, nearest_length_match
from ortho_orders.services.task_queue import TaskQueue

log = logging.getLogger("orthoorders.orders")


def _iso(v: Any) -> Optional[str]:
    return v.isoformat() if v is not None else None


def _num(v: Any) -> Optional[float]:
    return float(v) if v is not None else None


class OrderService:
    """
    订单服务门面：

    - create：执行下单流程，提交后投递后台作业（库存预占 / 影子缓存清理）
    - get_order_detail：订单详情 + 足长推荐尺码
    """

    @staticmethod
    async def create(
        session: AsyncSession,
        cache: KeyValueCache,
        queue: TaskQueue,
        *,
        partner_id: int,
        cmd: CreateOrderCommand,
        options: CreateOrderOptions,
        trace: Optional[TraceContext] = None,
    ) -> CreateOrderResult:
        trace = ensure_trace(trace, SOURCE_ORDER_CREATE, partner_id=partner_id)
        try:
            result = await create_order_flow(
                session,
                cache,
                partner_id=partner_id,
                cmd=cmd,
                options=options,
                trace=trace,
            )
        except OrderError as e:
            ORDER_REJECTIONS.labels(e.code).inc()
            log.info(
                "order rejected: trace=%s partner_id=%s code=%s message=%s",
                trace.tag(),
                partner_id,
                e.code,
                e.message,
            )
            raise

        ORDERS_CREATED.labels(result.store_type or "none").inc()

        # 事务已提交，以下作业失败不影响订单
        if result.shadow_supply_key:
            queue.enqueue(JOB_SHADOW_SUPPLY_DISCARD, key=result.shadow_supply_key)
        if result.reservation_pending:
            queue.enqueue(JOB_INVENTORY_RESERVE, order_id=result.order_id)
        return result

    @staticmethod
    async def get_order_detail(
        session: AsyncSession, *, order_id: int, partner_id: int
    ) -> Dict[str, Any]:
        order = (
            await session.execute(
                select(CustomerOrder)
                .where(CustomerOrder.id == order_id)
                .execution_options(populate_existing=True)
            )
        ).scalars().first()
        # 其他 partner 的订单同样按不存在处理
        if order is None or order.partner_id != partner_id:
            raise OrderNotFound("Order not found")

        customer = await session.get(Customer, order.customer_id)
        store = await session.get(Store, order.store_id) if order.store_id is not None else None

        larger_fusslange: Optional[float] = None
        recommended: Optional[Dict[str, Any]] = None
        if customer is not None and customer.fusslange1 is not None and customer.fusslange2 is not None:
            larger_fusslange = max(customer.fusslange1, customer.fusslange2) + LENGTH_ALLOWANCE_MM
            if store is not None:
                sizes = store.groessen_mengen or {}
                label = nearest_length_match(sizes, larger_fusslange)
                if label is not None:
                    recommended = {"size": label, **dict(sizes[label])}

        product = order.product
        return {
            "id": order.id,
            "orderNumber": order.order_number,
            "orderStatus": order.order_status,
            "bezahlt": order.bezahlt,
            "type": order.type,
            "supplyType": order.supply_type,
            "matchedSize": order.matched_size_key,
            "storeId": order.store_id,
            "totalPrice": _num(order.total_price),
            "fussanalysePreis": _num(order.fussanalyse_preis),
            "einlagenversorgungPreis": _num(order.einlagenversorgung_preis),
            "discount": order.discount,
            "quantity": order.quantity,
            "employeeId": order.employee_id,
            "screenerId": order.screener_id,
            "createdAt": _iso(order.created_at),
            "customer": None
            if customer is None
            else {
                "id": customer.id,
                "customerNumber": customer.customer_number,
                "vorname": customer.vorname,
                "nachname": customer.nachname,
                "fusslange1": customer.fusslange1,
                "fusslange2": customer.fusslange2,
                "fussbreite1": customer.fussbreite1,
                "fussbreite2": customer.fussbreite2,
                "kugelumfang1": customer.kugelumfang1,
                "kugelumfang2": customer.kugelumfang2,
                "rist1": customer.rist1,
                "rist2": customer.rist2,
            },
            "largerFusslange": larger_fusslange,
            "recommendedSize": recommended,
            "product": None
            if product is None
            else {
                "id": product.id,
                "name": product.name,
                "rohlingHersteller": product.rohling_hersteller,
                "artikelHersteller": product.artikel_hersteller,
                "versorgung": product.versorgung,
                "material": deserialize_material(product.material),
                "langenempfehlung": product.langenempfehlung,
                "status": product.status,
                "diagnosisStatus": product.diagnosis_status,
            },
            "insurances": [
                {"price": _num(i.price), "description": i.description, "vatCountry": i.vat_country}
                for i in order.insurances
            ],
            "insoleStandards": [
                {"name": s.name, "left": s.left, "right": s.right, "isFavorite": s.is_favorite}
                for s in order.insole_standards
            ],
        }
