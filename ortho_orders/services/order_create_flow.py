# ortho_orders/services/order_create_flow.py
"""
下单主流程（校验 → 影子 Versorgung 转正 → 尺码匹配 → 单事务落库）。

事务边界：整个流程在一个 UnitOfWork 内，任何异常整体回滚。
deferred 模式不在这里扣库存；strict 模式在同一事务内锁库存位并扣减。
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.core.audit import TraceContext
from ortho_orders.db.uow import UnitOfWork
from ortho_orders.models.customer import Customer, CustomerHistory
from ortho_orders.models.order import (
    ORDER_STATUS_INITIAL,
    CustomerOrder,
    CustomerOrderHistory,
    CustomerOrderInsoleStandard,
    CustomerOrderInsurance,
    CustomerProduct,
)
from ortho_orders.models.store import STORE_TYPE_INSOLE, Store
from ortho_orders.models.supply import Supply
from ortho_orders.services.inventory_reservation_worker import (
    ReservationOutcome,
    apply_reservation,
    lock_store,
)
from ortho_orders.services.kv_cache import KeyValueCache
from ortho_orders.services.order_create_types import (
    CreateOrderCommand,
    CreateOrderOptions,
    CreateOrderResult,
    InsoleStandardItem,
    InsuranceItem,
)
from ortho_orders.services.order_create_validate import (
    default_employee_id,
    foot_lengths_for_sizing,
    load_customer,
    load_screener,
    load_store,
    load_supply,
    normalize_insole_standards,
    normalize_insurances,
    require_foot_lengths,
    resolve_vat_country,
    validate_payment,
    validate_required,
)
from ortho_orders.services.order_errors import (
    InsufficientStock,
    OrderNotFound,
    OrderValidationError,
    persistence_conflict_from,
)
from ortho_orders.services.order_number_sequencer import next_order_number
from ortho_orders.services.order_utils import compute_total_price, serialize_material, to_decimal
from ortho_orders.services.shadow_supply_service import ShadowSupplyService
from ortho_orders.services.size_resolver import (
    SizeMatch,
    resolve_size,
    size_quantity,
    store_variant,
)

log = logging.getLogger("orthoorders.orders")

HISTORY_CATEGORY_ORDERS = "Bestellungen"
HISTORY_NOTE_ORDER_CREATED = "Einlagenbestellung erstellt"
PRODUCT_STATUS_DEFAULT = "Alltagseinlagen"


def match_store_size(store: Store, customer: Customer) -> SizeMatch:
    f1, f2 = foot_lengths_for_sizing(customer)
    variant = store_variant(store.type, store.groessen_mengen, store_id=store.id)
    return resolve_size(variant, f1, f2)


async def _effective_supply(
    session: AsyncSession,
    cache: KeyValueCache,
    cmd: CreateOrderCommand,
    *,
    partner_id: int,
    customer: Customer,
) -> Supply:
    if not cmd.shadow_supply_key:
        if cmd.versorgung_id is None:
            raise OrderValidationError("versorgungId or shadowSupplyKey is required")
        return await load_supply(session, cmd.versorgung_id)

    draft = await ShadowSupplyService.fetch_for_order(
        cache,
        cmd.shadow_supply_key,
        partner_id=partner_id,
        customer_id=customer.id,
    )
    # 转正前先确认尺码能配上，失败则什么都不写
    if draft.store_id is not None:
        store = await load_store(session, draft.store_id)
        match_store_size(store, customer)
    return await ShadowSupplyService.promote(session, draft)


def _snapshot(supply: Supply) -> CustomerProduct:
    return CustomerProduct(
        name=supply.name,
        rohling_hersteller=supply.rohling_hersteller,
        artikel_hersteller=supply.artikel_hersteller,
        versorgung=supply.versorgung,
        material=serialize_material(supply.material),
        langenempfehlung={},
        status=PRODUCT_STATUS_DEFAULT,
        diagnosis_status=list(supply.diagnosis_status or []),
    )


def _insurance_rows(
    order_id: int, items: List[InsuranceItem], vat_country: Optional[str]
) -> List[CustomerOrderInsurance]:
    return [
        CustomerOrderInsurance(
            order_id=order_id,
            price=item.price,
            description=item.description,
            vat_country=vat_country,
        )
        for item in items
    ]


def _standard_rows(
    order_id: int, items: List[InsoleStandardItem]
) -> List[CustomerOrderInsoleStandard]:
    return [
        CustomerOrderInsoleStandard(
            order_id=order_id,
            name=item.name,
            left=item.left,
            right=item.right,
            is_favorite=item.is_favorite,
        )
        for item in items
    ]


async def create_order_flow(
    session: AsyncSession,
    cache: KeyValueCache,
    *,
    partner_id: int,
    cmd: CreateOrderCommand,
    options: CreateOrderOptions,
    trace: TraceContext,
) -> CreateOrderResult:
    # 1–3：纯入参校验，不碰数据库
    validate_required(cmd)
    payment = validate_payment(cmd.bezahlt)
    insurances = normalize_insurances(cmd.insurances)
    standards = normalize_insole_standards(cmd.insole_standards)
    if payment.is_insurance and not insurances:
        raise OrderValidationError("insurances information is required when payment by insurance")

    strict = options.reservation_mode == "strict"

    try:
        async with UnitOfWork(session):
            vat_country: Optional[str] = None
            if payment.is_insurance:
                vat_country = await resolve_vat_country(session, partner_id)

            # 4：客户 / screener / 足长
            customer = await load_customer(session, cmd.customer_id)
            if cmd.screener_id is not None:
                await load_screener(session, cmd.screener_id)
            else:
                require_foot_lengths(customer)

            # 5–6：Versorgung（持久 / 影子转正）+ 价格
            supply = await _effective_supply(
                session, cache, cmd, partner_id=partner_id, customer=customer
            )
            total_price = compute_total_price(
                cmd.fussanalyse_preis,
                cmd.einlagenversorgung_preis,
                cmd.quantity,
                cmd.discount,
            )

            # 7：尺码匹配 + 库存检查
            store: Optional[Store] = None
            match: Optional[SizeMatch] = None
            if supply.store_id is not None:
                if strict:
                    store = await lock_store(session, supply.store_id)
                    if store is None:
                        raise OrderNotFound("Store not found")
                else:
                    store = await load_store(session, supply.store_id)
                match = match_store_size(store, customer)
                qty = size_quantity((store.groessen_mengen or {}).get(match.label))
                if qty < 1:
                    raise InsufficientStock(size_key=match.label, is_block=match.is_block)

            # 8：落库
            product = _snapshot(supply)
            session.add(product)
            await session.flush()

            order_number = await next_order_number(
                session, partner_id, strategy=options.order_number_strategy
            )
            employee_id = cmd.werkstatt_employee_id
            if employee_id is None:
                employee_id = await default_employee_id(session, partner_id)

            order = CustomerOrder(
                order_number=order_number,
                partner_id=partner_id,
                customer_id=customer.id,
                supply_id=supply.id,
                product_id=product.id,
                store_id=store.id if store is not None else None,
                employee_id=employee_id,
                screener_id=cmd.screener_id,
                matched_size_key=match.label if match is not None else None,
                type=(store.type or STORE_TYPE_INSOLE) if store is not None else STORE_TYPE_INSOLE,
                supply_type=supply.supply_type,
                total_price=total_price,
                fussanalyse_preis=to_decimal(cmd.fussanalyse_preis),
                einlagenversorgung_preis=to_decimal(cmd.einlagenversorgung_preis),
                discount=cmd.discount,
                quantity=cmd.quantity,
                bezahlt=payment.value,
                order_status=ORDER_STATUS_INITIAL,
                einlagentyp=cmd.einlagentyp,
                ueberzug=cmd.ueberzug,
                versorgung_note=cmd.versorgung_note,
                schuhmodell_waehlen=cmd.schuhmodell_waehlen,
                kostenvoranschlag=cmd.kostenvoranschlag,
                ausfuehrliche_diagnose=cmd.ausfuehrliche_diagnose,
                versorgung_laut_arzt=cmd.versorgung_laut_arzt,
                kunden_name=cmd.kunden_name,
                auftrags_datum=cmd.auftrags_datum,
                wohnort=cmd.wohnort,
                telefon=cmd.telefon,
                email=cmd.email,
                geschaeftsstandort=cmd.geschaeftsstandort,
                mitarbeiter=cmd.mitarbeiter,
                fertigstellung_bis=cmd.fertigstellung_bis,
                versorgung=cmd.versorgung,
            )
            session.add(order)
            await session.flush()

            session.add(
                CustomerHistory(
                    customer_id=customer.id,
                    category=HISTORY_CATEGORY_ORDERS,
                    event_id=order.id,
                    note="",
                    system_note=HISTORY_NOTE_ORDER_CREATED,
                    payment_is=str(total_price),
                )
            )
            session.add(
                CustomerOrderHistory(
                    order_id=order.id,
                    status_from=ORDER_STATUS_INITIAL,
                    status_to=ORDER_STATUS_INITIAL,
                    partner_id=partner_id,
                    employee_id=employee_id,
                )
            )
            session.add_all(_insurance_rows(order.id, insurances, vat_country))
            session.add_all(_standard_rows(order.id, standards))
            await session.flush()

            if strict and store is not None and match is not None:
                res = await apply_reservation(
                    session,
                    store=store,
                    size_key=match.label,
                    order_id=order.id,
                    customer_id=customer.id,
                )
                if res.outcome is not ReservationOutcome.APPLIED:
                    raise InsufficientStock(size_key=match.label, is_block=match.is_block)
    except IntegrityError as e:
        raise persistence_conflict_from(e) from e

    log.info(
        "order created: trace=%s partner_id=%s order_id=%s number=%s store_id=%s size=%s supply_type=%s",
        trace.tag(),
        partner_id,
        order.id,
        order.order_number,
        order.store_id,
        order.matched_size_key,
        order.supply_type,
    )
    return CreateOrderResult(
        order_id=order.id,
        order_number=order.order_number,
        total_price=total_price,
        supply_type=order.supply_type,
        store_id=order.store_id,
        matched_size=order.matched_size_key,
        store_type=order.type,
        reservation_pending=(not strict) and match is not None,
        shadow_supply_key=cmd.shadow_supply_key or None,
    )
