# ortho_orders/services/order_create_validate.py
"""
下单校验（步骤 1–4），全部 fail-fast，每种失败一个独立的错误信息。

只读不写；写入全部在 order_create_flow 的事务里完成。
"""

from __future__ import annotations

import math
from typing import Any, List, Mapping, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.models.customer import Customer, ScreenerFile
from ortho_orders.models.partner import Employee, PartnerAccountInfo
from ortho_orders.models.store import Store
from ortho_orders.models.supply import Supply
from ortho_orders.services.order_create_types import (
    VALID_PAYMENT_STATUSES,
    CreateOrderCommand,
    InsoleStandardItem,
    InsuranceItem,
    PaymentStatus,
)
from ortho_orders.services.order_errors import OrderNotFound, OrderValidationError
from ortho_orders.services.order_utils import to_decimal, to_float


def validate_required(cmd: CreateOrderCommand) -> None:
    if cmd.customer_id is None:
        raise OrderValidationError("customerId is required")
    if cmd.versorgung_id is None and not cmd.shadow_supply_key:
        raise OrderValidationError("versorgungId or shadowSupplyKey is required")
    if not cmd.bezahlt:
        raise OrderValidationError("bezahlt is required")


def validate_payment(bezahlt: Optional[str]) -> PaymentStatus:
    try:
        return PaymentStatus(bezahlt)
    except ValueError:
        raise OrderValidationError(
            "Invalid payment status",
            validStatuses=VALID_PAYMENT_STATUSES,
        ) from None


def _insurance_item(raw: Any) -> InsuranceItem:
    if not isinstance(raw, Mapping):
        raise OrderValidationError("Each insurance item must be an object")

    price_raw = raw.get("price")
    description = raw.get("description")
    has_price = price_raw not in (None, "")
    has_description = description not in (None, "")
    if not has_price and not has_description:
        raise OrderValidationError("Each insurance item must have price or description")

    price = None
    if has_price:
        price = to_decimal(price_raw)
        if price is None:
            raise OrderValidationError("insurance price must be a number")
    return InsuranceItem(
        price=price,
        description=str(description) if has_description else None,
    )


def normalize_insurances(raw: Any) -> List[InsuranceItem]:
    """单个对象 / 对象数组 → 列表；None 视为未提供"""
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        return [_insurance_item(raw)]
    if isinstance(raw, list):
        return [_insurance_item(r) for r in raw]
    raise OrderValidationError("insurances must be an object or an array")


def normalize_insole_standards(raw: Any) -> List[InsoleStandardItem]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise OrderValidationError("insoleStandards must be an array")

    out: List[InsoleStandardItem] = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise OrderValidationError("Each insoleStandards item must be an object")
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            raise OrderValidationError("insoleStandards name is required")

        left = _standard_side(item.get("left"), "left")
        right = _standard_side(item.get("right"), "right")
        out.append(
            InsoleStandardItem(
                name=name.strip(),
                left=left,
                right=right,
                is_favorite=_favorite_flag(item.get("isFavorite")),
            )
        )
    return out


def _favorite_flag(v: Any) -> bool:
    if v is None or v == "":
        return False
    if isinstance(v, bool):
        return v
    if isinstance(v, int) and v in (0, 1):
        return bool(v)
    if isinstance(v, str) and v.strip().lower() in ("true", "false"):
        return v.strip().lower() == "true"
    raise OrderValidationError("insoleStandards isFavorite must be a boolean")


def _standard_side(v: Any, side: str) -> float:
    if v is None or v == "":
        return 0.0
    f = to_float(v, default=float("nan"))
    if math.isnan(f):
        raise OrderValidationError(f"insoleStandards {side} must be a number")
    return f


async def resolve_vat_country(session: AsyncSession, partner_id: int) -> str:
    """保险支付：VAT 国家只取合作方账户信息"""
    rows = (
        await session.execute(
            select(PartnerAccountInfo.vat_country)
            .where(PartnerAccountInfo.partner_id == partner_id)
            .order_by(PartnerAccountInfo.id)
        )
    ).scalars()
    for vat in rows:
        if vat and str(vat).strip():
            return str(vat).strip()
    raise OrderValidationError(
        "vat_country is required in partner account info when payment by insurance"
    )


async def load_customer(session: AsyncSession, customer_id: Optional[int]) -> Customer:
    if customer_id is None:
        raise OrderValidationError("customerId is required")
    customer = await session.get(Customer, customer_id)
    if customer is None:
        raise OrderNotFound("Customer not found")
    return customer


async def load_screener(session: AsyncSession, screener_id: int) -> ScreenerFile:
    screener = await session.get(ScreenerFile, screener_id)
    if screener is None:
        raise OrderNotFound("Screener file not found")
    return screener


async def load_supply(session: AsyncSession, supply_id: int) -> Supply:
    supply = await session.get(Supply, supply_id)
    if supply is None:
        raise OrderNotFound("Versorgung not found")
    return supply


async def load_store(session: AsyncSession, store_id: int) -> Store:
    store = await session.get(Store, store_id)
    if store is None:
        raise OrderNotFound("Store not found")
    return store


def require_foot_lengths(customer: Customer) -> None:
    """没有 screener 时，客户必须有左右足长"""
    f1, f2 = customer.fusslange1, customer.fusslange2
    if f1 is None and f2 is None:
        raise OrderValidationError("Customer fusslange1 and fusslange2 are required")
    if f1 is None:
        raise OrderValidationError("Customer fusslange1 is required")
    if f2 is None:
        raise OrderValidationError("Customer fusslange2 is required")


def foot_lengths_for_sizing(customer: Customer) -> Tuple[float, float]:
    """有库存位的 Versorgung 一定要两只脚的长度"""
    if customer.fusslange1 is None or customer.fusslange2 is None:
        raise OrderValidationError(
            "Customer fusslange1 and fusslange2 are required for store sizing"
        )
    return float(customer.fusslange1), float(customer.fusslange2)


async def default_employee_id(session: AsyncSession, partner_id: int) -> Optional[int]:
    return (
        await session.execute(
            select(Employee.id)
            .where(Employee.partner_id == partner_id)
            .order_by(Employee.id)
            .limit(1)
        )
    ).scalar_one_or_none()
