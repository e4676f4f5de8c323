# ortho_orders/services/order_utils.py
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, List, Optional

CENT = Decimal("0.01")


def to_decimal(x: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    统一把各种金额类型转成 Decimal，避免浮点精度问题。
    None / 空串 / 非法值返回 default。
    """
    if x is None or x == "" or isinstance(x, bool):
        return default
    try:
        return Decimal(str(x))
    except (InvalidOperation, ValueError):
        return default


def to_float(x: Any, default: float = 0.0) -> float:
    """宽松转 float；None / 空串 / 非法值返回 default。"""
    if x is None or x == "" or isinstance(x, bool):
        return default
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def compute_total_price(
    fussanalyse_preis: Any,
    einlagenversorgung_preis: Any,
    quantity: int,
    discount_percent: Any,
) -> Decimal:
    """
    总价 = (足部分析价 + 鞋垫价) × 数量 × (1 - 折扣%)，四舍五入到分。
    """
    base = (to_decimal(fussanalyse_preis) or Decimal(0)) + (
        to_decimal(einlagenversorgung_preis) or Decimal(0)
    )
    discount = to_decimal(discount_percent) or Decimal(0)
    total = base * Decimal(int(quantity)) * (Decimal(1) - discount / Decimal(100))
    return total.quantize(CENT, rounding=ROUND_HALF_UP)


def serialize_material(material: Any) -> str:
    """列表 → "a, b"；字符串原样；其他转 str"""
    if isinstance(material, (list, tuple)):
        parts = ["" if m is None else str(m).strip() for m in material]
        return ", ".join(p for p in parts if p)
    if isinstance(material, str):
        return material
    return "" if material is None else str(material)


def deserialize_material(material: Any) -> Optional[List[str]]:
    if isinstance(material, list):
        return material
    if isinstance(material, str):
        items = [m.strip() for m in material.split(",") if m.strip()]
        return items or None
    return None
