# ortho_orders/services/order_create_types.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class PaymentStatus(str, Enum):
    PRIVAT_BEZAHLT = "Privat_Bezahlt"
    PRIVAT_OFFEN = "Privat_offen"
    KRANKENKASSE_UNGENEHMIGT = "Krankenkasse_Ungenehmigt"
    KRANKENKASSE_GENEHMIGT = "Krankenkasse_Genehmigt"

    @property
    def is_insurance(self) -> bool:
        return self in (
            PaymentStatus.KRANKENKASSE_UNGENEHMIGT,
            PaymentStatus.KRANKENKASSE_GENEHMIGT,
        )


VALID_PAYMENT_STATUSES = [p.value for p in PaymentStatus]


@dataclass(frozen=True)
class InsuranceItem:
    price: Optional[Decimal]
    description: Optional[str]


@dataclass(frozen=True)
class InsoleStandardItem:
    name: str
    left: float = 0.0
    right: float = 0.0
    is_favorite: bool = False


@dataclass
class CreateOrderCommand:
    """POST /orders 请求体（已做类型转换，未做业务校验）"""

    customer_id: Optional[int] = None
    versorgung_id: Optional[int] = None
    shadow_supply_key: Optional[str] = None
    bezahlt: Optional[str] = None
    quantity: int = 1
    discount: Optional[float] = None
    fussanalyse_preis: Optional[float] = None
    einlagenversorgung_preis: Optional[float] = None
    insurances: Any = None
    insole_standards: Any = None
    werkstatt_employee_id: Optional[int] = None
    screener_id: Optional[int] = None

    # 工坊附加信息，原样落库
    einlagentyp: Optional[str] = None
    ueberzug: Optional[str] = None
    versorgung_note: Optional[str] = None
    schuhmodell_waehlen: Optional[str] = None
    kostenvoranschlag: Optional[bool] = None
    ausfuehrliche_diagnose: Optional[str] = None
    versorgung_laut_arzt: Optional[str] = None
    kunden_name: Optional[str] = None
    auftrags_datum: Optional[datetime] = None
    wohnort: Optional[str] = None
    telefon: Optional[str] = None
    email: Optional[str] = None
    geschaeftsstandort: Any = None
    mitarbeiter: Optional[str] = None
    fertigstellung_bis: Optional[datetime] = None
    versorgung: Optional[str] = None


@dataclass(frozen=True)
class CreateOrderOptions:
    reservation_mode: str = "deferred"
    order_number_strategy: str = "max_plus_one"


@dataclass(frozen=True)
class CreateOrderResult:
    order_id: int
    order_number: int
    total_price: Decimal
    supply_type: str
    store_id: Optional[int] = None
    matched_size: Optional[str] = None
    store_type: Optional[str] = None
    # deferred 模式下需要后台扣减
    reservation_pending: bool = False
    # 影子 Versorgung 已转正，需要清缓存
    shadow_supply_key: Optional[str] = None
