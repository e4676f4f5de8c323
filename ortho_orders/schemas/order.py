# ortho_orders/schemas/order.py
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ===== 通用基类：camelCase 别名 + 忽略多余字段 =====
class _Base(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# ===== 创建订单 入参 =====
class OrderCreateIn(_Base):
    """
    创建鞋垫订单。

    - versorgungId / shadowSupplyKey 二选一（服务层校验）
    - insurances / insoleStandards 结构宽松，服务层逐条校验
    """

    customer_id: Optional[int] = Field(default=None, alias="customerId")
    versorgung_id: Optional[int] = Field(default=None, alias="versorgungId")
    shadow_supply_key: Optional[str] = Field(default=None, alias="shadowSupplyKey")
    bezahlt: Optional[str] = None
    quantity: Annotated[int, Field(ge=1, description="数量，必须>=1")] = 1
    discount: Optional[float] = Field(default=None, ge=0, le=100)
    fussanalyse_preis: Optional[float] = Field(default=None, alias="fussanalysePreis")
    einlagenversorgung_preis: Optional[float] = Field(
        default=None, alias="einlagenversorgungPreis"
    )
    insurances: Any = None
    insole_standards: Any = Field(default=None, alias="insoleStandards")
    werkstatt_employee_id: Optional[int] = Field(default=None, alias="werkstattEmployeeId")
    screener_id: Optional[int] = Field(default=None, alias="screenerId")

    # 工坊附加信息
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

    @field_validator(
        "customer_id",
        "versorgung_id",
        "shadow_supply_key",
        "bezahlt",
        "discount",
        "fussanalyse_preis",
        "einlagenversorgung_preis",
        "werkstatt_employee_id",
        "screener_id",
        "auftrags_datum",
        "fertigstellung_bis",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v: Any):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("quantity", mode="before")
    @classmethod
    def _default_quantity(cls, v: Any):
        if v is None or (isinstance(v, str) and not v.strip()):
            return 1
        return v


class OrderCreateOut(BaseModel):
    success: bool = True
    message: str = "Order created successfully"
    orderId: int
    matchedSize: Optional[str] = None
    supplyType: str


class OrderDetailOut(BaseModel):
    success: bool = True
    data: Dict[str, Any]


class ErrorOut(BaseModel):
    success: bool = False
    message: str
    code: Optional[str] = None
    errors: Optional[List[Dict[str, Any]]] = None
