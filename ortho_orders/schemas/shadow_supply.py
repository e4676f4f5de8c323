# ortho_orders/schemas/shadow_supply.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ShadowSupplyCreateIn(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: Optional[str] = None
    versorgung: Optional[str] = None
    material: Union[List[str], str, None] = None
    supply_status_id: Optional[int] = Field(default=None, alias="supplyStatusId")
    store_id: Optional[int] = Field(default=None, alias="storeId")
    customer_id: Optional[int] = Field(default=None, alias="customerId")


class ShadowSupplyCreatedData(BaseModel):
    key: str
    expiresInSeconds: int
    customerId: int


class ShadowSupplyCreateOut(BaseModel):
    success: bool = True
    message: str = "Shadow supply created"
    data: ShadowSupplyCreatedData


class ShadowSupplyOut(BaseModel):
    success: bool = True
    data: Dict[str, Any]
