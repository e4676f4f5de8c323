# ortho_orders/api/routers/shadow_supplies.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.api.deps import get_cache, get_current_partner_id, get_session
from ortho_orders.core.config import AppSettings, get_settings
from ortho_orders.db.uow import UnitOfWork
from ortho_orders.schemas.shadow_supply import (
    ShadowSupplyCreatedData,
    ShadowSupplyCreateIn,
    ShadowSupplyCreateOut,
    ShadowSupplyOut,
)
from ortho_orders.services.kv_cache import KeyValueCache
from ortho_orders.services.shadow_supply_service import (
    SHADOW_SUPPLY_NOT_FOUND,
    ShadowSupplyService,
)

router = APIRouter(prefix="/shadow-supplies", tags=["shadow-supplies"])


@router.post("", response_model=ShadowSupplyCreateOut, status_code=status.HTTP_201_CREATED)
async def create_shadow_supply(
    payload: ShadowSupplyCreateIn,
    session: AsyncSession = Depends(get_session),
    cache: KeyValueCache = Depends(get_cache),
    partner_id: int = Depends(get_current_partner_id),
    settings: AppSettings = Depends(get_settings),
):
    # 只读库（客户 / 库存位存在性），草稿只进缓存
    async with UnitOfWork(session):
        key, draft = await ShadowSupplyService.create_draft(
            session,
            cache,
            partner_id=partner_id,
            customer_id=payload.customer_id,
            store_id=payload.store_id,
            name=payload.name,
            versorgung=payload.versorgung,
            material=payload.material,
            supply_status_id=payload.supply_status_id,
            ttl_seconds=settings.SHADOW_SUPPLY_TTL_SECONDS,
        )
    return ShadowSupplyCreateOut(
        data=ShadowSupplyCreatedData(
            key=key,
            expiresInSeconds=settings.SHADOW_SUPPLY_TTL_SECONDS,
            customerId=draft.customer_id,
        )
    )


@router.get("", response_model=ShadowSupplyOut)
async def get_shadow_supply(
    key: Optional[str] = Query(default=None),
    cache: KeyValueCache = Depends(get_cache),
    partner_id: int = Depends(get_current_partner_id),
):
    if not key:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="key is required")

    draft = await ShadowSupplyService.load_draft(cache, key)
    if draft is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=SHADOW_SUPPLY_NOT_FOUND)
    if draft.partner_id != partner_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this shadow supply",
        )
    return ShadowSupplyOut(data={"key": key, **draft.to_payload()})
