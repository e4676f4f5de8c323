# ortho_orders/services/shadow_supply_service.py
"""
影子 Versorgung（缓存草稿）：

- 起草：工坊给某个客户临时配一个 Versorgung，只写缓存（TTL 1h），不落库；
- 下单：按 key 取回草稿，校验归属（partner + customer），在订单事务内转正为 private Supply；
- 清理：订单事务提交后再删缓存（后台任务，失败只记日志）。

同一个 key 被第二次下单使用时，缓存已删 → 404，不会重复转正。
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.models.customer import Customer
from ortho_orders.models.store import Store
from ortho_orders.models.supply import SUPPLY_TYPE_PRIVATE, Supply
from ortho_orders.services.kv_cache import KeyValueCache
from ortho_orders.services.order_errors import OrderNotFound, OrderValidationError

log = logging.getLogger("orthoorders.shadow_supply")

SHADOW_SUPPLY_TTL_SEC = 60 * 60
SHADOW_SUPPLY_NOT_FOUND = "Shadow supply not found or expired"


def make_shadow_key(customer_id: int) -> str:
    return f"{secrets.token_hex(12)}^{customer_id}"


def _as_int(v: Any) -> Optional[int]:
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def normalize_material(material: Any) -> List[str]:
    if isinstance(material, (list, tuple)):
        return [str(m) for m in material if m not in (None, "")]
    if material in (None, ""):
        return []
    return [str(material)]


@dataclass
class ShadowSupplyDraft:
    key: str
    partner_id: int
    customer_id: int
    name: str
    versorgung: Optional[str] = None
    material: List[str] = field(default_factory=list)
    supply_status_id: Optional[int] = None
    store_id: Optional[int] = None
    rohling_hersteller: Optional[str] = None
    artikel_hersteller: Optional[str] = None
    diagnosis_status: List[Any] = field(default_factory=list)
    supply_type: str = SUPPLY_TYPE_PRIVATE
    created_at: Optional[str] = None

    @classmethod
    def from_payload(cls, key: str, payload: Mapping[str, Any]) -> "ShadowSupplyDraft":
        partner_id = _as_int(payload.get("partnerId"))
        customer_id = _as_int(payload.get("customerId"))
        if partner_id is None or customer_id is None or not payload.get("name"):
            raise ValueError("shadow supply payload is missing partnerId/customerId/name")
        return cls(
            key=key,
            partner_id=partner_id,
            customer_id=customer_id,
            name=str(payload["name"]),
            versorgung=payload.get("versorgung"),
            material=normalize_material(payload.get("material")),
            supply_status_id=_as_int(payload.get("supplyStatusId")),
            store_id=_as_int(payload.get("storeId")),
            rohling_hersteller=payload.get("rohlingHersteller"),
            artikel_hersteller=payload.get("artikelHersteller"),
            diagnosis_status=list(payload.get("diagnosis_status") or []),
            supply_type=payload.get("supplyType") or SUPPLY_TYPE_PRIVATE,
            created_at=payload.get("createdAt"),
        )

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "versorgung": self.versorgung,
            "material": list(self.material),
            "supplyStatusId": self.supply_status_id,
            "storeId": self.store_id,
            "customerId": self.customer_id,
            "partnerId": self.partner_id,
            "supplyType": self.supply_type,
            "rohlingHersteller": self.rohling_hersteller,
            "artikelHersteller": self.artikel_hersteller,
            "diagnosis_status": list(self.diagnosis_status),
            "createdAt": self.created_at,
        }


class ShadowSupplyService:
    """
    影子 Versorgung 的起草 / 读取 / 转正 / 清理。

    所有方法都显式接收 session / cache，不持有状态。
    """

    @staticmethod
    async def create_draft(
        session: AsyncSession,
        cache: KeyValueCache,
        *,
        partner_id: int,
        customer_id: Optional[int],
        store_id: Optional[int],
        name: Optional[str],
        versorgung: Optional[str],
        material: Any,
        supply_status_id: Optional[int],
        ttl_seconds: int = SHADOW_SUPPLY_TTL_SEC,
    ) -> Tuple[str, ShadowSupplyDraft]:
        required = {
            "name": name,
            "versorgung": versorgung,
            "material": material,
            "supplyStatusId": supply_status_id,
            "storeId": store_id,
            "customerId": customer_id,
        }
        missing: Sequence[str] = [k for k, v in required.items() if v in (None, "", [])]
        if missing:
            raise OrderValidationError(f"Missing required fields: {', '.join(missing)}")

        customer = await session.get(Customer, customer_id)
        if customer is None:
            raise OrderNotFound("Customer not found")
        store = await session.get(Store, store_id)
        if store is None:
            raise OrderNotFound("Store not found")

        key = make_shadow_key(int(customer_id))
        draft = ShadowSupplyDraft(
            key=key,
            partner_id=partner_id,
            customer_id=int(customer_id),
            name=str(name),
            versorgung=versorgung,
            material=normalize_material(material),
            supply_status_id=supply_status_id,
            store_id=int(store_id),
            rohling_hersteller=store.produktname,
            artikel_hersteller=store.hersteller,
            created_at=datetime.now(timezone.utc).isoformat(),
        )
        await cache.set(key, json.dumps(draft.to_payload()), ttl_seconds=ttl_seconds)
        log.info(
            "shadow supply drafted: partner_id=%s customer_id=%s store_id=%s ttl=%ss",
            partner_id,
            customer_id,
            store_id,
            ttl_seconds,
        )
        return key, draft

    @staticmethod
    async def load_draft(cache: KeyValueCache, key: str) -> Optional[ShadowSupplyDraft]:
        """缓存里没有 / 内容损坏都视为不存在"""
        raw = await cache.get(key)
        if not raw:
            return None
        try:
            return ShadowSupplyDraft.from_payload(key, json.loads(raw))
        except (ValueError, TypeError) as e:
            log.warning("shadow supply payload unreadable: key=%s err=%s", key, e)
            return None

    @staticmethod
    async def fetch_for_order(
        cache: KeyValueCache,
        key: str,
        *,
        partner_id: int,
        customer_id: int,
    ) -> ShadowSupplyDraft:
        draft = await ShadowSupplyService.load_draft(cache, key)
        if draft is None:
            raise OrderNotFound(SHADOW_SUPPLY_NOT_FOUND)
        # 不属于当前 partner / 客户对不上：一律按“不存在”处理，不泄露草稿
        if draft.partner_id != partner_id or draft.customer_id != customer_id:
            log.warning(
                "shadow supply ownership mismatch: key=%s owner=(%s,%s) caller=(%s,%s)",
                key,
                draft.partner_id,
                draft.customer_id,
                partner_id,
                customer_id,
            )
            raise OrderNotFound(SHADOW_SUPPLY_NOT_FOUND)
        return draft

    @staticmethod
    async def promote(session: AsyncSession, draft: ShadowSupplyDraft) -> Supply:
        """在调用方事务内转正为 private Supply（只 flush，不 commit）"""
        supply = Supply(
            name=draft.name,
            versorgung=draft.versorgung,
            rohling_hersteller=draft.rohling_hersteller,
            artikel_hersteller=draft.artikel_hersteller,
            material=list(draft.material),
            diagnosis_status=list(draft.diagnosis_status),
            supply_type=SUPPLY_TYPE_PRIVATE,
            supply_status_id=draft.supply_status_id,
            store_id=draft.store_id,
            partner_id=draft.partner_id,
            customer_id=draft.customer_id,
        )
        session.add(supply)
        await session.flush()
        return supply

    @staticmethod
    async def discard(cache: KeyValueCache, key: str) -> bool:
        """删除缓存草稿；失败只记日志（订单已提交，不能因此失败）"""
        try:
            await cache.delete(key)
        except Exception:
            log.exception("shadow supply discard failed: key=%s", key)
            return False
        log.info("shadow supply discarded: key=%s", key)
        return True
