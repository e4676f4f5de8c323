# tests/_helpers.py
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ortho_orders.core.config import AppSettings
from ortho_orders.models.customer import Customer, ScreenerFile
from ortho_orders.models.partner import Employee, Partner, PartnerAccountInfo
from ortho_orders.models.store import STORE_TYPE_INSOLE, Store
from ortho_orders.models.supply import SUPPLY_TYPE_PUBLIC, Supply

# Scenario A / B 用的标准尺码表
INSOLE_SIZES: Dict[str, Any] = {
    "35": {"length": 225, "quantity": 5},
    "36": {"length": 230, "quantity": 2},
}


def make_settings(**overrides: Any) -> AppSettings:
    values: Dict[str, Any] = {
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "TASK_QUEUE_BACKEND": "background",
        "STOCK_RESERVATION_MODE": "deferred",
        "ORDER_NUMBER_STRATEGY": "max_plus_one",
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


class InMemoryCache:
    """KeyValueCache 测试替身：不模拟过期，只记录 ttl"""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.deleted: List[str] = []

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str, *, ttl_seconds: int) -> None:
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        self.data.pop(key, None)


class BrokenCache(InMemoryCache):
    async def delete(self, key: str) -> None:
        raise ConnectionError("cache unavailable")


class RecordingQueue:
    """TaskQueue 替身：只记录投递"""

    def __init__(self) -> None:
        self.jobs: List[tuple] = []

    def enqueue(self, job_name: str, **kwargs: Any) -> None:
        self.jobs.append((job_name, kwargs))

    def names(self) -> List[str]:
        return [name for name, _ in self.jobs]


async def seed_partner(
    session: AsyncSession,
    *,
    name: str = "Werkstatt Nord",
    vat_country: Optional[str] = "DE",
    employees: int = 1,
) -> Partner:
    partner = Partner(name=name)
    session.add(partner)
    await session.flush()
    if vat_country is not None:
        session.add(PartnerAccountInfo(partner_id=partner.id, vat_country=vat_country))
    for i in range(employees):
        session.add(Employee(partner_id=partner.id, name=f"Mitarbeiter {i + 1}"))
    await session.flush()
    return partner


async def seed_customer(
    session: AsyncSession,
    *,
    partner_id: int,
    fusslange1: Optional[float] = 220,
    fusslange2: Optional[float] = 218,
) -> Customer:
    customer = Customer(
        partner_id=partner_id,
        customer_number=1,
        vorname="Anna",
        nachname="Schmidt",
        fusslange1=fusslange1,
        fusslange2=fusslange2,
    )
    session.add(customer)
    await session.flush()
    return customer


async def seed_screener(session: AsyncSession, *, customer_id: int) -> ScreenerFile:
    screener = ScreenerFile(customer_id=customer_id)
    session.add(screener)
    await session.flush()
    return screener


async def seed_store(
    session: AsyncSession,
    *,
    partner_id: int,
    sizes: Optional[Dict[str, Any]] = None,
    type: str = STORE_TYPE_INSOLE,
) -> Store:
    store = Store(
        partner_id=partner_id,
        produktname="Rohling Sport",
        hersteller="OrthoTec",
        type=type,
        groessen_mengen=copy.deepcopy(INSOLE_SIZES if sizes is None else sizes),
    )
    session.add(store)
    await session.flush()
    return store


async def seed_supply(
    session: AsyncSession,
    *,
    partner_id: Optional[int] = None,
    store_id: Optional[int] = None,
    name: str = "Alltagseinlage",
) -> Supply:
    supply = Supply(
        name=name,
        versorgung="Weichschaum",
        rohling_hersteller="OrthoTec",
        artikel_hersteller="OrthoTec",
        material=["EVA", "Leder"],
        diagnosis_status=[],
        supply_type=SUPPLY_TYPE_PUBLIC,
        store_id=store_id,
        partner_id=partner_id,
    )
    session.add(supply)
    await session.flush()
    return supply


@dataclass(frozen=True)
class World:
    partner_id: int
    customer_id: int
    store_id: int
    supply_id: int


async def seed_world(session: AsyncSession, **store_kwargs: Any) -> World:
    """
    partner + customer + store + 绑定 store 的 supply，已提交。

    只返回 id：失败用例回滚后 ORM 对象会过期，异步下不能再懒加载。
    """
    partner = await seed_partner(session)
    customer = await seed_customer(session, partner_id=partner.id)
    store = await seed_store(session, partner_id=partner.id, **store_kwargs)
    supply = await seed_supply(session, partner_id=partner.id, store_id=store.id)
    await session.commit()
    return World(
        partner_id=partner.id,
        customer_id=customer.id,
        store_id=store.id,
        supply_id=supply.id,
    )
