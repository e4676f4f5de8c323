import pytest
from sqlalchemy import func, select

from ortho_orders.models.store import Store, StoreHistory
from tests._helpers import make_settings, seed_world

pytestmark = pytest.mark.asyncio


@pytest.fixture
def settings():
    return make_settings(STOCK_RESERVATION_MODE="strict", ORDER_NUMBER_STRATEGY="atomic_counter")


async def test_strict_mode_reserves_in_request_and_blocks_oversell(client, session):
    w = await seed_world(
        session, sizes={"35": {"length": 225, "quantity": 1}, "36": {"length": 230, "quantity": 2}}
    )
    body = {"customerId": w.customer_id, "versorgungId": w.supply_id, "bezahlt": "Privat_offen"}
    headers = {"X-Partner-Id": str(w.partner_id)}

    first = await client.post("/orders", json=body, headers=headers)
    assert first.status_code == 201, first.text

    second = await client.post("/orders", json=body, headers=headers)
    assert second.status_code == 400
    assert second.json()["code"] == "INSUFFICIENT_STOCK"

    store = await session.get(Store, w.store_id)
    await session.refresh(store)
    assert store.groessen_mengen["35"]["quantity"] == 0
    count = (
        await session.execute(select(func.count()).select_from(StoreHistory))
    ).scalar_one()
    assert count == 1
