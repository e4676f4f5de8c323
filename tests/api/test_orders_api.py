import pytest
from sqlalchemy import select

from ortho_orders.models.store import Store, StoreHistory
from tests._helpers import seed_customer, seed_world

pytestmark = pytest.mark.asyncio


def _headers(partner_id: int) -> dict:
    return {"X-Partner-Id": str(partner_id)}


def _body(w, **extra) -> dict:
    body = {
        "customerId": w.customer_id,
        "versorgungId": w.supply_id,
        "bezahlt": "Privat_Bezahlt",
        "fussanalysePreis": 40,
        "einlagenversorgungPreis": 120,
    }
    body.update(extra)
    return body


async def _quantity(session, store_id: int, label: str) -> int:
    store = await session.get(Store, store_id)
    await session.refresh(store)
    return store.groessen_mengen[label]["quantity"]


async def test_create_order_201_and_reserves_after_response(client, session):
    w = await seed_world(session)

    r = await client.post("/orders", json=_body(w), headers=_headers(w.partner_id))

    assert r.status_code == 201, r.text
    data = r.json()
    assert data["success"] is True
    assert data["message"] == "Order created successfully"
    assert data["matchedSize"] == "35"
    assert data["supplyType"] == "public"
    assert isinstance(data["orderId"], int)

    # 后台任务已在响应后执行
    assert await _quantity(session, w.store_id, "35") == 4
    rows = (await session.execute(select(StoreHistory))).scalars().all()
    assert [(r.order_id, r.new_stock) for r in rows] == [(data["orderId"], 4)]


async def test_missing_partner_header_is_401(client, session):
    w = await seed_world(session)
    r = await client.post("/orders", json=_body(w))
    assert r.status_code == 401
    assert r.json()["success"] is False


async def test_missing_customer_id_is_400(client, session):
    w = await seed_world(session)
    r = await client.post(
        "/orders", json=_body(w, customerId=None), headers=_headers(w.partner_id)
    )
    assert r.status_code == 400
    assert r.json() == {
        "success": False,
        "message": "customerId is required",
        "code": "VALIDATION_ERROR",
    }


async def test_invalid_payment_lists_valid_statuses(client, session):
    w = await seed_world(session)
    r = await client.post("/orders", json=_body(w, bezahlt="Bar"), headers=_headers(w.partner_id))
    assert r.status_code == 400
    assert "Krankenkasse_Genehmigt" in r.json()["validStatuses"]


async def test_type_errors_are_400_with_errors_list(client, session):
    w = await seed_world(session)
    r = await client.post(
        "/orders", json=_body(w, quantity="viele"), headers=_headers(w.partner_id)
    )
    assert r.status_code == 400
    data = r.json()
    assert data["success"] is False
    assert data["errors"][0]["path"] == "quantity"


async def test_out_of_tolerance_payload(client, session):
    w = await seed_world(session)
    customer = await seed_customer(session, partner_id=w.partner_id, fusslange1=240, fusslange2=235)
    await session.commit()

    r = await client.post(
        "/orders", json=_body(w, customerId=customer.id), headers=_headers(w.partner_id)
    )

    assert r.status_code == 400
    data = r.json()
    assert data["code"] == "SIZE_OUT_OF_TOLERANCE"
    assert data["requiredLength"] == 245
    assert data["nearestLowerSize"] == {"length": 230}
    assert data["nearestUpperSize"] is None


async def test_insufficient_stock_payload(client, session):
    w = await seed_world(
        session, sizes={"35": {"length": 225, "quantity": 0}, "36": {"length": 230, "quantity": 2}}
    )
    r = await client.post("/orders", json=_body(w), headers=_headers(w.partner_id))

    assert r.status_code == 400
    data = r.json()
    assert data["warning"] == "Insufficient stock"
    assert data["sizeKey"] == "35"


async def test_unknown_customer_is_404(client, session):
    w = await seed_world(session)
    r = await client.post(
        "/orders", json=_body(w, customerId=31337), headers=_headers(w.partner_id)
    )
    assert r.status_code == 404
    assert r.json()["message"] == "Customer not found"


async def test_insurance_payment_without_items_is_400(client, session):
    w = await seed_world(session)
    r = await client.post(
        "/orders",
        json=_body(w, bezahlt="Krankenkasse_Ungenehmigt", insurances=[]),
        headers=_headers(w.partner_id),
    )
    assert r.status_code == 400
    assert "insurances" in r.json()["message"]


async def test_get_order_detail(client, session):
    w = await seed_world(session)
    created = await client.post(
        "/orders",
        json=_body(
            w,
            bezahlt="Krankenkasse_Genehmigt",
            insurances=[{"price": 25, "description": "AOK"}],
            insoleStandards=[{"name": "Pelotte", "left": 2, "isFavorite": True}],
        ),
        headers=_headers(w.partner_id),
    )
    order_id = created.json()["orderId"]

    r = await client.get(f"/orders/{order_id}", headers=_headers(w.partner_id))

    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["orderNumber"] == 1000
    assert data["matchedSize"] == "35"
    assert data["totalPrice"] == 160.0
    assert data["largerFusslange"] == 225
    assert data["recommendedSize"]["size"] == "35"
    assert data["recommendedSize"]["length"] == 225
    assert data["product"]["material"] == ["EVA", "Leder"]
    assert data["customer"]["fusslange1"] == 220
    assert data["insurances"] == [{"price": 25.0, "description": "AOK", "vatCountry": "DE"}]
    assert data["insoleStandards"] == [
        {"name": "Pelotte", "left": 2.0, "right": 0.0, "isFavorite": True}
    ]


async def test_get_order_of_other_partner_is_404(client, session):
    w = await seed_world(session)
    created = await client.post("/orders", json=_body(w), headers=_headers(w.partner_id))
    order_id = created.json()["orderId"]

    r = await client.get(f"/orders/{order_id}", headers=_headers(w.partner_id + 1))
    assert r.status_code == 404
    assert r.json()["success"] is False


async def test_health_and_metrics(client, session):
    w = await seed_world(session)
    await client.post("/orders", json=_body(w), headers=_headers(w.partner_id))

    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}

    r = await client.get("/metrics")
    assert r.status_code == 200
    assert "orders_created_total" in r.text
    assert "inventory_reservations_total" in r.text
