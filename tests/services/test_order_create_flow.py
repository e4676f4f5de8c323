from decimal import Decimal

import pytest
from sqlalchemy import func, select

from ortho_orders.core.audit import new_trace
from ortho_orders.models.customer import CustomerHistory
from ortho_orders.models.order import (
    CustomerOrder,
    CustomerOrderHistory,
    CustomerOrderInsoleStandard,
    CustomerOrderInsurance,
    CustomerProduct,
)
from ortho_orders.models.store import Store, StoreHistory
from ortho_orders.models.supply import Supply
from ortho_orders.services.background_jobs import JOB_INVENTORY_RESERVE, JOB_SHADOW_SUPPLY_DISCARD
from ortho_orders.services.order_create_types import CreateOrderCommand, CreateOrderOptions
from ortho_orders.services.order_errors import (
    InsufficientStock,
    OrderNotFound,
    OrderValidationError,
    SizeOutOfTolerance,
)
from ortho_orders.services.order_service import OrderService
from ortho_orders.services.shadow_supply_service import ShadowSupplyService
from tests._helpers import (
    RecordingQueue,
    seed_customer,
    seed_partner,
    seed_screener,
    seed_store,
    seed_supply,
    seed_world,
)

pytestmark = pytest.mark.asyncio

DEFERRED = CreateOrderOptions()
STRICT = CreateOrderOptions(reservation_mode="strict")


async def _count(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


async def _create(session, cache, queue, partner_id, options=DEFERRED, **fields):
    return await OrderService.create(
        session,
        cache,
        queue,
        partner_id=partner_id,
        cmd=CreateOrderCommand(**fields),
        options=options,
        trace=new_trace("test:orders"),
    )


async def test_create_order_matches_size_and_writes_everything(session, cache):
    w = await seed_world(session)
    queue = RecordingQueue()

    res = await _create(
        session,
        cache,
        queue,
        w.partner_id,
        customer_id=w.customer_id,
        versorgung_id=w.supply_id,
        bezahlt="Privat_Bezahlt",
        fussanalyse_preis=50,
        einlagenversorgung_preis=150,
        quantity=2,
        discount=10,
        insole_standards=[{"name": "Pelotte", "left": 1, "right": ""}],
    )

    assert res.matched_size == "35"
    assert res.supply_type == "public"
    assert res.order_number == 1000
    assert res.total_price == Decimal("360.00")
    assert res.reservation_pending is True
    assert queue.jobs == [(JOB_INVENTORY_RESERVE, {"order_id": res.order_id})]

    order = await session.get(CustomerOrder, res.order_id)
    assert order.matched_size_key == "35"
    assert order.store_id == w.store_id
    assert order.type == "rady_insole"
    assert order.order_status == "Warten_auf_Versorgungsstart"
    assert order.bezahlt == "Privat_Bezahlt"
    # 默认员工 = partner 的第一个员工
    assert order.employee_id is not None

    product = await session.get(CustomerProduct, order.product_id)
    assert product.material == "EVA, Leder"
    assert product.status == "Alltagseinlagen"
    assert product.langenempfehlung == {}

    hist = (await session.execute(select(CustomerHistory))).scalars().one()
    assert hist.category == "Bestellungen"
    assert hist.event_id == order.id
    assert hist.system_note == "Einlagenbestellung erstellt"
    assert hist.payment_is == "360.00"

    status_row = (await session.execute(select(CustomerOrderHistory))).scalars().one()
    assert status_row.status_from == status_row.status_to == "Warten_auf_Versorgungsstart"

    std = (await session.execute(select(CustomerOrderInsoleStandard))).scalars().one()
    assert (std.name, std.left, std.right, std.is_favorite) == ("Pelotte", 1.0, 0.0, False)

    # deferred：下单本身不扣库存
    store = await session.get(Store, w.store_id)
    await session.refresh(store)
    assert store.groessen_mengen["35"]["quantity"] == 5
    assert await _count(session, StoreHistory) == 0


async def test_order_numbers_increase_per_partner(session, cache):
    w = await seed_world(session)
    other = await seed_partner(session, name="Andere Werkstatt")
    other_customer = await seed_customer(session, partner_id=other.id)
    other_supply = await seed_supply(session, partner_id=other.id)
    await session.commit()

    numbers = []
    for _ in range(3):
        res = await _create(
            session,
            cache,
            RecordingQueue(),
            w.partner_id,
            customer_id=w.customer_id,
            versorgung_id=w.supply_id,
            bezahlt="Privat_offen",
        )
        numbers.append(res.order_number)
    assert numbers == [1000, 1001, 1002]

    res = await _create(
        session,
        cache,
        RecordingQueue(),
        other.id,
        customer_id=other_customer.id,
        versorgung_id=other_supply.id,
        bezahlt="Privat_offen",
    )
    assert res.order_number == 1000


async def test_supply_without_store_needs_no_sizing(session, cache):
    partner = await seed_partner(session)
    customer = await seed_customer(session, partner_id=partner.id, fusslange1=None, fusslange2=None)
    screener = await seed_screener(session, customer_id=customer.id)
    supply = await seed_supply(session, partner_id=partner.id)
    await session.commit()
    queue = RecordingQueue()

    res = await _create(
        session,
        cache,
        queue,
        partner.id,
        customer_id=customer.id,
        versorgung_id=supply.id,
        screener_id=screener.id,
        bezahlt="Privat_offen",
    )
    assert res.matched_size is None
    assert res.reservation_pending is False
    assert queue.jobs == []


async def test_insurance_payment_with_empty_list_writes_nothing(session, cache):
    w = await seed_world(session)
    queue = RecordingQueue()

    with pytest.raises(OrderValidationError, match="insurances"):
        await _create(
            session,
            cache,
            queue,
            w.partner_id,
            customer_id=w.customer_id,
            versorgung_id=w.supply_id,
            bezahlt="Krankenkasse_Genehmigt",
            insurances=[],
        )

    assert await _count(session, CustomerOrder) == 0
    assert await _count(session, CustomerProduct) == 0
    assert queue.jobs == []


async def test_insurance_rows_take_vat_country_from_partner(session, cache):
    w = await seed_world(session)

    res = await _create(
        session,
        cache,
        RecordingQueue(),
        w.partner_id,
        customer_id=w.customer_id,
        versorgung_id=w.supply_id,
        bezahlt="Krankenkasse_Ungenehmigt",
        insurances={"price": "20", "description": "AOK"},
    )

    rows = (
        await session.execute(
            select(CustomerOrderInsurance).where(CustomerOrderInsurance.order_id == res.order_id)
        )
    ).scalars().all()
    assert len(rows) == 1
    assert rows[0].vat_country == "DE"
    assert rows[0].description == "AOK"


async def test_insurance_payment_requires_partner_vat_country(session, cache):
    partner = await seed_partner(session, vat_country=None)
    customer = await seed_customer(session, partner_id=partner.id)
    supply = await seed_supply(session, partner_id=partner.id)
    await session.commit()

    with pytest.raises(OrderValidationError, match="vat_country"):
        await _create(
            session,
            cache,
            RecordingQueue(),
            partner.id,
            customer_id=customer.id,
            versorgung_id=supply.id,
            bezahlt="Krankenkasse_Genehmigt",
            insurances=[{"description": "TK"}],
        )


async def test_missing_references_are_not_found(session, cache):
    w = await seed_world(session)
    base = dict(bezahlt="Privat_offen")

    with pytest.raises(OrderNotFound, match="Customer"):
        await _create(
            session, cache, RecordingQueue(), w.partner_id,
            customer_id=9999, versorgung_id=w.supply_id, **base,
        )
    with pytest.raises(OrderNotFound, match="Versorgung"):
        await _create(
            session, cache, RecordingQueue(), w.partner_id,
            customer_id=w.customer_id, versorgung_id=9999, **base,
        )
    with pytest.raises(OrderNotFound, match="Screener"):
        await _create(
            session, cache, RecordingQueue(), w.partner_id,
            customer_id=w.customer_id, versorgung_id=w.supply_id, screener_id=9999, **base,
        )


async def test_missing_foot_length_without_screener(session, cache):
    partner = await seed_partner(session)
    customer = await seed_customer(session, partner_id=partner.id, fusslange2=None)
    supply = await seed_supply(session, partner_id=partner.id)
    await session.commit()

    with pytest.raises(OrderValidationError, match="fusslange2"):
        await _create(
            session,
            cache,
            RecordingQueue(),
            partner.id,
            customer_id=customer.id,
            versorgung_id=supply.id,
            bezahlt="Privat_offen",
        )


async def test_store_sizing_requires_lengths_even_with_screener(session, cache):
    w = await seed_world(session)
    customer = await seed_customer(
        session, partner_id=w.partner_id, fusslange1=None, fusslange2=None
    )
    screener = await seed_screener(session, customer_id=customer.id)
    await session.commit()

    with pytest.raises(OrderValidationError, match="store sizing"):
        await _create(
            session,
            cache,
            RecordingQueue(),
            w.partner_id,
            customer_id=customer.id,
            versorgung_id=w.supply_id,
            screener_id=screener.id,
            bezahlt="Privat_offen",
        )


async def test_out_of_tolerance_rejects_without_writes(session, cache):
    w = await seed_world(session)
    customer = await seed_customer(session, partner_id=w.partner_id, fusslange1=240, fusslange2=239)
    await session.commit()

    with pytest.raises(SizeOutOfTolerance) as ei:
        await _create(
            session,
            cache,
            RecordingQueue(),
            w.partner_id,
            customer_id=customer.id,
            versorgung_id=w.supply_id,
            bezahlt="Privat_offen",
        )
    assert ei.value.nearest_lower == 230
    assert ei.value.nearest_upper is None
    assert await _count(session, CustomerOrder) == 0


async def test_zero_quantity_is_insufficient_stock(session, cache):
    w = await seed_world(
        session,
        sizes={"35": {"length": 225, "quantity": 0}, "36": {"length": 230, "quantity": 2}},
    )

    with pytest.raises(InsufficientStock) as ei:
        await _create(
            session,
            cache,
            RecordingQueue(),
            w.partner_id,
            customer_id=w.customer_id,
            versorgung_id=w.supply_id,
            bezahlt="Privat_offen",
        )
    payload = ei.value.to_payload()
    assert payload["sizeKey"] == "35"
    assert payload["warning"] == "Insufficient stock"
    assert payload["message"].startswith("Größe 35 ist nicht auf Lager")
    assert await _count(session, CustomerOrder) == 0


async def test_block_store_order_uses_range_match(session, cache):
    w = await seed_world(
        session,
        type="milling_block",
        sizes={"1": {"quantity": 2}, "2": {"quantity": 0}, "3": {"quantity": 1}},
    )
    customer = await seed_customer(session, partner_id=w.partner_id, fusslange1=180, fusslange2=175)
    await session.commit()

    res = await _create(
        session,
        cache,
        RecordingQueue(),
        w.partner_id,
        customer_id=customer.id,
        versorgung_id=w.supply_id,
        bezahlt="Privat_offen",
    )
    assert res.matched_size == "1"
    assert res.store_type == "milling_block"


async def test_strict_mode_decrements_inside_transaction(session, cache):
    w = await seed_world(session)
    queue = RecordingQueue()

    res = await _create(
        session,
        cache,
        queue,
        w.partner_id,
        STRICT,
        customer_id=w.customer_id,
        versorgung_id=w.supply_id,
        bezahlt="Privat_offen",
    )
    assert res.reservation_pending is False
    assert JOB_INVENTORY_RESERVE not in queue.names()

    store = await session.get(Store, w.store_id)
    await session.refresh(store)
    assert store.groessen_mengen["35"]["quantity"] == 4
    row = (await session.execute(select(StoreHistory))).scalars().one()
    assert row.order_id == res.order_id
    assert row.new_stock == 4


# ---------------- 影子 Versorgung ----------------


async def _draft(session, cache, w, customer_id=None):
    key, _ = await ShadowSupplyService.create_draft(
        session,
        cache,
        partner_id=w.partner_id,
        customer_id=customer_id or w.customer_id,
        store_id=w.store_id,
        name="Maßeinlage",
        versorgung="Sport",
        material=["EVA"],
        supply_status_id=1,
    )
    return key


async def test_shadow_supply_is_promoted_and_discarded(session, cache):
    w = await seed_world(session)
    key = await _draft(session, cache, w)
    queue = RecordingQueue()

    res = await _create(
        session,
        cache,
        queue,
        w.partner_id,
        customer_id=w.customer_id,
        shadow_supply_key=key,
        bezahlt="Privat_offen",
    )
    assert res.supply_type == "private"
    assert res.matched_size == "35"
    assert (JOB_SHADOW_SUPPLY_DISCARD, {"key": key}) in queue.jobs

    order = await session.get(CustomerOrder, res.order_id)
    supply = await session.get(Supply, order.supply_id)
    assert supply.supply_type == "private"
    assert supply.customer_id == w.customer_id
    assert supply.rohling_hersteller == "Rohling Sport"
    assert supply.artikel_hersteller == "OrthoTec"


async def test_shadow_supply_of_other_customer_is_not_found(session, cache):
    w = await seed_world(session)
    other = await seed_customer(session, partner_id=w.partner_id)
    await session.commit()
    key = await _draft(session, cache, w, customer_id=other.id)

    with pytest.raises(OrderNotFound):
        await _create(
            session,
            cache,
            RecordingQueue(),
            w.partner_id,
            customer_id=w.customer_id,
            shadow_supply_key=key,
            bezahlt="Privat_offen",
        )
    assert await _count(session, Supply) == 1


async def test_shadow_supply_sizing_failure_promotes_nothing(session, cache):
    w = await seed_world(session)
    far = await seed_customer(session, partner_id=w.partner_id, fusslange1=260, fusslange2=250)
    await session.commit()
    key = await _draft(session, cache, w, customer_id=far.id)

    with pytest.raises(SizeOutOfTolerance):
        await _create(
            session,
            cache,
            RecordingQueue(),
            w.partner_id,
            customer_id=far.id,
            shadow_supply_key=key,
            bezahlt="Privat_offen",
        )
    assert await _count(session, Supply) == 1
    # 草稿仍在，可以修正后重试
    assert key in cache.data


async def test_expired_shadow_key_is_not_found(session, cache):
    w = await seed_world(session)

    with pytest.raises(OrderNotFound, match="Shadow supply"):
        await _create(
            session,
            cache,
            RecordingQueue(),
            w.partner_id,
            customer_id=w.customer_id,
            shadow_supply_key=f"deadbeef^{w.customer_id}",
            bezahlt="Privat_offen",
        )
