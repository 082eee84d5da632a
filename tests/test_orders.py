import asyncio

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import SQLAlchemyError

from tableside.core.errors import NotFound, UpstreamFailure, ValidationFailed
from tableside.database import get_session_maker
from tableside.models import Order, OrderItem, OrderStatus
from tableside.schemas import CartLineIn, CustomerDetails
from tableside.services import orders as order_service
from tableside.services.realtime import INSERT, UPDATE, InMemoryChangeFeed

from conftest import run_db

CUSTOMER = CustomerDetails(name="Asha", phone="+91 98765-43210", email="asha@example.com")


async def _count_orders(session):
    return (await session.execute(select(func.count(Order.id)))).scalar()


async def _submit(session, table_id, cart, customer=CUSTOMER, feed=None):
    order = await order_service.submit_order(session, table_id, cart, customer, feed=feed)
    loaded = await order_service.load_order(session, order.user_id, order.id)
    return order_service.serialize_order(loaded)


def test_client_prices_are_ignored(tenant):
    order = run_db(_submit, tenant.table_id, [CartLineIn(id=tenant.burger_id, quantity=2, price=999)])

    assert order["total_amount"] == 100
    assert order["status"] == "New"
    assert order["version"] == 1
    assert [(i["name"], i["quantity"], i["price_at_time"]) for i in order["items"]] == [("Burger", 2, 50.0)]


def test_unknown_items_are_dropped(tenant):
    cart = [
        CartLineIn(id=tenant.burger_id, quantity=1),
        CartLineIn(id="does-not-exist", quantity=5, price=1),
        CartLineIn(id=tenant.cola_id, quantity=3),
        CartLineIn(id="also-missing"),
    ]
    order = run_db(_submit, tenant.table_id, cart)

    assert len(order["items"]) == 2
    assert order["total_amount"] == 50 + 3 * 20
    assert order["table_name"] == "T1"


def test_other_tenants_items_are_not_billed(tenant, other_tenant):
    cart = [CartLineIn(id=tenant.burger_id), CartLineIn(id=other_tenant.cola_id)]
    order = run_db(_submit, tenant.table_id, cart)

    assert [i["menu_item_id"] for i in order["items"]] == [tenant.burger_id]
    assert order["total_amount"] == 50


def test_empty_cart_creates_no_order(tenant):
    with pytest.raises(ValidationFailed, match="Cart is empty"):
        run_db(_submit, tenant.table_id, [])
    assert run_db(_count_orders) == 0


def test_unknown_table_is_rejected(tenant):
    with pytest.raises(NotFound, match="Invalid Table ID"):
        run_db(_submit, "no-such-table", [CartLineIn(id=tenant.burger_id)])


def test_failed_item_insert_leaves_no_order(tenant):
    def explode(mapper, connection, target):
        raise SQLAlchemyError("disk full")

    event.listen(OrderItem, "before_insert", explode)
    try:
        with pytest.raises(UpstreamFailure, match="Failed to place order"):
            run_db(_submit, tenant.table_id, [CartLineIn(id=tenant.burger_id)])
    finally:
        event.remove(OrderItem, "before_insert", explode)

    assert run_db(_count_orders) == 0


def test_status_updates_bump_version_and_publish(tenant):
    feed = InMemoryChangeFeed()

    async def scenario():
        async with get_session_maker()() as session, feed.subscribe(tenant.admin_id) as sub:
            order = await order_service.submit_order(
                session, tenant.table_id, [CartLineIn(id=tenant.fries_id)], CUSTOMER, feed=feed
            )
            inserted = await sub.get(timeout=1)

            updated_order = await order_service.update_order_status(
                session, tenant.admin_id, order.id, "Preparing", feed=feed
            )
            updated = await sub.get(timeout=1)
            return order, inserted, updated_order, updated

    order, inserted, updated_order, updated = asyncio.run(scenario())

    assert inserted.type == INSERT
    assert inserted.record["id"] == order.id
    assert inserted.record["user_id"] == tenant.admin_id
    assert updated.type == UPDATE
    assert updated.record["status"] == "Preparing"
    assert updated.record["version"] == 2
    assert updated_order.version == 2


def test_feed_is_scoped_to_tenant(tenant, other_tenant):
    feed = InMemoryChangeFeed()

    async def scenario():
        async with get_session_maker()() as session, feed.subscribe(other_tenant.admin_id) as sub:
            await order_service.submit_order(
                session, tenant.table_id, [CartLineIn(id=tenant.fries_id)], CUSTOMER, feed=feed
            )
            return await sub.get(timeout=0.1)

    assert asyncio.run(scenario()) is None


def test_unknown_status_is_rejected(tenant):
    order = run_db(_submit, tenant.table_id, [CartLineIn(id=tenant.burger_id)])
    with pytest.raises(ValidationFailed):
        run_db(order_service.update_order_status, tenant.admin_id, order["id"], "Eaten")


def test_other_tenant_cannot_change_status(tenant, other_tenant):
    order = run_db(_submit, tenant.table_id, [CartLineIn(id=tenant.burger_id)])
    with pytest.raises(NotFound):
        run_db(order_service.update_order_status, other_tenant.admin_id, order["id"], "Preparing")


def test_mark_paid_builds_receipt_and_link(tenant):
    cart = [CartLineIn(id=tenant.burger_id, quantity=2), CartLineIn(id=tenant.cola_id)]
    order = run_db(_submit, tenant.table_id, cart)

    paid = run_db(
        order_service.mark_order_paid, tenant.admin_id, order["id"],
        messaging_base_url="https://wa.me", currency="₹",
    )

    assert paid.order["status"] == "Paid"
    assert paid.receipt.itemized_total == paid.receipt.total == 120
    assert "• 2x Burger - ₹100.00" in paid.receipt_text
    assert "*TOTAL: ₹120.00*" in paid.receipt_text
    assert paid.whatsapp_url.startswith("https://wa.me/919876543210?text=")


def test_mark_paid_keeps_status_when_receipt_fails(tenant, monkeypatch):
    order = run_db(_submit, tenant.table_id, [CartLineIn(id=tenant.burger_id)])

    async def broken_load(*args, **kwargs):
        raise SQLAlchemyError("connection reset")

    monkeypatch.setattr(order_service, "load_order", broken_load)

    with pytest.raises(UpstreamFailure, match="receipt could not be generated"):
        run_db(
            order_service.mark_order_paid, tenant.admin_id, order["id"],
            messaging_base_url="https://wa.me", currency="₹",
        )

    async def stored_status(session):
        return (await session.execute(select(Order.status).where(Order.id == order["id"]))).scalar()

    assert run_db(stored_status) == OrderStatus.PAID


def test_no_phone_means_no_link(tenant):
    customer = CustomerDetails(name="Walk-in")
    order = run_db(_submit, tenant.table_id, [CartLineIn(id=tenant.burger_id)], customer)

    paid = run_db(
        order_service.mark_order_paid, tenant.admin_id, order["id"],
        messaging_base_url="https://wa.me", currency="₹",
    )
    assert paid.whatsapp_url is None
