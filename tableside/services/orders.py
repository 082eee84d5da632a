"""
Order Service

Order submission from a table and the admin-driven status lifecycle:

    New ──► Preparing ──► Completed ──► Paid
     └────► Rejected

Every committed change is announced on the tenant's change feed so open
kitchen boards update without polling.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tableside.core.errors import NotFound, UpstreamFailure, ValidationFailed
from tableside.models import BOARD_LANES, MenuItem, Order, OrderItem, OrderStatus, Table, new_id
from tableside.schemas import CartLineIn, CustomerDetails
from tableside.services.realtime import INSERT, UPDATE, BaseChangeFeed, ChangeEvent
from tableside.services.receipts import Receipt, build_receipt, format_receipt_message, messaging_link
from tableside.services.store import commit_or_fail

logger = logging.getLogger(__name__)


@dataclass
class PaidOrder:
    """Outcome of mark-as-paid: the joined order and its receipt hand-off."""
    order: dict[str, Any]
    receipt: Receipt
    receipt_text: str
    whatsapp_url: Optional[str]


# =============================================================================
# SERIALIZATION
# =============================================================================

def order_row(order: Order) -> dict[str, Any]:
    """The raw order columns, as carried by an INSERT change event."""
    return {
        "id": order.id,
        "table_id": order.table_id,
        "user_id": order.user_id,
        "customer_name": order.customer_name,
        "customer_phone": order.customer_phone,
        "customer_email": order.customer_email,
        "total_amount": order.total_amount,
        "status": order.status.value,
        "version": order.version,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def serialize_order(order: Order) -> dict[str, Any]:
    """An order joined with its table name and line items (names included)."""
    data = order_row(order)
    data.pop("user_id")
    data["table_name"] = order.table.name if order.table else None
    data["items"] = [
        {
            "menu_item_id": line.menu_item_id,
            "name": line.menu_item.name if line.menu_item else "Unknown Item",
            "quantity": line.quantity,
            "price_at_time": line.price_at_time,
            "subtotal": line.subtotal,
        }
        for line in order.items
    ]
    return data


def _joined():
    return (
        selectinload(Order.table),
        selectinload(Order.items).selectinload(OrderItem.menu_item),
    )


async def _publish(feed: Optional[BaseChangeFeed], tenant_id: str, event: ChangeEvent) -> None:
    """Announce a committed change; a feed outage never fails the write."""
    if feed is None:
        return
    try:
        await feed.publish(tenant_id, event)
    except Exception as e:
        logger.warning(f"Change feed publish failed ({event.type} {event.order_id}): {e}")


# =============================================================================
# READS
# =============================================================================

async def load_order(session: AsyncSession, user_id: str, order_id: str) -> Order:
    """Fetch one of the tenant's orders with table and line items joined."""
    result = await session.execute(
        select(Order)
        .options(*_joined())
        .where(Order.id == order_id, Order.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFound("Order not found")
    return order


async def list_orders(
    session: AsyncSession,
    user_id: str,
    statuses: Optional[Sequence[OrderStatus]] = None,
    limit: int = 200,
) -> list[Order]:
    """The tenant's orders, newest first, joined for the kitchen board."""
    query = (
        select(Order)
        .options(*_joined())
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
        .limit(limit)
    )
    if statuses:
        query = query.where(Order.status.in_(list(statuses)))
    result = await session.execute(query)
    return list(result.scalars().all())


async def list_board_orders(session: AsyncSession, user_id: str) -> list[Order]:
    return await list_orders(session, user_id, statuses=BOARD_LANES)


# =============================================================================
# SUBMISSION
# =============================================================================

async def submit_order(
    session: AsyncSession,
    table_id: str,
    cart: Sequence[CartLineIn],
    customer: CustomerDetails,
    feed: Optional[BaseChangeFeed] = None,
) -> Order:
    """
    Place an order for ``table_id``.

    Prices come from the table owner's menu, never from the cart. Cart
    entries whose item no longer exists are dropped. The order and its
    lines are written in one transaction: either both exist or neither.
    """
    if not cart:
        raise ValidationFailed("Cart is empty")

    table = await session.get(Table, table_id)
    if table is None:
        raise NotFound("Invalid Table ID")

    item_ids = list({line.id for line in cart})
    result = await session.execute(
        select(MenuItem.id, MenuItem.price).where(
            MenuItem.id.in_(item_ids),
            MenuItem.user_id == table.user_id,
        )
    )
    prices = {row.id: row.price for row in result.all()}

    total = 0.0
    lines = []
    for entry in cart:
        price = prices.get(entry.id)
        if price is None:
            logger.info(f"Dropping unknown item {entry.id} from order for table {table.id}")
            continue
        quantity = entry.quantity or 1
        total += price * quantity
        lines.append((entry.id, quantity, price))

    order = Order(
        id=new_id(),
        table_id=table.id,
        user_id=table.user_id,
        customer_name=customer.name,
        customer_phone=customer.phone,
        customer_email=customer.email,
        total_amount=round(total, 2),
        status=OrderStatus.NEW,
        version=1,
    )
    session.add(order)
    for position, (menu_item_id, quantity, price) in enumerate(lines):
        session.add(
            OrderItem(
                order_id=order.id,
                menu_item_id=menu_item_id,
                position=position,
                quantity=quantity,
                price_at_time=price,
            )
        )

    await commit_or_fail(session, "Failed to place order")
    logger.info(
        f"Order #{order.short_id} placed at table '{table.name}': "
        f"{len(lines)} lines, total {order.total_amount:.2f}"
    )

    await _publish(feed, table.user_id, ChangeEvent(type=INSERT, record=order_row(order)))
    return order


# =============================================================================
# LIFECYCLE
# =============================================================================

def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationFailed(
            f"Invalid status. Options: {[s.value for s in OrderStatus]}"
        )


async def update_order_status(
    session: AsyncSession,
    user_id: str,
    order_id: str,
    status: str | OrderStatus,
    feed: Optional[BaseChangeFeed] = None,
) -> Order:
    """
    Move an order to ``status`` and bump its version.

    The target must be a known status; which transition staff take is
    their call (see ``NEXT_STATUSES`` for what the board offers).
    """
    new_status = status if isinstance(status, OrderStatus) else parse_status(status)

    result = await session.execute(
        select(Order).where(Order.id == order_id, Order.user_id == user_id)
    )
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFound("Order not found")

    previous = order.status
    order.status = new_status
    order.version = (order.version or 1) + 1
    order.updated_at = datetime.now(timezone.utc)
    await commit_or_fail(session, "Failed to update order")

    logger.info(f"Order #{order.short_id}: {previous.value} -> {new_status.value} (v{order.version})")

    await _publish(
        feed,
        user_id,
        ChangeEvent(
            type=UPDATE,
            record={
                "id": order.id,
                "status": order.status.value,
                "version": order.version,
                "updated_at": order.updated_at,
            },
        ),
    )
    return order


async def mark_order_paid(
    session: AsyncSession,
    user_id: str,
    order_id: str,
    messaging_base_url: str,
    currency: str,
    feed: Optional[BaseChangeFeed] = None,
) -> PaidOrder:
    """
    Settle an order and prepare its receipt hand-off.

    The Paid status is committed first. If reading the order back or
    composing the receipt then fails, the order stays Paid and the caller
    gets an ``UpstreamFailure``. Nothing is sent from here: the returned
    deep link is opened by the client.
    """
    await update_order_status(session, user_id, order_id, OrderStatus.PAID, feed=feed)

    try:
        order = await load_order(session, user_id, order_id)
        data = serialize_order(order)
        receipt = build_receipt(data)
        text = format_receipt_message(receipt, currency)
    except (SQLAlchemyError, NotFound, KeyError, ValueError) as e:
        logger.error(f"Order {order_id} is Paid but its receipt failed: {e}")
        raise UpstreamFailure("Order marked as paid but receipt could not be generated") from e

    return PaidOrder(
        order=data,
        receipt=receipt,
        receipt_text=text,
        whatsapp_url=messaging_link(messaging_base_url, receipt.customer_phone, text),
    )
