"""
Kitchen Endpoints

Order snapshot, server-computed lanes, the live change stream, status
changes, mark-as-paid and the receipt hand-offs. Every route is scoped to
the signed-in admin's tenant.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import HTMLResponse, StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.api import templates
from tableside.board import KitchenBoard, group_lanes
from tableside.core.config import get_settings
from tableside.core.errors import UpstreamFailure, ValidationFailed
from tableside.database import get_db
from tableside.deps import (
    feed_dependency,
    get_current_admin,
    get_page_admin,
    get_stream_admin,
    notifier_dependency,
)
from tableside.models import AdminUser
from tableside.schemas import MarkPaidResponse, OrderResponse, StatusUpdateRequest
from tableside.services.branding import get_tenant_settings
from tableside.services.notifications import BaseReceiptNotifier
from tableside.services.orders import (
    list_board_orders,
    list_orders,
    load_order,
    mark_order_paid,
    parse_status,
    serialize_order,
    update_order_status,
)
from tableside.services.realtime import BaseChangeFeed, ChangeEvent
from tableside.services.receipts import build_receipt, format_money, receipt_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/orders", tags=["Kitchen"])


def format_sse(event: ChangeEvent, seq: int) -> str:
    return f"event: {event.type}\nid: {seq}\ndata: {event.to_json()}\n\n"


# =============================================================================
# SNAPSHOT & LANES
# =============================================================================

@router.get("", response_model=list[OrderResponse], summary="List Orders")
async def get_orders(
    status: Optional[str] = Query(None, description="Comma-separated statuses"),
    limit: int = Query(200, ge=1, le=500),
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> list[dict[str, Any]]:
    """Joined orders (table name, line items), newest first."""
    statuses = [parse_status(s.strip()) for s in status.split(",") if s.strip()] if status else None
    orders = await list_orders(db, admin.id, statuses=statuses, limit=limit)
    return [serialize_order(order) for order in orders]


@router.get("/board", summary="Kitchen Board Lanes")
async def get_board(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    orders = [serialize_order(order) for order in await list_board_orders(db, admin.id)]
    for order in orders:
        order["actions"] = KitchenBoard.actions_for(order)
    return {"lanes": group_lanes(orders)}


@router.get(
    "/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
    summary="Order Change Stream",
)
async def stream_orders(
    request: Request,
    admin: AdminUser = Depends(get_stream_admin),
    feed: BaseChangeFeed = Depends(feed_dependency),
    last_event_id: Optional[str] = Header(None, alias="Last-Event-ID"),
) -> StreamingResponse:
    """
    Server-Sent Events for the tenant's ``orders`` rows.

    Each change is sent as ``event: INSERT`` or ``event: UPDATE`` with an
    increasing ``id``; comment lines keep idle connections open. Clients
    reconcile by order id and version, so no history is replayed.
    """
    tenant_id = admin.id
    keepalive = get_settings().keepalive_seconds
    seq = int(last_event_id) + 1 if last_event_id and last_event_id.isdigit() else 1

    async def event_gen() -> AsyncIterator[str]:
        nonlocal seq
        async with feed.subscribe(tenant_id) as subscription:
            logger.info(f"Kitchen stream opened for tenant {tenant_id}")
            yield ":connected\n\n"
            try:
                while not await request.is_disconnected():
                    event = await subscription.get(timeout=keepalive)
                    if event is None:
                        yield ":keepalive\n\n"
                        continue
                    yield format_sse(event, seq)
                    seq += 1
            except asyncio.CancelledError:
                logger.debug(f"Kitchen stream cancelled for tenant {tenant_id}")
                raise
            finally:
                logger.info(f"Kitchen stream closed for tenant {tenant_id}")

    return StreamingResponse(
        event_gen(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/{order_id}", response_model=OrderResponse, summary="Get Order")
async def get_order(
    order_id: str,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    return serialize_order(await load_order(db, admin.id, order_id))


# =============================================================================
# LIFECYCLE
# =============================================================================

@router.patch("/{order_id}/status", summary="Update Order Status")
async def change_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    admin: AdminUser = Depends(get_current_admin),
    feed: BaseChangeFeed = Depends(feed_dependency),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    order = await update_order_status(db, admin.id, order_id, body.status, feed=feed)
    return {
        "success": True,
        "id": order.id,
        "status": order.status.value,
        "version": order.version,
    }


@router.post("/{order_id}/paid", response_model=MarkPaidResponse, summary="Mark As Paid")
async def mark_paid(
    order_id: str,
    admin: AdminUser = Depends(get_current_admin),
    feed: BaseChangeFeed = Depends(feed_dependency),
    db: AsyncSession = Depends(get_db),
) -> MarkPaidResponse:
    """Settle the order and return the receipt text and messaging deep link."""
    settings = get_settings()
    paid = await mark_order_paid(
        db,
        admin.id,
        order_id,
        messaging_base_url=settings.messaging_base_url,
        currency=settings.currency_symbol,
        feed=feed,
    )
    return MarkPaidResponse(
        whatsapp_url=paid.whatsapp_url,
        receipt_text=paid.receipt_text,
        order=paid.order,
    )


# =============================================================================
# RECEIPTS
# =============================================================================

@router.post("/{order_id}/receipt/email", summary="Email Receipt")
async def email_receipt(
    order_id: str,
    admin: AdminUser = Depends(get_current_admin),
    notifier: BaseReceiptNotifier = Depends(notifier_dependency),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    receipt = build_receipt(serialize_order(await load_order(db, admin.id, order_id)))
    email = receipt_email(receipt, datetime.now(timezone.utc))
    if email is None:
        raise ValidationFailed("Order has no customer email")

    result = await notifier.send_receipt_email(email)
    if not result.success:
        raise UpstreamFailure(result.error_message or "Failed to send receipt email")

    return {"success": True, "provider": result.provider, "message_id": result.message_id}


@router.get("/{order_id}/print", response_class=HTMLResponse, summary="Printable Receipt")
async def print_receipt(
    request: Request,
    order_id: str,
    admin: AdminUser = Depends(get_page_admin),
    db: AsyncSession = Depends(get_db),
) -> HTMLResponse:
    settings = get_settings()
    receipt = build_receipt(serialize_order(await load_order(db, admin.id, order_id)))
    tenant = await get_tenant_settings(db, admin.id, settings.restaurant_name)

    return templates.TemplateResponse(
        request,
        "receipt.html",
        {
            "receipt": receipt,
            "restaurant_name": tenant.restaurant_name,
            "money": lambda amount: format_money(amount, settings.currency_symbol),
        },
    )
