"""
Customer Endpoints

Everything a diner's phone calls after scanning a table QR code. The
token in the path resolves to the table, and the table to its tenant:
customers only ever see that tenant's menu.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.cart import Cart
from tableside.core.config import get_settings
from tableside.core.errors import ValidationFailed
from tableside.database import get_db
from tableside.deps import cart_slot_dependency, cart_store_dependency, feed_dependency, table_for_token
from tableside.models import Table
from tableside.schemas import (
    AssistantResponse,
    CartAddRequest,
    CartAdjustRequest,
    CartLineIn,
    CartResponse,
    CustomerMenuResponse,
    MenuItemResponse,
    OrderSubmitRequest,
    OrderSubmitResponse,
)
from tableside.services.branding import get_tenant_settings, list_posters, serialize_poster
from tableside.services.carts import BaseCartStore
from tableside.services.menu import (
    assistant_search,
    filter_items,
    get_item,
    list_categories,
    list_items,
    pairing_suggestions,
    serialize_item,
)
from tableside.services.orders import submit_order
from tableside.services.realtime import BaseChangeFeed

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/menu/{token}", tags=["Customer"])


def _cart_response(cart: Cart, suggestions: Optional[list] = None) -> CartResponse:
    return CartResponse(
        items=cart.to_list(),
        total=cart.total,
        count=cart.count,
        pairing_suggestions=[serialize_item(item) for item in suggestions or []],
    )


# =============================================================================
# MENU
# =============================================================================

@router.get("", response_model=CustomerMenuResponse, summary="Table Menu")
async def customer_menu(
    table: Table = Depends(table_for_token),
    db: AsyncSession = Depends(get_db),
) -> CustomerMenuResponse:
    """Table, branding, categories, available items and active posters."""
    tenant = await get_tenant_settings(db, table.user_id, get_settings().restaurant_name)
    categories = await list_categories(db, table.user_id)
    items = await list_items(db, table.user_id, available_only=True)
    posters = await list_posters(db, table.user_id, active_only=True)

    return CustomerMenuResponse(
        table={"id": table.id, "name": table.name},
        settings=tenant.to_dict(),
        categories=[{"id": c.id, "name": c.name, "sort_order": c.sort_order} for c in categories],
        items=[serialize_item(item) for item in items],
        posters=[serialize_poster(p) for p in posters],
    )


@router.get("/items", response_model=list[MenuItemResponse], summary="Filter Menu Items")
async def customer_items(
    category: Optional[str] = Query(None, description="Category id, or 'all'"),
    q: Optional[str] = Query(None, description="Search name or description"),
    table: Table = Depends(table_for_token),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    items = await list_items(db, table.user_id)
    return [serialize_item(item) for item in filter_items(items, category, q)]


@router.get("/assistant", response_model=AssistantResponse, summary="Menu Assistant")
async def customer_assistant(
    q: str = Query("", description="What the customer is looking for"),
    table: Table = Depends(table_for_token),
    db: AsyncSession = Depends(get_db),
) -> AssistantResponse:
    """Keyword match over the available menu; ``scroll_to`` is the first hit."""
    tenant = await get_tenant_settings(db, table.user_id, get_settings().restaurant_name)
    if not tenant.is_ai_enabled:
        return AssistantResponse(enabled=False, query=q, matches=[])

    items = await list_items(db, table.user_id, available_only=True)
    matches = [item.id for item in assistant_search(items, q)]
    return AssistantResponse(
        enabled=True,
        query=q,
        matches=matches,
        scroll_to=matches[0] if matches else None,
    )


# =============================================================================
# CART
# =============================================================================

@router.get("/cart", response_model=CartResponse, summary="Current Cart")
async def get_cart(
    slot: str = Depends(cart_slot_dependency),
    store: BaseCartStore = Depends(cart_store_dependency),
) -> CartResponse:
    return _cart_response(await store.load(slot))


@router.post("/cart/items", response_model=CartResponse, summary="Add To Cart")
async def add_to_cart(
    body: CartAddRequest,
    table: Table = Depends(table_for_token),
    slot: str = Depends(cart_slot_dependency),
    store: BaseCartStore = Depends(cart_store_dependency),
    db: AsyncSession = Depends(get_db),
) -> CartResponse:
    """
    Add one of an item. The response suggests the item's pairings that
    were not in the cart before this addition.
    """
    item = await get_item(db, table.user_id, body.item_id)
    if not item.is_available:
        raise ValidationFailed("Item is not available")

    cart = await store.load(slot)
    catalog = await list_items(db, table.user_id, available_only=True)
    suggestions = pairing_suggestions(item, catalog, cart)

    cart.add(item.id, item.name, item.price)
    await store.save(slot, cart)
    return _cart_response(cart, suggestions)


@router.patch("/cart/items/{item_id}", response_model=CartResponse, summary="Adjust Quantity")
async def adjust_cart_item(
    item_id: str,
    body: CartAdjustRequest,
    slot: str = Depends(cart_slot_dependency),
    store: BaseCartStore = Depends(cart_store_dependency),
) -> CartResponse:
    cart = await store.load(slot)
    cart.adjust(item_id, body.delta)
    await store.save(slot, cart)
    return _cart_response(cart)


@router.delete("/cart", response_model=CartResponse, summary="Empty Cart")
async def clear_cart(
    slot: str = Depends(cart_slot_dependency),
    store: BaseCartStore = Depends(cart_store_dependency),
) -> CartResponse:
    await store.clear(slot)
    return _cart_response(Cart())


# =============================================================================
# ORDERS
# =============================================================================

@router.post("/orders", response_model=OrderSubmitResponse, summary="Place Order")
async def place_order(
    body: OrderSubmitRequest,
    table: Table = Depends(table_for_token),
    slot: str = Depends(cart_slot_dependency),
    store: BaseCartStore = Depends(cart_store_dependency),
    feed: BaseChangeFeed = Depends(feed_dependency),
    db: AsyncSession = Depends(get_db),
) -> OrderSubmitResponse:
    """Order the posted items, or the stored cart when ``items`` is omitted."""
    if body.items is not None:
        lines = body.items
    else:
        cart = await store.load(slot)
        lines = [CartLineIn(id=line.id, quantity=line.quantity) for line in cart.lines]

    order = await submit_order(db, table.id, lines, body.customer, feed=feed)
    await store.clear(slot)
    return OrderSubmitResponse(order_id=order.id)
