"""
Menu Service

Admin CRUD for categories and menu items, plus the customer-side
read paths: the tenant's menu for a table, list filtering, the keyword
assistant, and pairing suggestions.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.cart import Cart
from tableside.core.errors import NotFound, UpstreamFailure, ValidationFailed
from tableside.models import Category, MenuItem
from tableside.services.storage import BaseImageStorage, menu_image_key
from tableside.services.store import commit_or_fail

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "all"


@dataclass
class ImageUpload:
    filename: str
    content: bytes
    content_type: Optional[str] = None


@dataclass
class MenuItemForm:
    """Raw admin form input; ``price`` stays a string until validated."""
    name: Optional[str] = None
    price: Optional[str] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    tags: Optional[str] = None
    pairings: Optional[str] = None
    image: Optional[ImageUpload] = field(default=None, repr=False)


def split_list(raw: Optional[str]) -> list[str]:
    """Split a comma-separated form field into trimmed, non-empty values."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_price(raw: Optional[str]) -> Optional[float]:
    try:
        price = float(raw)
    except (TypeError, ValueError):
        return None
    if price != price or price < 0:  # NaN or negative
        return None
    return round(price, 2)


def serialize_item(item: MenuItem) -> dict:
    return {
        "id": item.id,
        "category_id": item.category_id,
        "name": item.name,
        "description": item.description or "",
        "price": item.price,
        "image_url": item.image_url,
        "is_available": item.is_available,
        "tags": list(item.tags or []),
        "pairings": list(item.pairings or []),
    }


# =============================================================================
# CUSTOMER FILTERING
# =============================================================================

def filter_items(
    items: Iterable[MenuItem],
    category_id: Optional[str] = None,
    search: Optional[str] = None,
) -> list[MenuItem]:
    """
    Filter the customer item list.

    Availability first, then category (``None``/``"all"`` keeps every
    category), then a case-insensitive substring match on name or
    description when a search term is given.
    """
    result = [item for item in items if item.is_available]

    if category_id and category_id != ALL_CATEGORIES:
        result = [item for item in result if item.category_id == category_id]

    if search:
        needle = search.lower()
        result = [
            item for item in result
            if needle in item.name.lower() or needle in (item.description or "").lower()
        ]

    return result


def assistant_search(items: Sequence[MenuItem], query: str) -> list[MenuItem]:
    """
    Keyword "assistant": match the query against name, description and tags.

    Plain case-insensitive substring matching, in menu order. A blank
    query matches nothing.
    """
    if not query or not query.strip():
        return []

    needle = query.lower()
    matches = []
    for item in items:
        tags = item.tags or []
        if (
            needle in item.name.lower()
            or needle in (item.description or "").lower()
            or any(needle in str(tag).lower() for tag in tags)
        ):
            matches.append(item)
    return matches


def pairing_suggestions(item: MenuItem, catalog: Sequence[MenuItem], cart: Cart) -> list[MenuItem]:
    """Available items paired with ``item`` that the cart does not hold yet."""
    pairing_ids = set(item.pairings or [])
    if not pairing_ids:
        return []
    return [
        other for other in catalog
        if other.id in pairing_ids
        and other.id != item.id
        and other.is_available
        and not cart.contains(other.id)
    ]


# =============================================================================
# CUSTOMER READS
# =============================================================================

async def list_categories(session: AsyncSession, user_id: str) -> list[Category]:
    result = await session.execute(
        select(Category)
        .where(Category.user_id == user_id)
        .order_by(Category.sort_order.asc(), Category.name.asc())
    )
    return list(result.scalars().all())


async def list_items(session: AsyncSession, user_id: str, available_only: bool = False) -> list[MenuItem]:
    query = select(MenuItem).where(MenuItem.user_id == user_id).order_by(MenuItem.name.asc())
    if available_only:
        query = query.where(MenuItem.is_available.is_(True))
    result = await session.execute(query)
    return list(result.scalars().all())


async def get_item(session: AsyncSession, user_id: str, item_id: str) -> MenuItem:
    result = await session.execute(
        select(MenuItem).where(MenuItem.id == item_id, MenuItem.user_id == user_id)
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise NotFound("Menu item not found")
    return item


# =============================================================================
# CATEGORIES
# =============================================================================

async def _get_category(session: AsyncSession, user_id: str, category_id: str) -> Category:
    result = await session.execute(
        select(Category).where(Category.id == category_id, Category.user_id == user_id)
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise NotFound("Category not found")
    return category


async def create_category(session: AsyncSession, user_id: str, name: str, sort_order: int = 0) -> Category:
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Name is required")

    category = Category(user_id=user_id, name=name, sort_order=sort_order)
    session.add(category)
    await commit_or_fail(session, "Failed to create category")
    return category


async def update_category(
    session: AsyncSession,
    user_id: str,
    category_id: str,
    name: Optional[str] = None,
    sort_order: Optional[int] = None,
) -> Category:
    category = await _get_category(session, user_id, category_id)
    if name is not None:
        if not name.strip():
            raise ValidationFailed("Name is required")
        category.name = name.strip()
    if sort_order is not None:
        category.sort_order = sort_order
    await commit_or_fail(session, "Failed to update category")
    return category


async def delete_category(session: AsyncSession, user_id: str, category_id: str) -> int:
    """
    Delete a category and every menu item in it.

    Items go first so no item is ever left pointing at a missing category.
    Returns the number of items removed.
    """
    category = await _get_category(session, user_id, category_id)

    try:
        result = await session.execute(
            delete(MenuItem).where(
                MenuItem.category_id == category.id,
                MenuItem.user_id == user_id,
            )
        )
    except SQLAlchemyError as e:
        logger.error(f"Error deleting category items: {e}")
        await session.rollback()
        raise UpstreamFailure("Failed to delete items in category") from e

    await session.delete(category)
    await commit_or_fail(session, "Failed to delete category")
    logger.info(f"Category {category_id} deleted with {result.rowcount} items")
    return result.rowcount


# =============================================================================
# MENU ITEMS
# =============================================================================

async def _store_image(storage: BaseImageStorage, image: ImageUpload) -> str:
    stored = await storage.upload(menu_image_key(image.filename), image.content, image.content_type)
    if not stored.success:
        logger.error(f"Upload error: {stored.error_message}")
        raise UpstreamFailure("Image upload failed")
    return stored.url


async def _known_item_ids(session: AsyncSession, user_id: str, ids: list[str]) -> list[str]:
    if not ids:
        return []
    result = await session.execute(
        select(MenuItem.id).where(MenuItem.user_id == user_id, MenuItem.id.in_(ids))
    )
    known = set(result.scalars().all())
    return [item_id for item_id in ids if item_id in known]


async def create_menu_item(
    session: AsyncSession,
    user_id: str,
    form: MenuItemForm,
    storage: BaseImageStorage,
) -> MenuItem:
    name = (form.name or "").strip()
    price = parse_price(form.price)
    if not name or price is None or not form.category_id:
        raise ValidationFailed("Missing required fields")

    await _get_category(session, user_id, form.category_id)

    image_url = (form.image_url or "").strip() or None
    if form.image and form.image.content:
        image_url = await _store_image(storage, form.image)

    item = MenuItem(
        user_id=user_id,
        category_id=form.category_id,
        name=name,
        description=(form.description or "").strip(),
        price=price,
        image_url=image_url,
        is_available=True,
        tags=split_list(form.tags),
        pairings=await _known_item_ids(session, user_id, split_list(form.pairings)),
    )
    session.add(item)
    await commit_or_fail(session, "Failed to create item")
    logger.info(f"Menu item '{name}' created for tenant {user_id}")
    return item


async def update_menu_item(
    session: AsyncSession,
    user_id: str,
    item_id: str,
    form: MenuItemForm,
    storage: BaseImageStorage,
) -> MenuItem:
    """
    Update an item. An uploaded file wins over a pasted URL; with neither
    the current image is kept. ``tags``/``pairings`` change only when sent.
    """
    name = (form.name or "").strip()
    price = parse_price(form.price)
    if not item_id or not name or price is None:
        raise ValidationFailed("Missing required fields")

    item = await get_item(session, user_id, item_id)

    if form.category_id and form.category_id != item.category_id:
        await _get_category(session, user_id, form.category_id)
        item.category_id = form.category_id

    item.name = name
    item.price = price
    item.description = (form.description or "").strip()

    if form.image and form.image.content:
        item.image_url = await _store_image(storage, form.image)
    elif form.image_url and form.image_url.strip():
        item.image_url = form.image_url.strip()

    if form.tags is not None:
        item.tags = split_list(form.tags)
    if form.pairings is not None:
        pairings = [p for p in split_list(form.pairings) if p != item.id]
        item.pairings = await _known_item_ids(session, user_id, pairings)

    await commit_or_fail(session, "Failed to update item")
    return item


async def toggle_availability(session: AsyncSession, user_id: str, item_id: str) -> MenuItem:
    """Flip the stored availability flag; the row itself is kept."""
    item = await get_item(session, user_id, item_id)
    item.is_available = not item.is_available
    await commit_or_fail(session, "Failed to update availability")
    logger.info(f"Menu item {item_id} is_available={item.is_available}")
    return item


async def delete_menu_item(session: AsyncSession, user_id: str, item_id: str) -> None:
    item = await get_item(session, user_id, item_id)
    await session.delete(item)
    await commit_or_fail(session, "Failed to delete item")
