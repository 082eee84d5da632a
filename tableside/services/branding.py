"""
Branding: per-tenant restaurant settings and promotional posters.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tableside.core.errors import NotFound, UpstreamFailure, ValidationFailed
from tableside.models import AdminSettings, MenuItem, Poster
from tableside.services.storage import BaseImageStorage, poster_image_key
from tableside.services.store import commit_or_fail

logger = logging.getLogger(__name__)


@dataclass
class TenantSettings:
    """Settings as seen by callers, with defaults filled in."""
    restaurant_name: str
    is_ai_enabled: bool

    def to_dict(self) -> dict:
        return {"restaurant_name": self.restaurant_name, "is_ai_enabled": self.is_ai_enabled}


# =============================================================================
# ADMIN SETTINGS
# =============================================================================

async def _settings_row(session: AsyncSession, user_id: str) -> Optional[AdminSettings]:
    result = await session.execute(select(AdminSettings).where(AdminSettings.user_id == user_id))
    return result.scalar_one_or_none()


async def get_tenant_settings(session: AsyncSession, user_id: str, default_name: str) -> TenantSettings:
    """A missing settings row reads as the defaults (assistant enabled)."""
    row = await _settings_row(session, user_id)
    if row is None:
        return TenantSettings(restaurant_name=default_name, is_ai_enabled=True)
    return TenantSettings(
        restaurant_name=row.restaurant_name or default_name,
        is_ai_enabled=bool(row.is_ai_enabled),
    )


async def _upsert_settings(session: AsyncSession, user_id: str, **values) -> AdminSettings:
    row = await _settings_row(session, user_id)
    if row is None:
        row = AdminSettings(user_id=user_id, is_ai_enabled=True)
        session.add(row)
    for key, value in values.items():
        setattr(row, key, value)
    await commit_or_fail(session, "Failed to update settings")
    return row


async def update_restaurant_name(session: AsyncSession, user_id: str, name: str) -> AdminSettings:
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Name is required")
    row = await _upsert_settings(session, user_id, restaurant_name=name)
    logger.info(f"Restaurant name updated for tenant {user_id}")
    return row


async def set_ai_enabled(session: AsyncSession, user_id: str, enabled: bool) -> AdminSettings:
    row = await _upsert_settings(session, user_id, is_ai_enabled=enabled)
    logger.info(f"Assistant {'enabled' if enabled else 'disabled'} for tenant {user_id}")
    return row


# =============================================================================
# POSTERS
# =============================================================================

def serialize_poster(poster: Poster) -> dict:
    return {
        "id": poster.id,
        "title": poster.title,
        "image_url": poster.image_url,
        "is_active": poster.is_active,
        "sort_order": poster.sort_order,
        "menu_item_id": poster.menu_item_id,
        "menu_item_name": poster.menu_item.name if poster.menu_item else None,
    }


async def list_posters(session: AsyncSession, user_id: str, active_only: bool = False) -> list[Poster]:
    query = (
        select(Poster)
        .options(selectinload(Poster.menu_item))
        .where(Poster.user_id == user_id)
        .order_by(Poster.sort_order.asc(), Poster.created_at.asc())
    )
    if active_only:
        query = query.where(Poster.is_active.is_(True))
    result = await session.execute(query)
    return list(result.scalars().all())


async def list_menu_items_for_selection(session: AsyncSession, user_id: str) -> list[dict]:
    """Available items a poster can link to, by name."""
    result = await session.execute(
        select(MenuItem.id, MenuItem.name)
        .where(MenuItem.user_id == user_id, MenuItem.is_available.is_(True))
        .order_by(MenuItem.name.asc())
    )
    return [{"id": row.id, "name": row.name} for row in result.all()]


async def _get_poster(session: AsyncSession, user_id: str, poster_id: str) -> Poster:
    result = await session.execute(
        select(Poster)
        .options(selectinload(Poster.menu_item))
        .where(Poster.id == poster_id, Poster.user_id == user_id)
    )
    poster = result.scalar_one_or_none()
    if poster is None:
        raise NotFound("Poster not found")
    return poster


async def _check_menu_item(session: AsyncSession, user_id: str, menu_item_id: Optional[str]) -> Optional[str]:
    if not menu_item_id:
        return None
    result = await session.execute(
        select(MenuItem.id).where(MenuItem.id == menu_item_id, MenuItem.user_id == user_id)
    )
    if result.scalar_one_or_none() is None:
        raise NotFound("Menu item not found")
    return menu_item_id


async def create_poster(
    session: AsyncSession,
    user_id: str,
    title: str,
    image_url: str,
    menu_item_id: Optional[str] = None,
    sort_order: Optional[int] = None,
) -> Poster:
    title, image_url = (title or "").strip(), (image_url or "").strip()
    if not title or not image_url:
        raise ValidationFailed("Missing required fields")

    poster = Poster(
        user_id=user_id,
        title=title,
        image_url=image_url,
        is_active=True,
        sort_order=sort_order or 0,
        menu_item_id=await _check_menu_item(session, user_id, menu_item_id),
    )
    session.add(poster)
    await commit_or_fail(session, "Failed to create poster")
    return await _get_poster(session, user_id, poster.id)


async def update_poster(
    session: AsyncSession,
    user_id: str,
    poster_id: str,
    title: str,
    image_url: str,
    menu_item_id: Optional[str] = None,
    sort_order: Optional[int] = None,
) -> Poster:
    title, image_url = (title or "").strip(), (image_url or "").strip()
    if not title or not image_url:
        raise ValidationFailed("Missing required fields")

    poster = await _get_poster(session, user_id, poster_id)
    poster.title = title
    poster.image_url = image_url
    poster.menu_item_id = await _check_menu_item(session, user_id, menu_item_id)
    if sort_order is not None:
        poster.sort_order = sort_order
    await commit_or_fail(session, "Failed to update poster")
    return await _get_poster(session, user_id, poster_id)


async def delete_poster(session: AsyncSession, user_id: str, poster_id: str) -> None:
    poster = await _get_poster(session, user_id, poster_id)
    await session.delete(poster)
    await commit_or_fail(session, "Failed to delete poster")


async def set_poster_active(session: AsyncSession, user_id: str, poster_id: str, is_active: bool) -> Poster:
    poster = await _get_poster(session, user_id, poster_id)
    poster.is_active = is_active
    await commit_or_fail(session, "Failed to toggle poster status")
    return poster


async def upload_poster_image(
    storage: BaseImageStorage,
    filename: str,
    content: bytes,
    content_type: Optional[str] = None,
) -> str:
    """Store a poster image and return its public URL."""
    if not content:
        raise ValidationFailed("No file provided")

    stored = await storage.upload(poster_image_key(filename), content, content_type)
    if not stored.success:
        raise UpstreamFailure("Failed to upload image")
    return stored.url
