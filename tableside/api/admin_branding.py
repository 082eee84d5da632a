"""Restaurant settings and promotional posters (admin)."""

from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.config import get_settings
from tableside.database import get_db
from tableside.deps import get_current_admin, storage_dependency
from tableside.models import AdminUser
from tableside.schemas import (
    AIToggle,
    PosterResponse,
    PosterToggle,
    PosterWrite,
    RestaurantNameUpdate,
    SettingsResponse,
)
from tableside.services.branding import (
    create_poster,
    delete_poster,
    get_tenant_settings,
    list_menu_items_for_selection,
    list_posters,
    serialize_poster,
    set_ai_enabled,
    set_poster_active,
    update_poster,
    update_restaurant_name,
    upload_poster_image,
)
from tableside.services.storage import BaseImageStorage

router = APIRouter(prefix="/admin", tags=["Branding"])


async def _settings_response(db: AsyncSession, user_id: str) -> SettingsResponse:
    tenant = await get_tenant_settings(db, user_id, get_settings().restaurant_name)
    return SettingsResponse(**tenant.to_dict())


# =============================================================================
# SETTINGS
# =============================================================================

@router.get("/settings", response_model=SettingsResponse)
async def get_restaurant_settings(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> SettingsResponse:
    return await _settings_response(db, admin.id)


@router.put("/settings/name", response_model=SettingsResponse)
async def rename_restaurant(
    body: RestaurantNameUpdate,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> SettingsResponse:
    await update_restaurant_name(db, admin.id, body.restaurant_name)
    return await _settings_response(db, admin.id)


@router.put("/settings/ai", response_model=SettingsResponse)
async def toggle_assistant(
    body: AIToggle,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> SettingsResponse:
    await set_ai_enabled(db, admin.id, body.enabled)
    return await _settings_response(db, admin.id)


# =============================================================================
# POSTERS
# =============================================================================

@router.get("/posters", response_model=list[PosterResponse])
async def get_posters(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return [serialize_poster(p) for p in await list_posters(db, admin.id)]


@router.get("/posters/menu-items")
async def poster_menu_items(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    """Items a poster can link to."""
    return await list_menu_items_for_selection(db, admin.id)


@router.post("/posters", response_model=PosterResponse, status_code=201)
async def add_poster(
    body: PosterWrite,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    poster = await create_poster(
        db, admin.id, body.title, body.image_url, body.menu_item_id, body.sort_order
    )
    return serialize_poster(poster)


@router.put("/posters/{poster_id}", response_model=PosterResponse)
async def edit_poster(
    poster_id: str,
    body: PosterWrite,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    poster = await update_poster(
        db, admin.id, poster_id, body.title, body.image_url, body.menu_item_id, body.sort_order
    )
    return serialize_poster(poster)


@router.patch("/posters/{poster_id}/active", response_model=PosterResponse)
async def toggle_poster(
    poster_id: str,
    body: PosterToggle,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return serialize_poster(await set_poster_active(db, admin.id, poster_id, body.is_active))


@router.delete("/posters/{poster_id}")
async def remove_poster(
    poster_id: str,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    await delete_poster(db, admin.id, poster_id)
    return {"success": True}


@router.post("/posters/upload")
async def upload_poster(
    file: UploadFile = File(...),
    admin: AdminUser = Depends(get_current_admin),
    storage: BaseImageStorage = Depends(storage_dependency),
) -> dict[str, Any]:
    """Store a poster image; the returned URL goes into a poster's ``image_url``."""
    url = await upload_poster_image(storage, file.filename or "poster", await file.read(), file.content_type)
    return {"success": True, "url": url}
