"""Categories and menu items (admin)."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.database import get_db
from tableside.deps import get_current_admin, storage_dependency
from tableside.models import AdminUser
from tableside.schemas import CategoryCreate, CategoryResponse, CategoryUpdate, MenuItemResponse
from tableside.services.menu import (
    ImageUpload,
    MenuItemForm,
    create_category,
    create_menu_item,
    delete_category,
    delete_menu_item,
    list_categories,
    list_items,
    serialize_item,
    toggle_availability,
    update_category,
    update_menu_item,
)
from tableside.services.storage import BaseImageStorage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Menu"])


async def _read_upload(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    if image is None or not image.filename:
        return None
    content = await image.read()
    if not content:
        return None
    return ImageUpload(filename=image.filename, content=content, content_type=image.content_type)


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/categories", response_model=list[CategoryResponse])
async def get_categories(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await list_categories(db, admin.id)


@router.post("/categories", response_model=CategoryResponse, status_code=201)
async def add_category(
    body: CategoryCreate,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await create_category(db, admin.id, body.name, body.sort_order)


@router.patch("/categories/{category_id}", response_model=CategoryResponse)
async def edit_category(
    category_id: str,
    body: CategoryUpdate,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await update_category(db, admin.id, category_id, name=body.name, sort_order=body.sort_order)


@router.delete("/categories/{category_id}")
async def remove_category(
    category_id: str,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Delete a category together with all of its menu items."""
    deleted = await delete_category(db, admin.id, category_id)
    return {"success": True, "deleted_items": deleted}


# =============================================================================
# MENU ITEMS
# =============================================================================

@router.get("/menu-items", response_model=list[MenuItemResponse])
async def get_menu_items(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    """Every item, grouped in category display order."""
    position = {c.id: i for i, c in enumerate(await list_categories(db, admin.id))}
    items = await list_items(db, admin.id)
    items.sort(key=lambda item: position.get(item.category_id, len(position)))
    return [serialize_item(item) for item in items]


@router.post("/menu-items", response_model=MenuItemResponse, status_code=201)
async def add_menu_item(
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image_url: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    pairings: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: AdminUser = Depends(get_current_admin),
    storage: BaseImageStorage = Depends(storage_dependency),
    db: AsyncSession = Depends(get_db),
) -> dict:
    form = MenuItemForm(
        name=name,
        price=price,
        category_id=category_id,
        description=description,
        image_url=image_url,
        tags=tags,
        pairings=pairings,
        image=await _read_upload(image),
    )
    item = await create_menu_item(db, admin.id, form, storage)
    return serialize_item(item)


@router.put("/menu-items/{item_id}", response_model=MenuItemResponse)
async def edit_menu_item(
    item_id: str,
    name: Optional[str] = Form(None),
    price: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    image_url: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    pairings: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    admin: AdminUser = Depends(get_current_admin),
    storage: BaseImageStorage = Depends(storage_dependency),
    db: AsyncSession = Depends(get_db),
) -> dict:
    form = MenuItemForm(
        name=name,
        price=price,
        category_id=category_id,
        description=description,
        image_url=image_url,
        tags=tags,
        pairings=pairings,
        image=await _read_upload(image),
    )
    item = await update_menu_item(db, admin.id, item_id, form, storage)
    return serialize_item(item)


@router.patch("/menu-items/{item_id}/availability", response_model=MenuItemResponse)
async def flip_availability(
    item_id: str,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return serialize_item(await toggle_availability(db, admin.id, item_id))


@router.delete("/menu-items/{item_id}")
async def remove_menu_item(
    item_id: str,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    await delete_menu_item(db, admin.id, item_id)
    return {"success": True}
