"""Tables and their QR links (admin)."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.config import get_settings
from tableside.database import get_db
from tableside.deps import get_current_admin
from tableside.models import AdminUser
from tableside.schemas import TableCreate, TableResponse
from tableside.services.tables import create_table, delete_table, list_tables, rename_table

router = APIRouter(prefix="/admin/tables", tags=["Tables"])


@router.get("", response_model=list[TableResponse])
async def get_tables(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await list_tables(db, admin.id)


@router.post("", response_model=TableResponse, status_code=201)
async def add_table(
    body: TableCreate,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a table with a fresh access token and its menu URL."""
    return await create_table(db, admin.id, body.name, get_settings().app_base_url)


@router.patch("/{table_id}", response_model=TableResponse)
async def edit_table(
    table_id: str,
    body: TableCreate,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return await rename_table(db, admin.id, table_id, body.name)


@router.delete("/{table_id}")
async def remove_table(
    table_id: str,
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> dict[str, bool]:
    await delete_table(db, admin.id, table_id)
    return {"success": True}
