"""Tables and their QR access tokens."""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.errors import NotFound, ValidationFailed
from tableside.models import Order, Table
from tableside.services.store import commit_or_fail

logger = logging.getLogger(__name__)


def menu_url(base_url: str, token: str) -> str:
    """The customer entry URL encoded in a table's QR code."""
    return f"{base_url.rstrip('/')}/menu/{token}"


async def resolve_table_by_token(session: AsyncSession, token: str) -> Table:
    """Resolve a QR token to its table (and with it, its tenant)."""
    result = await session.execute(select(Table).where(Table.token == token))
    table = result.scalar_one_or_none()
    if table is None:
        raise NotFound("Table not found")
    return table


async def get_table(session: AsyncSession, user_id: str, table_id: str) -> Table:
    result = await session.execute(
        select(Table).where(Table.id == table_id, Table.user_id == user_id)
    )
    table = result.scalar_one_or_none()
    if table is None:
        raise NotFound("Table not found")
    return table


async def list_tables(session: AsyncSession, user_id: str) -> list[Table]:
    result = await session.execute(
        select(Table).where(Table.user_id == user_id).order_by(Table.created_at.asc())
    )
    return list(result.scalars().all())


async def create_table(session: AsyncSession, user_id: str, name: str, base_url: str) -> Table:
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Name is required")

    token = uuid.uuid4().hex
    table = Table(user_id=user_id, name=name, token=token, qr_code_url=menu_url(base_url, token))
    session.add(table)
    await commit_or_fail(session, "Failed to create table")
    logger.info(f"Table '{name}' created for tenant {user_id}")
    return table


async def rename_table(session: AsyncSession, user_id: str, table_id: str, name: str) -> Table:
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Name is required")

    table = await get_table(session, user_id, table_id)
    table.name = name
    await commit_or_fail(session, "Failed to update table")
    return table


async def delete_table(session: AsyncSession, user_id: str, table_id: str) -> None:
    table = await get_table(session, user_id, table_id)
    order_count = await session.scalar(select(func.count(Order.id)).where(Order.table_id == table.id))
    if order_count:
        raise ValidationFailed("Table has orders and cannot be deleted")
    await session.delete(table)
    await commit_or_fail(session, "Failed to delete table")
    logger.info(f"Table {table_id} deleted for tenant {user_id}")
