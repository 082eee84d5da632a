"""
FastAPI dependencies shared by the routers.

Services are injected through these functions rather than imported by
handlers, so tests can override any of them with
``app.dependency_overrides``.
"""

import logging
import uuid

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.config import get_settings
from tableside.core.errors import Unauthorized
from tableside.core.security import read_session_token
from tableside.database import get_db, get_session_maker
from tableside.models import AdminUser, Table
from tableside.services.carts import BaseCartStore, cart_slot, get_cart_store
from tableside.services.notifications import BaseReceiptNotifier, get_receipt_notifier
from tableside.services.realtime import BaseChangeFeed, get_change_feed
from tableside.services.storage import BaseImageStorage, get_image_storage
from tableside.services.tables import resolve_table_by_token

logger = logging.getLogger(__name__)


class LoginRedirect(Exception):
    """Raised by HTML routes without a session; answered with a redirect."""

    def __init__(self, next_path: str = ""):
        self.next_path = next_path
        super().__init__("Login required")


# =============================================================================
# SERVICES
# =============================================================================

def feed_dependency() -> BaseChangeFeed:
    return get_change_feed()


def cart_store_dependency() -> BaseCartStore:
    return get_cart_store()


def storage_dependency() -> BaseImageStorage:
    return get_image_storage()


def notifier_dependency() -> BaseReceiptNotifier:
    return get_receipt_notifier()


# =============================================================================
# ADMIN SESSION
# =============================================================================

async def _session_admin(request: Request, db: AsyncSession) -> AdminUser | None:
    token = request.cookies.get(get_settings().session_cookie_name)
    user_id = read_session_token(token)
    if user_id is None:
        return None
    return await db.get(AdminUser, user_id)


async def get_current_admin(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AdminUser:
    """The signed-in admin (the tenant) for JSON routes."""
    admin = await _session_admin(request, db)
    if admin is None:
        raise Unauthorized()
    return admin


async def get_stream_admin(request: Request) -> AdminUser:
    """
    Admin lookup for long-lived responses.

    Uses its own session, closed before the stream starts, so an open SSE
    connection does not hold a pooled database connection.
    """
    async with get_session_maker()() as db:
        admin = await _session_admin(request, db)
    if admin is None:
        raise Unauthorized()
    return admin


async def get_page_admin(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> AdminUser:
    """Same as ``get_current_admin`` but for HTML pages: redirect to login."""
    admin = await _session_admin(request, db)
    if admin is None:
        raise LoginRedirect(request.url.path)
    return admin


# =============================================================================
# CUSTOMER CONTEXT
# =============================================================================

async def table_for_token(token: str, db: AsyncSession = Depends(get_db)) -> Table:
    return await resolve_table_by_token(db, token)


def cart_session_id(request: Request, response: Response) -> str:
    """Read the cart session cookie, issuing a new one on first visit."""
    settings = get_settings()
    session_id = request.cookies.get(settings.cart_cookie_name)
    if not session_id:
        session_id = uuid.uuid4().hex
        response.set_cookie(
            settings.cart_cookie_name,
            session_id,
            max_age=settings.cart_ttl_seconds,
            httponly=True,
            samesite="lax",
        )
    return session_id


def cart_slot_dependency(
    table: Table = Depends(table_for_token),
    session_id: str = Depends(cart_session_id),
) -> str:
    return cart_slot(table.id, session_id)
