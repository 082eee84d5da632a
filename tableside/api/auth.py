"""Admin login and logout."""

import logging
from typing import Any, Optional
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.api import templates
from tableside.core.config import get_settings
from tableside.core.errors import Unauthorized, ValidationFailed
from tableside.core.security import create_session_token, verify_password
from tableside.database import get_db
from tableside.deps import get_current_admin
from tableside.models import AdminUser
from tableside.schemas import LoginRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Auth"])

DEFAULT_NEXT = "/admin/dashboard"


async def _read_credentials(request: Request) -> tuple[LoginRequest, bool]:
    """Parse a JSON or form login body. Returns the credentials and whether it was a form."""
    is_json = request.headers.get("content-type", "").startswith("application/json")
    try:
        if is_json:
            payload: Any = await request.json()
        else:
            payload = dict(await request.form())
        return LoginRequest.model_validate(payload), not is_json
    except (ValidationError, ValueError):
        raise ValidationFailed("Email and password are required")


def safe_next_path(target: Any) -> str:
    """
    Where to send the admin after a form login.

    Only a path on this site is accepted. Anything with a scheme or host
    falls back to the dashboard, as do protocol-relative forms with a
    doubled or back slash, and paths with control characters or whitespace
    (browsers drop those, which can turn `/<tab>/host` into `//host`).
    """
    if not isinstance(target, str) or not target.startswith("/"):
        return DEFAULT_NEXT
    if target.startswith(("//", "/\\")) or any(ch.isspace() or ord(ch) < 32 for ch in target):
        return DEFAULT_NEXT
    parts = urlsplit(target)
    if parts.scheme or parts.netloc:
        return DEFAULT_NEXT
    return target


def _set_session_cookie(response, admin: AdminUser) -> None:
    settings = get_settings()
    response.set_cookie(
        settings.session_cookie_name,
        create_session_token(admin.id, admin.email),
        max_age=settings.session_max_age_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


@router.get("/login", response_class=HTMLResponse, summary="Login Page")
async def login_page(request: Request, next: Optional[str] = None) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {"app_name": get_settings().app_name, "next": safe_next_path(next)},
    )


@router.post("/login", summary="Sign In")
async def login(request: Request, db: AsyncSession = Depends(get_db)):
    credentials, from_form = await _read_credentials(request)
    email = credentials.email.strip().lower()

    result = await db.execute(select(AdminUser).where(AdminUser.email == email))
    admin = result.scalar_one_or_none()
    if admin is None or not verify_password(credentials.password, admin.password_hash):
        logger.warning(f"Failed login for {email}")
        raise Unauthorized("Invalid email or password")

    logger.info(f"Admin {email} signed in")

    if from_form:
        form = await request.form()
        response = RedirectResponse(safe_next_path(form.get("next")), status_code=303)
    else:
        response = JSONResponse({"success": True, "user": {"id": admin.id, "email": admin.email}})

    _set_session_cookie(response, admin)
    return response


@router.post("/logout", summary="Sign Out")
async def logout() -> JSONResponse:
    response = JSONResponse({"success": True})
    response.delete_cookie(get_settings().session_cookie_name)
    return response


@router.get("/me", summary="Current Admin")
async def current_admin(admin: AdminUser = Depends(get_current_admin)) -> dict[str, str]:
    return {"id": admin.id, "email": admin.email}
