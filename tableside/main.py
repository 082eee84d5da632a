"""
FastAPI Application Entry Point

Tableside Ordering - multi-tenant QR table ordering with a live kitchen board.
Runs with in-process services in development and Redis / S3 / EmailJS
everywhere else.

Endpoints:
    - /menu/{token}/...: Customer menu, assistant, cart and order placement
    - /admin/login, /admin/logout: Admin session
    - /admin/orders/...: Kitchen board snapshot, lanes, SSE stream, status, receipts
    - /admin/categories, /admin/menu-items, /admin/posters, /admin/tables, /admin/settings
    - /admin/customers, /admin/customers/export.csv, /admin/dashboard: Analytics
    - GET /health: System health check
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import quote

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.api import admin_analytics, admin_branding, admin_menu, admin_orders, admin_tables, auth, customer
from tableside.core.config import get_settings, setup_logging
from tableside.core.errors import ServiceError
from tableside.database import dispose_engine, get_db, init_db
from tableside.deps import LoginRedirect
from tableside.schemas import HealthResponse
from tableside.services.carts import get_cart_store
from tableside.services.notifications import get_receipt_notifier
from tableside.services.realtime import get_change_feed
from tableside.services.storage import get_image_storage

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")

    logger.info(f"✅ Change Feed: {get_change_feed().provider_name}")
    logger.info(f"✅ Cart Store: {get_cart_store().provider_name}")
    logger.info(f"✅ Image Storage: {get_image_storage().provider_name}")
    logger.info(f"✅ Receipt Notifier: {get_receipt_notifier().provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await get_change_feed().close()
    await dispose_engine()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Multi-tenant restaurant ordering: QR table menus, customer carts, "
        "a real-time kitchen board and back-office administration."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(customer.router)
app.include_router(auth.router)
app.include_router(admin_orders.router)
app.include_router(admin_menu.router)
app.include_router(admin_tables.router)
app.include_router(admin_branding.router)
app.include_router(admin_analytics.router)

# Locally stored images; in production image URLs point at S3 instead
Path(settings.upload_directory).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_directory), name="uploads")


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍽️ Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "login": "/admin/login",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Verify all system components are operational."""

    db_status = "healthy"
    try:
        await db.execute(select(1))
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"
        logger.error(f"Database health check failed: {e}")

    async def probe(name: str, check) -> str:
        try:
            return "healthy" if await check() else "unhealthy"
        except Exception as e:
            logger.error(f"{name} health check failed: {e}")
            return f"unhealthy: {str(e)}"

    feed_status = await probe("Change feed", get_change_feed().health_check)
    cart_status = await probe("Cart store", get_cart_store().health_check)
    storage_status = await probe("Image storage", get_image_storage().health_check)
    notifier_status = await probe("Receipt notifier", get_receipt_notifier().health_check)

    overall = "operational" if all(
        s == "healthy" for s in [db_status, feed_status, cart_status, storage_status, notifier_status]
    ) else "degraded"

    return HealthResponse(
        status=overall,
        database=db_status,
        change_feed=feed_status,
        cart_store=cart_status,
        image_storage=storage_status,
        notifier=notifier_status,
        timestamp=datetime.now(timezone.utc),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(LoginRedirect)
async def login_redirect_handler(request: Request, exc: LoginRedirect) -> RedirectResponse:
    target = "/admin/login"
    if exc.next_path:
        target += f"?next={quote(exc.next_path, safe='/')}"
    return RedirectResponse(target, status_code=303)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"error": f"{field}: {message}" if field else message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tableside.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
