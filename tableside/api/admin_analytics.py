"""Analytics, customer export and the dashboard summary (admin)."""

from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.core.config import get_settings
from tableside.database import get_db
from tableside.deps import get_current_admin
from tableside.models import AdminUser
from tableside.schemas import AnalyticsResponse, DashboardResponse
from tableside.services.analytics import customers_csv, dashboard_summary, export_filename, get_analytics
from tableside.services.branding import get_tenant_settings

router = APIRouter(prefix="/admin", tags=["Analytics"])


@router.get("/customers", response_model=AnalyticsResponse)
async def customer_analytics(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> AnalyticsResponse:
    """Revenue and order counts by period, and the customer list."""
    report = await get_analytics(db, admin.id, tz=get_settings().local_timezone)
    return AnalyticsResponse(
        revenue=vars(report.revenue),
        orders=vars(report.orders),
        customers=[vars(c) for c in report.customers],
    )


@router.get("/customers/export.csv", summary="Export Customers")
async def export_customers(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> Response:
    tz = get_settings().local_timezone
    now = datetime.now(tz)
    report = await get_analytics(db, admin.id, now=now, tz=tz)
    return Response(
        content=customers_csv(report.customers),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(now.date())}"'},
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    admin: AdminUser = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> DashboardResponse:
    settings = get_settings()
    summary = await dashboard_summary(db, admin.id, tz=settings.local_timezone)
    tenant = await get_tenant_settings(db, admin.id, settings.restaurant_name)
    return DashboardResponse(**summary, settings=tenant.to_dict())
