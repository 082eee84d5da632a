"""
Analytics Service

Revenue and order counters over the tenant's Paid orders, the customer
list derived from them, the CSV export of that list, and the dashboard
summary.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional

import pandas as pd
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tableside.models import Order, OrderStatus, Table

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["Name", "Phone", "Total Orders", "Total Spent", "Last Visit"]


@dataclass
class PeriodTotals:
    daily: float = 0.0
    weekly: float = 0.0
    monthly: float = 0.0
    total: float = 0.0


@dataclass
class PeriodCounts:
    daily: int = 0
    weekly: int = 0
    monthly: int = 0
    total: int = 0


@dataclass
class CustomerSummary:
    name: str
    phone: str
    total_orders: int = 0
    total_spent: float = 0.0
    last_visit: Optional[datetime] = None


@dataclass
class AnalyticsReport:
    revenue: PeriodTotals = field(default_factory=PeriodTotals)
    orders: PeriodCounts = field(default_factory=PeriodCounts)
    customers: list[CustomerSummary] = field(default_factory=list)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (SQLite drops tzinfo) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def local_midnight(now: datetime, tz: tzinfo) -> datetime:
    """Start of ``now``'s calendar day in ``tz``."""
    return as_utc(now).astimezone(tz).replace(hour=0, minute=0, second=0, microsecond=0)


def aggregate(orders: list[Order], now: datetime, tz: tzinfo = timezone.utc) -> AnalyticsReport:
    """
    Fold Paid orders into period totals and per-customer summaries.

    Periods: since midnight today, since midnight seven days ago, since the
    first of the month, all time. Midnight is taken in ``tz``, the
    restaurant's zone. Customers are keyed by phone, falling back to name;
    orders with neither are counted but not listed.
    """
    start_of_day = local_midnight(now, tz)
    one_week_ago = start_of_day - timedelta(days=7)
    start_of_month = start_of_day.replace(day=1)

    report = AnalyticsReport()
    customers: dict[str, CustomerSummary] = {}

    for order in orders:
        created = as_utc(order.created_at)
        amount = order.total_amount or 0

        report.revenue.total += amount
        report.orders.total += 1
        if created >= start_of_day:
            report.revenue.daily += amount
            report.orders.daily += 1
        if created >= one_week_ago:
            report.revenue.weekly += amount
            report.orders.weekly += 1
        if created >= start_of_month:
            report.revenue.monthly += amount
            report.orders.monthly += 1

        key = order.customer_phone or order.customer_name
        if not key:
            continue
        summary = customers.setdefault(
            key,
            CustomerSummary(name=order.customer_name or "Unknown", phone=order.customer_phone or ""),
        )
        summary.total_orders += 1
        summary.total_spent += amount
        if summary.last_visit is None or created > summary.last_visit:
            summary.last_visit = created

    revenue = report.revenue
    revenue.daily, revenue.weekly = round(revenue.daily, 2), round(revenue.weekly, 2)
    revenue.monthly, revenue.total = round(revenue.monthly, 2), round(revenue.total, 2)

    for summary in customers.values():
        summary.total_spent = round(summary.total_spent, 2)

    report.customers = sorted(customers.values(), key=lambda c: c.last_visit, reverse=True)
    return report


async def get_analytics(
    session: AsyncSession,
    user_id: str,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> AnalyticsReport:
    """Analytics over the Paid orders placed at the tenant's tables."""
    result = await session.execute(
        select(Order)
        .join(Table, Order.table_id == Table.id)
        .where(Table.user_id == user_id, Order.status == OrderStatus.PAID)
        .order_by(Order.created_at.desc())
    )
    orders = list(result.scalars().all())
    return aggregate(orders, now or datetime.now(timezone.utc), tz)


def customers_csv(customers: list[CustomerSummary]) -> str:
    """Render the customer list as CSV (header row always present)."""
    df = pd.DataFrame(
        [
            {
                "Name": c.name,
                "Phone": c.phone,
                "Total Orders": c.total_orders,
                "Total Spent": f"{c.total_spent:.2f}",
                "Last Visit": c.last_visit.isoformat() if c.last_visit else "",
            }
            for c in customers
        ],
        columns=CSV_COLUMNS,
    )
    return df.to_csv(index=False)


def export_filename(today: date) -> str:
    return f"customers-{today.isoformat()}.csv"


async def dashboard_summary(
    session: AsyncSession,
    user_id: str,
    now: Optional[datetime] = None,
    tz: tzinfo = timezone.utc,
) -> dict:
    """Today's Paid revenue, active kitchen orders and table count."""
    start_of_day = local_midnight(now or datetime.now(timezone.utc), tz)

    revenue_result = await session.execute(
        select(Order.created_at, Order.total_amount).where(
            Order.user_id == user_id,
            Order.status == OrderStatus.PAID,
        )
    )
    todays_revenue = sum(
        row.total_amount or 0
        for row in revenue_result.all()
        if as_utc(row.created_at) >= start_of_day
    )

    active_result = await session.execute(
        select(func.count(Order.id)).where(
            Order.user_id == user_id,
            Order.status.in_([OrderStatus.NEW, OrderStatus.PREPARING]),
        )
    )
    tables_result = await session.execute(
        select(func.count(Table.id)).where(Table.user_id == user_id)
    )

    return {
        "todays_revenue": round(todays_revenue, 2),
        "active_orders": active_result.scalar() or 0,
        "tables": tables_result.scalar() or 0,
    }
