from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from tableside.core.config import Settings
from tableside.models import Order, OrderStatus
from tableside.services.analytics import CSV_COLUMNS, aggregate, customers_csv, export_filename, local_midnight

NOW = datetime(2026, 10, 19, 15, 0, tzinfo=timezone.utc)


def _paid(amount, created_at, name="Asha", phone="911111111111"):
    return Order(
        id=f"o-{amount}-{created_at.isoformat()}",
        table_id="t1",
        user_id="u1",
        customer_name=name,
        customer_phone=phone,
        total_amount=amount,
        status=OrderStatus.PAID,
        version=4,
        created_at=created_at,
    )


def test_period_buckets():
    orders = [
        _paid(100, NOW - timedelta(hours=1)),
        _paid(50, NOW - timedelta(days=3)),
        _paid(25, NOW.replace(day=1, hour=1)),
        _paid(10, NOW - timedelta(days=60)),
    ]
    report = aggregate(orders, NOW)

    assert (report.revenue.daily, report.revenue.weekly, report.revenue.monthly, report.revenue.total) == (
        100, 150, 175, 185,
    )
    assert (report.orders.daily, report.orders.weekly, report.orders.monthly, report.orders.total) == (1, 2, 3, 4)


def test_customers_keyed_by_phone_then_name():
    orders = [
        _paid(100, NOW - timedelta(days=2), name="Asha", phone="911"),
        _paid(40, NOW - timedelta(hours=2), name="Asha R", phone="911"),
        _paid(30, NOW - timedelta(days=1), name="Ravi", phone=None),
        _paid(20, NOW - timedelta(days=5), name="Ravi", phone=None),
    ]
    customers = aggregate(orders, NOW).customers

    assert [(c.name, c.total_orders, c.total_spent) for c in customers] == [
        ("Asha", 2, 140),
        ("Ravi", 2, 50),
    ]
    assert customers[0].last_visit == NOW - timedelta(hours=2)


def test_naive_timestamps_are_treated_as_utc():
    naive = (NOW - timedelta(hours=1)).replace(tzinfo=None)
    report = aggregate([_paid(10, naive)], NOW)
    assert report.revenue.daily == 10


def test_csv_has_header_even_without_customers():
    assert customers_csv([]).strip() == ",".join(CSV_COLUMNS)


def test_export_filename():
    assert export_filename(date(2026, 1, 9)) == "customers-2026-01-09.csv"


def test_day_starts_at_restaurant_midnight():
    kolkata = ZoneInfo("Asia/Kolkata")
    # 01:30 on the 19th in Kolkata, still the 18th in UTC
    after_local_midnight = datetime(2026, 10, 18, 20, 0, tzinfo=timezone.utc)

    assert aggregate([_paid(10, after_local_midnight)], NOW).orders.daily == 0
    assert aggregate([_paid(10, after_local_midnight)], NOW, kolkata).orders.daily == 1


def test_periods_follow_zone_west_of_utc():
    los_angeles = ZoneInfo("America/Los_Angeles")
    # 20:00 on the 18th in Los Angeles
    yesterday_locally = datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)
    # 18:00 on 30 September in Los Angeles
    last_month_locally = datetime(2026, 10, 1, 1, 0, tzinfo=timezone.utc)

    report = aggregate([_paid(10, yesterday_locally), _paid(5, last_month_locally)], NOW, los_angeles)
    assert (report.orders.daily, report.orders.monthly, report.orders.total) == (0, 1, 2)
    assert report.revenue.monthly == 10


def test_local_midnight():
    midnight = local_midnight(NOW, ZoneInfo("Asia/Kolkata"))
    assert midnight == datetime(2026, 10, 18, 18, 30, tzinfo=timezone.utc)
    assert local_midnight(NOW.replace(tzinfo=None), timezone.utc) == datetime(2026, 10, 19, tzinfo=timezone.utc)


def test_order_counts_are_integers():
    report = aggregate([_paid(12.5, NOW - timedelta(hours=1))], NOW)
    assert type(report.orders.daily) is int
    assert report.revenue.daily == 12.5


def test_unknown_timezone_is_rejected():
    with pytest.raises(ValidationError, match="Unknown timezone"):
        Settings(restaurant_timezone="Mars/Olympus_Mons")
    assert Settings(restaurant_timezone="Asia/Kolkata").local_timezone == ZoneInfo("Asia/Kolkata")
