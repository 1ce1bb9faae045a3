"""
Date window helpers shared by transactions, budgets, dashboard and analytics.

Every helper takes an explicit reference date so results are reproducible;
callers pass ``today_local()`` when no ``as_of`` was requested.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from typing import Literal

DateRange = Literal["all", "week", "month", "year"]
AnalyticsRange = Literal["week", "month", "quarter", "year"]

# Lower bound used by the "all" range
EPOCH = date(2000, 1, 1)


def add_months(value: date, delta: int) -> date:
    """Shift ``value`` by ``delta`` months, clamping the day to the target month.

    Example:
        >>> add_months(date(2025, 3, 31), -1)
        datetime.date(2025, 2, 28)
    """
    month_index = value.month - 1 + delta
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(value.day, last_day))


def start_of_month(value: date) -> date:
    return value.replace(day=1)


def end_of_month(value: date) -> date:
    return value.replace(day=calendar.monthrange(value.year, value.month)[1])


def start_of_quarter(value: date) -> date:
    first_month = 3 * ((value.month - 1) // 3) + 1
    return date(value.year, first_month, 1)


def start_of_year(value: date) -> date:
    return date(value.year, 1, 1)


def days_in_month(value: date) -> int:
    return calendar.monthrange(value.year, value.month)[1]


def iter_days(start: date, end: date):
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def iter_months(start: date, end: date):
    """Yield the first day of every month touched by ``[start, end]``."""
    current = start_of_month(start)
    while current <= end:
        yield current
        current = add_months(current, 1)


def date_range_bounds(range_name: DateRange, as_of: date) -> tuple[date, date]:
    """Bounds for the transaction list's relative ranges.

    ``week`` covers the seven days before ``as_of``; ``month`` and ``year``
    step back one calendar month/year. ``all`` starts at :data:`EPOCH`.
    """
    if range_name == "week":
        return as_of - timedelta(days=7), as_of
    if range_name == "month":
        return add_months(as_of, -1), as_of
    if range_name == "year":
        return add_months(as_of, -12), as_of
    return EPOCH, as_of


def analytics_range_start(range_name: AnalyticsRange, as_of: date) -> date:
    if range_name == "week":
        return as_of - timedelta(days=6)
    if range_name == "month":
        return start_of_month(as_of)
    if range_name == "quarter":
        return start_of_quarter(as_of)
    return start_of_year(as_of)


def analytics_period_days(range_name: AnalyticsRange, as_of: date) -> int:
    """Divisor used for the average-daily-spend figure."""
    return {
        "week": 7,
        "month": days_in_month(as_of),
        "quarter": 90,
        "year": 365,
    }[range_name]


def period_window(period: str, as_of: date) -> tuple[date, date]:
    """Calendar window of a budget period containing ``as_of``.

    Weeks run Monday through Sunday.
    """
    if period == "daily":
        return as_of, as_of
    if period == "weekly":
        start = as_of - timedelta(days=as_of.weekday())
        return start, start + timedelta(days=6)
    if period == "monthly":
        return start_of_month(as_of), end_of_month(as_of)
    if period == "yearly":
        return start_of_year(as_of), date(as_of.year, 12, 31)
    raise ValueError(f"unknown budget period: {period}")


def month_label(value: date, *, with_year: bool = False) -> str:
    return value.strftime("%b %y") if with_year else value.strftime("%b")


def day_label(value: date) -> str:
    # "Mar 5" rather than "Mar 05"
    return f"{value.strftime('%b')} {value.day}"
