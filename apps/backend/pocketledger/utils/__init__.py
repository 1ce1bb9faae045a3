"""
Utils 패키지
"""

from .periods import (
    add_months,
    analytics_period_days,
    analytics_range_start,
    date_range_bounds,
    day_label,
    month_label,
    period_window,
)
from .text import normalize_email, normalize_search

__all__ = [
    "add_months",
    "analytics_period_days",
    "analytics_range_start",
    "date_range_bounds",
    "day_label",
    "month_label",
    "period_window",
    "normalize_email",
    "normalize_search",
]
