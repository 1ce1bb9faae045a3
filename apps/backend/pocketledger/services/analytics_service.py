from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta

from sqlalchemy.orm import Session, joinedload

from pocketledger import models
from pocketledger.core.config import settings
from pocketledger.utils import analytics_period_days, analytics_range_start, day_label, month_label
from pocketledger.utils.periods import AnalyticsRange, iter_days, iter_months

from .budget_service import BudgetService, WARNING_THRESHOLD

LOOKBACK_DAYS = 365
WEEKDAY_ORDER = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
# date.weekday(): Monday == 0
WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def _expenses(transactions: list[models.Transaction]) -> list[models.Transaction]:
    return [t for t in transactions if t.type == models.TxnType.EXPENSE]


def _build_stats(transactions: list[models.Transaction], range_name: AnalyticsRange, as_of: date) -> dict:
    total_spent = sum(abs(float(t.amount)) for t in _expenses(transactions))
    total_income = sum(abs(float(t.amount)) for t in transactions if t.type == models.TxnType.INCOME)
    period_days = analytics_period_days(range_name, as_of)
    savings_rate = ((total_income - total_spent) / total_income) * 100 if total_income > 0 else 0.0
    return {
        "total_spent": round(total_spent, 2),
        "avg_daily": round(total_spent / period_days, 2) if period_days > 0 else 0.0,
        "transaction_count": len(transactions),
        "savings_rate": round(savings_rate, 1),
    }


def _build_category_spending(transactions: list[models.Transaction]) -> list[dict]:
    totals: dict[str, float] = defaultdict(float)
    colors: dict[str, str] = {}
    for txn in _expenses(transactions):
        name = txn.category_name
        totals[name] += abs(float(txn.amount))
        if name not in colors:
            colors[name] = (txn.category.color if txn.category else None) or models.DEFAULT_CATEGORY_COLOR
    total_spent = sum(totals.values())
    items = [
        {
            "name": name,
            "value": round(value, 2),
            "color": colors[name],
            "percentage": round(value / total_spent * 100, 2) if total_spent > 0 else 0.0,
        }
        for name, value in totals.items()
    ]
    items.sort(key=lambda item: item["value"], reverse=True)
    return items


def _build_top_transactions(transactions: list[models.Transaction], limit: int) -> list[dict]:
    ranked = sorted(_expenses(transactions), key=lambda t: abs(float(t.amount)), reverse=True)
    return [
        {
            "name": txn.description or "N/A",
            "amount": abs(float(txn.amount)),
            "category": txn.category_name,
            "date": txn.date.strftime("%b %d"),
        }
        for txn in ranked[:limit]
    ]


def _build_spending_trend(
    transactions: list[models.Transaction],
    range_name: AnalyticsRange,
    start: date,
    as_of: date,
) -> list[dict]:
    by_month = range_name in ("year", "quarter")
    label = month_label if by_month else day_label
    buckets: dict[str, dict[str, float]] = defaultdict(lambda: {"spending": 0.0, "income": 0.0})
    for txn in transactions:
        if txn.date < start or txn.date > as_of:
            continue
        bucket = buckets[label(txn.date)]
        if txn.type == models.TxnType.EXPENSE:
            bucket["spending"] += abs(float(txn.amount))
        elif txn.type == models.TxnType.INCOME:
            bucket["income"] += abs(float(txn.amount))

    steps = iter_months(start, as_of) if by_month else iter_days(start, as_of)
    points: list[dict] = []
    for step in steps:
        key = label(step)
        values = buckets.get(key, {"spending": 0.0, "income": 0.0})
        points.append({"date": key, "spending": round(values["spending"], 2), "income": round(values["income"], 2)})
    return points


def _build_weekly_comparison(transactions: list[models.Transaction], as_of: date) -> list[dict]:
    this_week_start = as_of - timedelta(days=6)
    last_week_start = as_of - timedelta(days=13)
    rows = {day: {"this_week": 0.0, "last_week": 0.0} for day in WEEKDAY_ORDER}
    for txn in _expenses(transactions):
        if txn.date < last_week_start or txn.date > as_of:
            continue
        key = "this_week" if txn.date >= this_week_start else "last_week"
        rows[WEEKDAY_NAMES[txn.date.weekday()]][key] += abs(float(txn.amount))
    return [
        {"day": day, "this_week": round(rows[day]["this_week"], 2), "last_week": round(rows[day]["last_week"], 2)}
        for day in WEEKDAY_ORDER
    ]


def _build_insights(
    range_name: AnalyticsRange,
    category_spending: list[dict],
    budget_overview: dict,
) -> list[dict]:
    insights: list[dict] = [
        {
            "id": "spending-analysis",
            "title": "Spending Analysis",
            "description": f"Data shown for the last {range_name}.",
            "change": "",
            "severity": "info",
        }
    ]

    if budget_overview["total_budget"] > 0:
        usage = budget_overview["overall_percentage"]
        insights.append(
            {
                "id": "budget-goal",
                "title": "Budget Goal",
                "description": f"You've used {usage:.0f}% of your active budgets.",
                "change": f"{usage:.0f}%",
                "severity": "warning" if usage >= WARNING_THRESHOLD else "positive",
            }
        )
    else:
        insights.append(
            {
                "id": "budget-goal",
                "title": "Budget Goal",
                "description": "No active budgets yet. Add one to track your spending goal.",
                "change": "",
                "severity": "info",
            }
        )

    top = category_spending[0]["name"] if category_spending else "N/A"
    insights.append(
        {
            "id": "top-category",
            "title": "Top Category",
            "description": f"{top} is your largest expense.",
            "change": "",
            "severity": "info",
        }
    )
    return insights


class AnalyticsService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def source_rows(self, user_id: int, as_of: date) -> list[models.Transaction]:
        """The user's transactions of the last year up to ``as_of``, newest first."""
        return (
            self.db.query(models.Transaction)
            .options(joinedload(models.Transaction.category))
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.date >= as_of - timedelta(days=LOOKBACK_DAYS),
                models.Transaction.date <= as_of,
            )
            .order_by(models.Transaction.date.desc(), models.Transaction.id.desc())
            .all()
        )

    def build(self, user_id: int, *, range_name: AnalyticsRange, as_of: date) -> dict:
        rows = self.source_rows(user_id, as_of)
        start = analytics_range_start(range_name, as_of)
        in_range = [t for t in rows if t.date >= start]
        category_spending = _build_category_spending(in_range)
        budget_overview = BudgetService(self.db).overview(user_id, as_of=as_of)
        return {
            "range": range_name,
            "as_of": as_of,
            "start": start,
            "stats": _build_stats(in_range, range_name, as_of),
            "category_spending": category_spending,
            "top_transactions": _build_top_transactions(in_range, settings.TOP_TRANSACTIONS_LIMIT),
            "spending_trend": _build_spending_trend(rows, range_name, start, as_of),
            "weekly_comparison": _build_weekly_comparison(rows, as_of),
            "insights": _build_insights(range_name, category_spending, budget_overview),
        }
