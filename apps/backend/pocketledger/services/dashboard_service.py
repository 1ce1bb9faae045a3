from __future__ import annotations

import math
from collections import defaultdict
from datetime import date

from sqlalchemy.orm import Session, joinedload

from pocketledger import models
from pocketledger.core.config import settings
from pocketledger.utils import add_months, month_label
from pocketledger.utils.periods import end_of_month, iter_months, start_of_month

TREND_MONTHS = 6


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _build_monthly_stats(transactions: list[models.Transaction]) -> dict[str, float]:
    income = sum(abs(float(t.amount)) for t in transactions if t.type == models.TxnType.INCOME)
    expenses = sum(abs(float(t.amount)) for t in transactions if t.type == models.TxnType.EXPENSE)
    return {
        "monthly_income": round(income, 2),
        "monthly_expenses": round(expenses, 2),
        "net_monthly_balance": round(income - expenses, 2),
    }


def _build_category_spending(transactions: list[models.Transaction]) -> list[dict]:
    totals: dict[str, float] = defaultdict(float)
    colors: dict[str, str] = {}
    for txn in transactions:
        if txn.type != models.TxnType.EXPENSE:
            continue
        name = txn.category_name
        totals[name] += abs(float(txn.amount))
        # 카테고리별 첫 색상을 유지
        if name not in colors:
            colors[name] = (txn.category.color if txn.category else None) or models.DEFAULT_CATEGORY_COLOR

    grand_total = sum(totals.values())
    items = [
        {
            "category_name": name,
            "total_amount": round(amount, 2),
            "percentage": _round_half_up(amount / grand_total * 100) if grand_total > 0 else 0,
            "color": colors[name],
        }
        for name, amount in totals.items()
    ]
    items.sort(key=lambda item: item["total_amount"], reverse=True)
    return items


def _build_monthly_trend(transactions: list[models.Transaction], start: date, end: date) -> list[dict]:
    buckets: dict[date, dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expenses": 0.0})
    for txn in transactions:
        bucket = buckets[start_of_month(txn.date)]
        if txn.type == models.TxnType.INCOME:
            bucket["income"] += abs(float(txn.amount))
        elif txn.type == models.TxnType.EXPENSE:
            bucket["expenses"] += abs(float(txn.amount))
    # 데이터가 없는 달도 0 으로 채워 시간순으로 반환
    return [
        {
            "month": month_label(month, with_year=True),
            "income": round(buckets[month]["income"], 2) if month in buckets else 0.0,
            "expenses": round(buckets[month]["expenses"], 2) if month in buckets else 0.0,
        }
        for month in iter_months(start, end)
    ]


class DashboardService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _between(self, user_id: int, start: date, end: date) -> list[models.Transaction]:
        return (
            self.db.query(models.Transaction)
            .options(joinedload(models.Transaction.category))
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.date >= start,
                models.Transaction.date <= end,
            )
            .all()
        )

    def recent(self, user_id: int, *, limit: int | None = None) -> list[models.Transaction]:
        return (
            self.db.query(models.Transaction)
            .options(joinedload(models.Transaction.category))
            .filter(models.Transaction.user_id == user_id)
            .order_by(
                models.Transaction.date.desc(),
                models.Transaction.created_at.desc(),
                models.Transaction.id.desc(),
            )
            .limit(limit or settings.RECENT_TRANSACTIONS_LIMIT)
            .all()
        )

    def build(self, user_id: int, *, as_of: date) -> dict:
        """Current-month figures, recent rows and the six-month trend around ``as_of``."""
        month_rows = self._between(user_id, start_of_month(as_of), end_of_month(as_of))
        trend_start = add_months(as_of, -TREND_MONTHS)
        trend_rows = self._between(user_id, trend_start, as_of)
        return {
            "as_of": as_of,
            "stats": _build_monthly_stats(month_rows),
            "recent_transactions": self.recent(user_id),
            "category_spending": _build_category_spending(month_rows),
            "monthly_trend": _build_monthly_trend(trend_rows, trend_start, as_of),
        }
