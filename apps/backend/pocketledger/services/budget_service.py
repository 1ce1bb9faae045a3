from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from pocketledger import models
from pocketledger.utils import period_window

from .errors import ConflictError, NotFoundError, ServiceError

logger = logging.getLogger(__name__)

DUPLICATE_BUDGET = "A budget for this category already exists."
WARNING_THRESHOLD = 80.0
EXCEEDED_THRESHOLD = 100.0


def budget_status(percentage: float) -> str:
    if percentage >= EXCEEDED_THRESHOLD:
        return "exceeded"
    if percentage >= WARNING_THRESHOLD:
        return "warning"
    return "good"


def budget_window(budget: models.Budget, as_of: date) -> tuple[date, date]:
    """Period window of ``budget`` used for spending, clipped to its lifetime.

    After ``end_date`` the last window is reported; before ``start_date`` the
    first one.
    """
    reference = as_of
    if budget.end_date and reference > budget.end_date:
        reference = budget.end_date
    if reference < budget.start_date:
        reference = budget.start_date
    start, end = period_window(budget.period.value, reference)
    start = max(start, budget.start_date)
    if budget.end_date:
        end = min(end, budget.end_date)
    return start, end


class BudgetService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_all(
        self,
        *,
        user_id: int,
        period: Optional[models.BudgetPeriod] = None,
        active_only: bool = False,
    ) -> list[models.Budget]:
        q = (
            self.db.query(models.Budget)
            .options(joinedload(models.Budget.category))
            .filter(models.Budget.user_id == user_id)
        )
        if period is not None:
            q = q.filter(models.Budget.period == period)
        if active_only:
            q = q.filter(models.Budget.is_active.is_(True))
        return q.order_by(models.Budget.id).all()

    def get_by_id(self, user_id: int, budget_id: int) -> models.Budget:
        row = (
            self.db.query(models.Budget)
            .filter(models.Budget.user_id == user_id, models.Budget.id == budget_id)
            .first()
        )
        if not row:
            raise NotFoundError("Budget not found")
        return row

    def create(self, payload: dict, *, user_id: int) -> models.Budget:
        self._validate_category(user_id, payload["category_id"])
        period = payload.get("period") or models.BudgetPeriod.MONTHLY
        self._ensure_unique(user_id, payload["category_id"], period)
        if payload.get("start_date") is None:
            # 기본 시작일: 오늘이 속한 기간의 첫날
            payload["start_date"] = period_window(period.value, models.today_local())[0]
        if payload.get("end_date") and payload["end_date"] < payload["start_date"]:
            raise ServiceError("end_date must be on or after start_date")
        row = models.Budget(user_id=user_id, **{**payload, "period": period})
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("budget created user_id=%s budget_id=%s amount=%s", user_id, row.id, row.amount)
        return row

    def update(self, row: models.Budget, patch: dict) -> models.Budget:
        if not patch:
            return row
        category_id = patch.get("category_id", row.category_id)
        period = patch.get("period") or row.period
        if "category_id" in patch:
            self._validate_category(row.user_id, category_id)
        if category_id != row.category_id or period != row.period:
            self._ensure_unique(row.user_id, category_id, period, exclude_id=row.id)
        start_date = patch.get("start_date") or row.start_date
        end_date = patch["end_date"] if "end_date" in patch else row.end_date
        if end_date and end_date < start_date:
            raise ServiceError("end_date must be on or after start_date")
        for key, value in patch.items():
            if key == "start_date" and value is None:
                continue
            setattr(row, key, value)
        self.db.commit()
        self.db.refresh(row)
        logger.info("budget updated user_id=%s budget_id=%s", row.user_id, row.id)
        return row

    def delete(self, row: models.Budget) -> None:
        budget_id, user_id = row.id, row.user_id
        self.db.delete(row)
        self.db.commit()
        logger.info("budget deleted user_id=%s budget_id=%s", user_id, budget_id)

    # ---- Spending --------------------------------------------------------
    def spent_between(self, user_id: int, category_id: int, start: date, end: date) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(models.Transaction.amount), 0))
            .filter(
                models.Transaction.user_id == user_id,
                models.Transaction.category_id == category_id,
                models.Transaction.type == models.TxnType.EXPENSE,
                models.Transaction.date >= start,
                models.Transaction.date <= end,
            )
            .scalar()
        )
        return round(abs(float(total or 0)), 2)

    def with_spent(self, budget: models.Budget, as_of: date) -> dict:
        window_start, window_end = budget_window(budget, as_of)
        if as_of < budget.start_date:
            spent = 0.0
        else:
            spent = self.spent_between(budget.user_id, budget.category_id, window_start, window_end)
        amount = float(budget.amount)
        percentage = (spent / amount) * 100 if amount > 0 else 0.0
        category = budget.category
        return {
            "id": budget.id,
            "category_id": budget.category_id,
            "category_name": category.name,
            "category_icon": category.icon,
            "color": category.color or models.DEFAULT_CATEGORY_COLOR,
            "amount": amount,
            "spent": spent,
            "remaining": round(amount - spent, 2),
            "percentage": round(percentage, 2),
            "status": budget_status(percentage),
            "period": budget.period,
            "start_date": budget.start_date,
            "end_date": budget.end_date,
            "is_active": budget.is_active,
            "window_start": window_start,
            "window_end": window_end,
        }

    def list_with_spent(
        self,
        user_id: int,
        *,
        as_of: date,
        period: Optional[models.BudgetPeriod] = None,
        active_only: bool = False,
    ) -> list[dict]:
        rows = self.get_all(user_id=user_id, period=period, active_only=active_only)
        return [self.with_spent(row, as_of) for row in rows]

    def overview(self, user_id: int, *, as_of: date) -> dict:
        """Totals over the user's active budgets."""
        items = self.list_with_spent(user_id, as_of=as_of, active_only=True)
        total_budget = sum(item["amount"] for item in items)
        total_spent = sum(item["spent"] for item in items)
        counts = {"exceeded": 0, "warning": 0, "good": 0}
        for item in items:
            counts[item["status"]] += 1
        return {
            "total_budget": round(total_budget, 2),
            "total_spent": round(total_spent, 2),
            "total_remaining": round(total_budget - total_spent, 2),
            "overall_percentage": round((total_spent / total_budget) * 100, 2) if total_budget > 0 else 0.0,
            "exceeded_count": counts["exceeded"],
            "warning_count": counts["warning"],
            "good_count": counts["good"],
        }

    def summary(self, row: models.Budget, *, as_of: date) -> dict:
        item = self.with_spent(row, as_of)
        return {
            "budget_id": row.id,
            "window_start": item["window_start"],
            "window_end": item["window_end"],
            "planned": item["amount"],
            "spent": item["spent"],
            "remaining": item["remaining"],
            "execution_rate": item["percentage"],
            "status": item["status"],
        }

    # ---- Helpers ---------------------------------------------------------
    def _validate_category(self, user_id: int, category_id: int) -> models.Category:
        category = (
            self.db.query(models.Category)
            .filter(models.Category.user_id == user_id, models.Category.id == category_id)
            .first()
        )
        if not category:
            raise NotFoundError("Category not found")
        if category.type != models.CategoryType.EXPENSE:
            raise ServiceError("Budgets can only be set on expense categories")
        return category

    def _ensure_unique(
        self,
        user_id: int,
        category_id: int,
        period: models.BudgetPeriod,
        *,
        exclude_id: int | None = None,
    ) -> None:
        q = self.db.query(models.Budget.id).filter(
            models.Budget.user_id == user_id,
            models.Budget.category_id == category_id,
            models.Budget.period == period,
        )
        if exclude_id is not None:
            q = q.filter(models.Budget.id != exclude_id)
        if q.first():
            raise ConflictError(DUPLICATE_BUDGET)
