from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import Depends, Query, Response
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.database import get_db
from pocketledger.core.deps import get_current_user
from pocketledger.schemas import (
    BudgetCreate,
    BudgetOverviewOut,
    BudgetSummaryOut,
    BudgetUpdate,
    BudgetWithSpentOut,
)
from pocketledger.services import BudgetService


def list_budgets(
    period: Optional[models.BudgetPeriod] = Query(None),
    active_only: bool = Query(False),
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> list[BudgetWithSpentOut]:
    items = BudgetService(db).list_with_spent(
        user.id,
        as_of=as_of or models.today_local(),
        period=period,
        active_only=active_only,
    )
    return [BudgetWithSpentOut(**item) for item in items]


def get_budget_overview(
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> BudgetOverviewOut:
    return BudgetOverviewOut(**BudgetService(db).overview(user.id, as_of=as_of or models.today_local()))


def create_budget(
    payload: BudgetCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Budget:
    return BudgetService(db).create(payload.model_dump(), user_id=user.id)


def update_budget(
    budget_id: int,
    payload: BudgetUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Budget:
    service = BudgetService(db)
    row = service.get_by_id(user.id, budget_id)
    patch = payload.model_dump(exclude_unset=True)
    for key in ("category_id", "amount", "period", "is_active"):
        if key in patch and patch[key] is None:
            patch.pop(key)
    return service.update(row, patch)


def delete_budget(
    budget_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Response:
    service = BudgetService(db)
    service.delete(service.get_by_id(user.id, budget_id))
    return Response(status_code=204)


def get_budget_summary(
    budget_id: int,
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> BudgetSummaryOut:
    service = BudgetService(db)
    row = service.get_by_id(user.id, budget_id)
    return BudgetSummaryOut(**service.summary(row, as_of=as_of or models.today_local()))
