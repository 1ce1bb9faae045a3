from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.database import get_db
from pocketledger.core.deps import get_current_user
from pocketledger.schemas import DashboardOut
from pocketledger.services import DashboardService


def get_dashboard(
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> DashboardOut:
    data = DashboardService(db).build(user.id, as_of=as_of or models.today_local())
    return DashboardOut.model_validate(data, from_attributes=True)
