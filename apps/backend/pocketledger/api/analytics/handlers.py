from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.database import get_db
from pocketledger.core.deps import get_current_user
from pocketledger.schemas import AnalyticsOut
from pocketledger.services import AnalyticsService


def get_analytics(
    range: Literal["week", "month", "quarter", "year"] = Query("month"),
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> AnalyticsOut:
    data = AnalyticsService(db).build(user.id, range_name=range, as_of=as_of or models.today_local())
    return AnalyticsOut.model_validate(data)
