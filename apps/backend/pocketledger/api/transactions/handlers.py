"""Transaction handlers: CRUD, paged listing, stats and CSV export."""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import Depends, Query, Response
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from pocketledger import models
from pocketledger.core.config import settings
from pocketledger.core.database import get_db
from pocketledger.core.deps import get_current_user
from pocketledger.schemas import (
    BulkDeleteResult,
    TransactionCreate,
    TransactionStatsOut,
    TransactionUpdate,
)
from pocketledger.services import CSVExportService, TransactionFilters, TransactionService
from pocketledger.services.export_service import export_filename


def transaction_filters(
    type: Literal["all", "income", "expense", "transfer"] = Query("all"),
    range: Literal["all", "week", "month", "year"] = Query("all"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    category_id: Optional[int] = Query(None),
    as_of: Optional[date] = Query(None),
) -> TransactionFilters:
    return TransactionFilters(
        type=type,
        range=range,
        start=start,
        end=end,
        search=search,
        category_id=category_id,
        as_of=as_of or models.today_local(),
    )


def list_transactions(
    response: Response,
    filters: TransactionFilters = Depends(transaction_filters),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> list[models.Transaction]:
    rows, total = TransactionService(db).list_page(
        user.id,
        filters,
        page=page,
        page_size=page_size or settings.TRANSACTIONS_PAGE_SIZE,
    )
    response.headers["X-Total-Count"] = str(total)
    return rows


def get_transaction_stats(
    filters: TransactionFilters = Depends(transaction_filters),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> TransactionStatsOut:
    return TransactionStatsOut(**TransactionService(db).stats(user.id, filters))


def export_transactions(
    filters: TransactionFilters = Depends(transaction_filters),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> StreamingResponse:
    csv_text = CSVExportService(db).export(user.id, filters)
    filename = export_filename(filters.as_of)
    return StreamingResponse(
        iter([csv_text]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def create_transaction(
    payload: TransactionCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Transaction:
    return TransactionService(db).create(payload.model_dump(), user_id=user.id)


def get_transaction(
    txn_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Transaction:
    return TransactionService(db).get_by_id(user.id, txn_id)


def update_transaction(
    txn_id: int,
    payload: TransactionUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Transaction:
    service = TransactionService(db)
    row = service.get_by_id(user.id, txn_id)
    patch = payload.model_dump(exclude_unset=True)
    # 필수 컬럼은 null 로 덮어쓰지 않음
    for key in ("account_id", "type", "amount", "date"):
        if key in patch and patch[key] is None:
            patch.pop(key)
    return service.update(row, patch)


def delete_transaction(
    txn_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> Response:
    service = TransactionService(db)
    service.delete(service.get_by_id(user.id, txn_id))
    return Response(status_code=204)


def delete_all_transactions(
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> BulkDeleteResult:
    return BulkDeleteResult(removed=TransactionService(db).delete_all(user.id))
