from __future__ import annotations

import csv
import io
import logging
from datetime import date

from sqlalchemy.orm import Session

from pocketledger import models

from .transaction_service import TransactionFilters, TransactionService

logger = logging.getLogger(__name__)

CSV_HEADER = ["Date", "Description", "Type", "Category", "Amount"]


def export_filename(as_of: date) -> str:
    return f"transactions_{as_of.isoformat()}.csv"


def render_csv(transactions: list[models.Transaction]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(CSV_HEADER)
    for txn in transactions:
        writer.writerow(
            [
                txn.date.isoformat(),
                txn.description or "",
                txn.type.value,
                txn.category_name,
                f"{abs(float(txn.amount)):.2f}",
            ]
        )
    return buffer.getvalue()


class CSVExportService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def export(self, user_id: int, filters: TransactionFilters) -> str:
        """All transactions matching ``filters``, newest first, as CSV text."""
        rows = TransactionService(self.db).list_all(user_id, filters)
        logger.info("csv export user_id=%s rows=%s", user_id, len(rows))
        return render_csv(rows)
