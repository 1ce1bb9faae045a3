from __future__ import annotations

import csv
import io

from helpers import category_id, create_txn


def _rows(resp) -> list[list[str]]:
    return list(csv.reader(io.StringIO(resp.text)))


def test_export_csv_newest_first(auth_client):
    food = category_id(auth_client, "Food & Groceries")
    create_txn(auth_client, amount=250, date="2025-03-01", description="Groceries", category_id=food)
    create_txn(auth_client, type="income", amount=1000.5, date="2025-03-05", description="Bonus")

    resp = auth_client.get("/api/transactions/export", params={"as_of": "2025-03-12"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.headers["content-disposition"] == 'attachment; filename="transactions_2025-03-12.csv"'

    rows = _rows(resp)
    assert rows[0] == ["Date", "Description", "Type", "Category", "Amount"]
    assert rows[1] == ["2025-03-05", "Bonus", "income", "Uncategorized", "1000.50"]
    assert rows[2] == ["2025-03-01", "Groceries", "expense", "Food & Groceries", "250.00"]


def test_export_respects_filters(auth_client):
    create_txn(auth_client, amount=10, date="2025-03-10", description="Tea")
    create_txn(auth_client, amount=20, date="2024-12-10", description="Old")

    resp = auth_client.get(
        "/api/transactions/export",
        params={"as_of": "2025-03-12", "range": "month", "type": "expense"},
    )
    rows = _rows(resp)
    assert [r[1] for r in rows[1:]] == ["Tea"]


def test_export_without_rows_has_header_only(auth_client):
    resp = auth_client.get("/api/transactions/export", params={"as_of": "2025-03-12"})
    assert resp.status_code == 200
    assert _rows(resp) == [["Date", "Description", "Type", "Category", "Amount"]]
