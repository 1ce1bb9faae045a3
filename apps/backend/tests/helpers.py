"""Shared request helpers for API tests."""

from __future__ import annotations

from typing import Any


def cash_account_id(client) -> int:
    rows = client.get("/api/accounts").json()
    return next(a["id"] for a in rows if a["name"] == "Cash")


def category_id(client, name: str) -> int:
    rows = client.get("/api/categories").json()
    return next(c["id"] for c in rows if c["name"] == name)


def create_txn(client, **fields: Any) -> dict:
    payload = {"type": "expense", "amount": 100, "date": "2025-03-10"}
    payload.update(fields)
    if "account_id" not in payload:
        payload["account_id"] = cash_account_id(client)
    resp = client.post("/api/transactions", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def account_balance(client, account_id: int) -> float:
    resp = client.get(f"/api/accounts/{account_id}")
    assert resp.status_code == 200, resp.text
    return resp.json()["balance"]
