from __future__ import annotations

from datetime import date

import pytest

from pocketledger import models
from pocketledger.services.budget_service import budget_status, budget_window

from helpers import category_id, create_txn

AS_OF = "2025-03-20"


def _create_budget(client, category: str, amount: float, **fields) -> dict:
    payload = {"category_id": category_id(client, category), "amount": amount, "start_date": "2025-03-01"}
    payload.update(fields)
    resp = client.post("/api/budgets", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _by_category(client, **params) -> dict[str, dict]:
    resp = client.get("/api/budgets", params={"as_of": AS_OF, **params})
    assert resp.status_code == 200, resp.text
    return {item["category_name"]: item for item in resp.json()}


def test_duplicate_budget_is_conflict(auth_client):
    _create_budget(auth_client, "Food & Groceries", 1000)
    resp = auth_client.post(
        "/api/budgets",
        json={"category_id": category_id(auth_client, "Food & Groceries"), "amount": 50},
    )
    assert resp.status_code == 409
    assert resp.json()["detail"] == "A budget for this category already exists."
    # 기간이 다르면 별도 예산 허용
    _create_budget(auth_client, "Food & Groceries", 200, period="weekly")


def test_budget_requires_own_expense_category(auth_client, db_session, other_user):
    income = auth_client.post(
        "/api/budgets",
        json={"category_id": category_id(auth_client, "Salary"), "amount": 100},
    )
    assert income.status_code == 400

    foreign = db_session.query(models.Category).filter_by(user_id=other_user.id, name="Shopping").first()
    resp = auth_client.post("/api/budgets", json={"category_id": foreign.id, "amount": 100})
    assert resp.status_code == 404


def test_budget_validation(auth_client):
    cid = category_id(auth_client, "Shopping")
    assert auth_client.post("/api/budgets", json={"category_id": cid, "amount": 0}).status_code == 422
    bad_span = auth_client.post(
        "/api/budgets",
        json={"category_id": cid, "amount": 10, "start_date": "2025-03-10", "end_date": "2025-03-01"},
    )
    assert bad_span.status_code == 422


def test_spent_status_and_window(auth_client):
    food = category_id(auth_client, "Food & Groceries")
    _create_budget(auth_client, "Food & Groceries", 1000)
    create_txn(auth_client, amount=300, date="2025-03-05", category_id=food)
    create_txn(auth_client, amount=550, date="2025-03-18", category_id=food)
    # 기간 밖 지출과 수입은 제외
    create_txn(auth_client, amount=999, date="2025-02-28", category_id=food)
    create_txn(auth_client, type="income", amount=5000, date="2025-03-10")

    item = _by_category(auth_client)["Food & Groceries"]
    assert item["spent"] == 850.0
    assert item["remaining"] == 150.0
    assert item["percentage"] == 85.0
    assert item["status"] == "warning"
    assert item["window_start"] == "2025-03-01"
    assert item["window_end"] == "2025-03-31"
    assert item["color"] == "#f97316"

    create_txn(auth_client, amount=200, date="2025-03-19", category_id=food)
    item = _by_category(auth_client)["Food & Groceries"]
    assert item["percentage"] == 105.0
    assert item["status"] == "exceeded"
    assert item["remaining"] == -50.0


def test_weekly_budget_uses_monday_to_sunday_window(auth_client):
    transport = category_id(auth_client, "Transport")
    _create_budget(auth_client, "Transport", 500, period="weekly")
    # 2025-03-16 은 일요일(지난주), 2025-03-18 은 화요일(이번 주)
    create_txn(auth_client, amount=100, date="2025-03-16", category_id=transport)
    create_txn(auth_client, amount=100, date="2025-03-18", category_id=transport)

    item = _by_category(auth_client)["Transport"]
    assert (item["window_start"], item["window_end"]) == ("2025-03-17", "2025-03-23")
    assert item["spent"] == 100.0
    assert item["status"] == "good"


def test_list_filters_period_and_active(auth_client):
    _create_budget(auth_client, "Food & Groceries", 1000)
    _create_budget(auth_client, "Transport", 500, period="weekly")
    _create_budget(auth_client, "Utilities", 300, is_active=False)

    assert set(_by_category(auth_client, period="weekly")) == {"Transport"}
    assert set(_by_category(auth_client, active_only=True)) == {"Food & Groceries", "Transport"}
    assert len(_by_category(auth_client)) == 3


def test_overview_totals_active_budgets(auth_client):
    food = category_id(auth_client, "Food & Groceries")
    transport = category_id(auth_client, "Transport")
    _create_budget(auth_client, "Food & Groceries", 1000)
    _create_budget(auth_client, "Transport", 500, period="weekly")
    _create_budget(auth_client, "Utilities", 300, is_active=False)
    create_txn(auth_client, amount=850, date="2025-03-05", category_id=food)
    create_txn(auth_client, amount=100, date="2025-03-18", category_id=transport)

    resp = auth_client.get("/api/budgets/overview", params={"as_of": AS_OF})
    assert resp.status_code == 200, resp.text
    assert resp.json() == {
        "total_budget": 1500.0,
        "total_spent": 950.0,
        "total_remaining": 550.0,
        "overall_percentage": 63.33,
        "exceeded_count": 0,
        "warning_count": 1,
        "good_count": 1,
    }


def test_summary(auth_client):
    food = category_id(auth_client, "Food & Groceries")
    budget = _create_budget(auth_client, "Food & Groceries", 1000)
    create_txn(auth_client, amount=120, date="2025-03-10", category_id=food)
    create_txn(auth_client, amount=230, date="2025-03-20", category_id=food)

    resp = auth_client.get(f"/api/budgets/{budget['id']}/summary", params={"as_of": AS_OF})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["planned"] == 1000.0
    assert data["spent"] == 350.0
    assert data["remaining"] == 650.0
    assert round(data["execution_rate"], 1) == 35.0
    assert data["status"] == "good"
    assert (data["window_start"], data["window_end"]) == ("2025-03-01", "2025-03-31")


def test_before_start_date_nothing_is_spent(auth_client):
    food = category_id(auth_client, "Food & Groceries")
    budget = _create_budget(auth_client, "Food & Groceries", 100, start_date="2025-04-01")
    create_txn(auth_client, amount=80, date="2025-03-10", category_id=food)
    data = auth_client.get(f"/api/budgets/{budget['id']}/summary", params={"as_of": AS_OF}).json()
    assert data["spent"] == 0.0
    assert data["window_start"] == "2025-04-01"


def test_update_and_delete(auth_client):
    food_budget = _create_budget(auth_client, "Food & Groceries", 1000)
    shopping_budget = _create_budget(auth_client, "Shopping", 400)

    resp = auth_client.patch(f"/api/budgets/{food_budget['id']}", json={"amount": 1200, "period": "yearly"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["amount"] == 1200.0
    assert resp.json()["period"] == "yearly"

    clash = auth_client.patch(
        f"/api/budgets/{shopping_budget['id']}",
        json={"category_id": category_id(auth_client, "Food & Groceries"), "period": "yearly"},
    )
    assert clash.status_code == 409

    assert auth_client.delete(f"/api/budgets/{shopping_budget['id']}").status_code == 204
    assert auth_client.get(f"/api/budgets/{shopping_budget['id']}/summary").status_code == 404


def test_default_start_date_is_current_period_start(auth_client):
    budget = auth_client.post(
        "/api/budgets",
        json={"category_id": category_id(auth_client, "Utilities"), "amount": 100},
    ).json()
    today = models.today_local()
    assert budget["start_date"] == today.replace(day=1).isoformat()


@pytest.mark.parametrize(
    "percentage, expected",
    [(0, "good"), (79.99, "good"), (80, "warning"), (99.9, "warning"), (100, "exceeded"), (250, "exceeded")],
)
def test_budget_status_thresholds(percentage, expected):
    assert budget_status(percentage) == expected


def test_budget_window_is_clipped_to_lifetime():
    budget = models.Budget(
        period=models.BudgetPeriod.MONTHLY,
        start_date=date(2025, 3, 10),
        end_date=date(2025, 5, 15),
    )
    assert budget_window(budget, date(2025, 3, 20)) == (date(2025, 3, 10), date(2025, 3, 31))
    # 종료 이후에는 마지막 기간
    assert budget_window(budget, date(2025, 6, 20)) == (date(2025, 5, 1), date(2025, 5, 15))
    # 시작 이전에는 첫 기간
    assert budget_window(budget, date(2025, 1, 5)) == (date(2025, 3, 10), date(2025, 3, 31))


@pytest.mark.parametrize("literal", ["Infinity", "NaN", "1e15"])
def test_budget_amount_must_be_finite_and_in_range(auth_client, literal):
    cid = category_id(auth_client, "Shopping")
    body = f'{{"category_id": {cid}, "amount": {literal}}}'
    resp = auth_client.post("/api/budgets", content=body, headers={"Content-Type": "application/json"})
    assert resp.status_code == 422

    budget = _create_budget(auth_client, "Shopping", 100)
    patched = auth_client.patch(
        f"/api/budgets/{budget['id']}",
        content=f'{{"amount": {literal}}}',
        headers={"Content-Type": "application/json"},
    )
    assert patched.status_code == 422
