"""
tests/integration/test_incomes.py — Integration tests for income endpoints.

Covers:
  POST   /incomes      → 201, receiver defaults to the caller
  GET    /incomes      → filters, total_amount
  GET    /incomes/:id
  PUT    /incomes/:id  → partial update, category re-checked when it changes
  DELETE /incomes/:id  → admin only

Error codes:
  CATEGORY_TYPE_MISMATCH 422 — EXPENSE category used for an income
  CATEGORY_INACTIVE      422
  ACCOUNT_INACTIVE       422
  USER_NOT_FOUND         404 — unknown receiver
  INCOME_NOT_FOUND       404
"""

from __future__ import annotations

import pytest

from .conftest import (
    auth_headers,
    count_rows,
    make_account,
    make_category,
    make_income,
    make_member,
)


@pytest.fixture
def books(client, admin):
    token = admin["access_token"]
    alice, alice_token = make_member(client, token, "alice")
    return {
        "token": token,
        "admin": admin["user"],
        "alice": alice,
        "alice_token": alice_token,
        "salary": make_category(client, token, "Salary", "INCOME"),
        "food": make_category(client, token, "Food"),
        "account": make_account(client, token, "Itau", "BANK_ACCOUNT"),
    }


def _create(client, books, token=None, **kwargs):
    return make_income(
        client, token or books["token"], books["salary"]["id"], books["account"]["id"], **kwargs,
    )


class TestCreateIncome:

    def test_receiver_defaults_to_caller(self, client, books):
        resp = _create(client, books, token=books["alice_token"])
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["amount"] == "1500.00"
        assert data["user"]["user_id"] == books["alice"]["id"]
        assert data["category"]["type"] == "INCOME"
        assert data["card_account"]["type"] == "BANK_ACCOUNT"

    def test_explicit_receiver(self, client, books):
        resp = _create(client, books, user_id=books["alice"]["id"])
        assert resp.get_json()["data"]["user"]["username"] == "alice"

    def test_unknown_receiver_returns_404(self, client, books, app):
        resp = _create(client, books, user_id=99999)
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "USER_NOT_FOUND"
        assert count_rows(app, "incomes") == 0

    def test_expense_category_returns_422(self, client, books, app):
        resp = make_income(client, books["token"], books["food"]["id"], books["account"]["id"])
        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "CATEGORY_TYPE_MISMATCH"
        assert count_rows(app, "incomes") == 0

    def test_inactive_category_returns_422(self, client, books):
        gift = make_category(client, books["token"], "Gift", "INCOME", active=False)
        resp = make_income(client, books["token"], gift["id"], books["account"]["id"])
        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "CATEGORY_INACTIVE"

    def test_inactive_account_returns_422(self, client, books):
        closed = make_account(client, books["token"], "Closed", active=False)
        resp = make_income(client, books["token"], books["salary"]["id"], closed["id"])
        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "ACCOUNT_INACTIVE"

    def test_amount_precision_returns_400(self, client, books):
        resp = _create(client, books, amount="1.999")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_AMOUNT_PRECISION"

    def test_missing_income_date_returns_400(self, client, books):
        resp = client.post(
            "/api/v1/incomes",
            json={
                "name": "Salary",
                "amount": "10.00",
                "category_id": books["salary"]["id"],
                "card_account_id": books["account"]["id"],
            },
            headers=auth_headers(books["token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "income_date"


class TestListIncomes:

    def test_filters_and_total(self, client, books):
        _create(client, books, name="January", amount="1500.00", income_date="2026-01-05T09:00:00Z")
        _create(client, books, name="February", amount="1600.00", income_date="2026-02-05T09:00:00Z")
        _create(client, books, name="Freelance", amount="300.00",
                income_date="2026-02-10T09:00:00Z", user_id=books["alice"]["id"])

        resp = client.get("/api/v1/incomes", headers=auth_headers(books["token"]))
        data = resp.get_json()["data"]
        assert [i["name"] for i in data["incomes"]] == ["Freelance", "February", "January"]
        assert data["total_amount"] == "3400.00"

        resp = client.get(
            f"/api/v1/incomes?user_id={books['admin']['id']}&start_date=2026-02-01T00:00:00Z",
            headers=auth_headers(books["token"]),
        )
        data = resp.get_json()["data"]
        assert [i["name"] for i in data["incomes"]] == ["February"]
        assert data["total"] == 1
        assert data["total_amount"] == "1600.00"


class TestUpdateAndDeleteIncome:

    def test_partial_update(self, client, books):
        income = _create(client, books).get_json()["data"]
        resp = client.put(
            f"/api/v1/incomes/{income['id']}",
            json={"amount": "1750.50", "annotation": "raise"},
            headers=auth_headers(books["token"]),
        )
        data = resp.get_json()["data"]
        assert resp.status_code == 200
        assert data["amount"] == "1750.50"
        assert data["annotation"] == "raise"
        assert data["name"] == "Salary"

    def test_moving_to_expense_category_returns_422(self, client, books):
        income = _create(client, books).get_json()["data"]
        resp = client.put(
            f"/api/v1/incomes/{income['id']}",
            json={"category_id": books["food"]["id"]},
            headers=auth_headers(books["token"]),
        )
        assert resp.status_code == 422
        assert resp.get_json()["error"]["code"] == "CATEGORY_TYPE_MISMATCH"

    def test_get_missing_income_returns_404(self, client, books):
        resp = client.get("/api/v1/incomes/99999", headers=auth_headers(books["token"]))
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "INCOME_NOT_FOUND"

    def test_admin_deletes_income(self, client, books, app):
        income = _create(client, books).get_json()["data"]
        resp = client.delete(f"/api/v1/incomes/{income['id']}", headers=auth_headers(books["token"]))
        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"deleted": True, "income_id": income["id"]}
        assert count_rows(app, "incomes") == 0

    def test_member_cannot_delete_income(self, client, books, app):
        income = _create(client, books).get_json()["data"]
        resp = client.delete(
            f"/api/v1/incomes/{income['id']}",
            headers=auth_headers(books["alice_token"]),
        )
        assert resp.status_code == 403
        assert count_rows(app, "incomes") == 1
