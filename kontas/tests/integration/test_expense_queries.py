"""
tests/integration/test_expense_queries.py — Integration tests for the expense
                                             listing and reporting endpoints.

Endpoints covered:
  GET /expenses                         → filters, pagination, total_amount
  GET /expenses/date-range              → both dates required
  GET /expenses/amount-range            → both amounts required
  GET /expenses/user/:user_id           → expenses the user owns a share of
  GET /expenses/user/:user_id/summary   → totals grouped by category
  GET /expenses/category/:category_id   → EXPENSE categories only

Seeded expenses (see the `seeded` fixture):
  Groceries  100.00  2026-01-10  Food  alice 100
  Dinner     200.00  2026-01-15  Food  alice 50 / bob 50
  Rent      1500.00  2026-02-01  Rent  bob 100

Listings are ordered by expense_date, newest first.
"""

from __future__ import annotations

import pytest

from .conftest import auth_headers, make_category, make_expense, make_ledger_expense


@pytest.fixture
def seeded(client, ledger) -> dict:
    alice_id = ledger["alice"]["id"]
    bob_id = ledger["bob"]["id"]
    rent = make_category(client, ledger["token"], "Rent")

    make_ledger_expense(
        client, ledger, [{"user_id": alice_id}],
        name="Groceries", amount="100.00", expense_date="2026-01-10T10:00:00Z",
    )
    make_ledger_expense(
        client, ledger,
        [{"user_id": alice_id, "percentage": "50"}, {"user_id": bob_id, "percentage": "50"}],
        name="Dinner", amount="200.00", expense_date="2026-01-15T20:00:00Z",
    )
    resp = make_expense(
        client, ledger["token"], rent["id"], ledger["account"]["id"], [{"user_id": bob_id}],
        name="Rent", amount="1500.00", expense_date="2026-02-01T09:00:00Z",
    )
    assert resp.status_code == 201
    return {**ledger, "rent": rent}


def _get(client, seeded, url):
    resp = client.get(url, headers=auth_headers(seeded["token"]))
    return resp, resp.get_json()


def _names(body) -> list[str]:
    return [e["name"] for e in body["data"]["expenses"]]


class TestListExpenses:

    def test_lists_everything_newest_first(self, client, seeded):
        resp, body = _get(client, seeded, "/api/v1/expenses")
        assert resp.status_code == 200
        assert _names(body) == ["Rent", "Dinner", "Groceries"]
        assert body["data"]["total"] == 3
        assert body["data"]["total_amount"] == "1800.00"
        assert body["data"]["page"] == 1
        assert body["data"]["limit"] == 10

    def test_filter_by_owner(self, client, seeded):
        _, body = _get(client, seeded, f"/api/v1/expenses?user_id={seeded['alice']['id']}")
        assert _names(body) == ["Dinner", "Groceries"]
        assert body["data"]["total_amount"] == "300.00"

    def test_filter_by_category(self, client, seeded):
        _, body = _get(client, seeded, f"/api/v1/expenses?category_id={seeded['rent']['id']}")
        assert _names(body) == ["Rent"]

    def test_filter_by_date_window_is_inclusive(self, client, seeded):
        _, body = _get(
            client, seeded,
            "/api/v1/expenses?start_date=2026-01-10T10:00:00Z&end_date=2026-01-15T20:00:00Z",
        )
        assert _names(body) == ["Dinner", "Groceries"]

    def test_filter_by_amount(self, client, seeded):
        _, body = _get(client, seeded, "/api/v1/expenses?min_amount=150&max_amount=200")
        assert _names(body) == ["Dinner"]
        assert body["data"]["total_amount"] == "200.00"

    def test_filters_combine(self, client, seeded):
        _, body = _get(
            client, seeded,
            f"/api/v1/expenses?user_id={seeded['bob']['id']}&min_amount=1000",
        )
        assert _names(body) == ["Rent"]

    def test_no_match_returns_empty_page(self, client, seeded):
        _, body = _get(client, seeded, "/api/v1/expenses?min_amount=5000")
        assert body["data"]["expenses"] == []
        assert body["data"]["total"] == 0
        assert body["data"]["total_amount"] == "0.00"

    def test_pagination_counts_all_matches(self, client, seeded):
        _, body = _get(client, seeded, "/api/v1/expenses?page=2&limit=2")
        assert _names(body) == ["Groceries"]
        assert body["data"]["total"] == 3
        assert body["data"]["total_amount"] == "1800.00"

    def test_end_before_start_returns_400(self, client, seeded):
        resp, body = _get(
            client, seeded,
            "/api/v1/expenses?start_date=2026-02-01T00:00:00Z&end_date=2026-01-01T00:00:00Z",
        )
        assert resp.status_code == 400
        assert body["error"]["field"] == "end_date"


class TestRangeEndpoints:

    def test_date_range(self, client, seeded):
        resp, body = _get(
            client, seeded,
            "/api/v1/expenses/date-range?start_date=2026-01-01T00:00:00Z&end_date=2026-01-31T23:59:59Z",
        )
        assert resp.status_code == 200
        assert _names(body) == ["Dinner", "Groceries"]
        assert body["data"]["date_range"]["start_date"].startswith("2026-01-01T00:00:00")

    def test_date_range_requires_both_dates(self, client, seeded):
        resp, body = _get(client, seeded, "/api/v1/expenses/date-range?start_date=2026-01-01T00:00:00Z")
        assert resp.status_code == 400
        assert body["error"]["code"] == "MISSING_FIELD"
        assert body["error"]["field"] == "end_date"

    def test_amount_range(self, client, seeded):
        resp, body = _get(client, seeded, "/api/v1/expenses/amount-range?min_amount=50&max_amount=250")
        assert resp.status_code == 200
        assert _names(body) == ["Dinner", "Groceries"]
        assert body["data"]["amount_range"] == {"min_amount": "50.00", "max_amount": "250.00"}

    def test_amount_range_requires_both_amounts(self, client, seeded):
        resp, body = _get(client, seeded, "/api/v1/expenses/amount-range?max_amount=250")
        assert resp.status_code == 400
        assert body["error"]["field"] == "min_amount"


class TestUserExpenses:

    def test_user_listing(self, client, seeded):
        resp, body = _get(client, seeded, f"/api/v1/expenses/user/{seeded['bob']['id']}")
        assert resp.status_code == 200
        assert _names(body) == ["Rent", "Dinner"]
        assert body["data"]["total_amount"] == "1700.00"

    def test_user_listing_with_date_filter(self, client, seeded):
        _, body = _get(
            client, seeded,
            f"/api/v1/expenses/user/{seeded['bob']['id']}?end_date=2026-01-31T00:00:00Z",
        )
        assert _names(body) == ["Dinner"]

    def test_missing_user_returns_404(self, client, seeded):
        resp, body = _get(client, seeded, "/api/v1/expenses/user/99999")
        assert resp.status_code == 404
        assert body["error"]["code"] == "USER_NOT_FOUND"

    def test_summary_groups_by_category(self, client, seeded):
        resp, body = _get(client, seeded, f"/api/v1/expenses/user/{seeded['bob']['id']}/summary")
        assert resp.status_code == 200
        data = body["data"]
        assert data["user"]["username"] == "bob"
        assert data["summary"]["total_expenses"] == 2
        assert data["summary"]["total_amount"] == "1700.00"
        assert [
            (row["category"]["name"], row["count"], row["total_amount"])
            for row in data["summary"]["expenses_by_category"]
        ] == [("Food", 1, "200.00"), ("Rent", 1, "1500.00")]

    def test_summary_with_category_filter(self, client, seeded):
        _, body = _get(
            client, seeded,
            f"/api/v1/expenses/user/{seeded['alice']['id']}/summary"
            f"?category_id={seeded['category']['id']}",
        )
        summary = body["data"]["summary"]
        assert summary["total_expenses"] == 2
        assert summary["total_amount"] == "300.00"
        assert len(summary["expenses_by_category"]) == 1

    def test_summary_for_user_without_expenses(self, client, seeded):
        _, body = _get(client, seeded, f"/api/v1/expenses/user/{seeded['admin']['id']}/summary")
        assert body["data"]["summary"] == {
            "total_expenses": 0,
            "total_amount": "0.00",
            "expenses_by_category": [],
        }


class TestCategoryExpenses:

    def test_category_listing(self, client, seeded):
        resp, body = _get(client, seeded, f"/api/v1/expenses/category/{seeded['category']['id']}")
        assert resp.status_code == 200
        assert _names(body) == ["Dinner", "Groceries"]

    def test_income_category_returns_422(self, client, seeded):
        salary = make_category(client, seeded["token"], "Salary", "INCOME")
        resp, body = _get(client, seeded, f"/api/v1/expenses/category/{salary['id']}")
        assert resp.status_code == 422
        assert body["error"]["code"] == "CATEGORY_TYPE_MISMATCH"
