"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against the TestingConfig database: SQLite in-memory by
    default, or whatever TEST_DATABASE_URL points at (e.g. a PostgreSQL
    kontas_test database).
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.
  - An administrator is seeded directly through the ORM before each test,
    because user creation over the API is admin-only.

Helper functions (not fixtures) are provided for common operations:
  - login(client, ...)          → dict with user + tokens
  - auth_headers(token)         → {"Authorization": "Bearer <token>"}
  - make_user(client, ...)      → user dict (created by the admin)
  - make_member(client, ...)    → (user dict, access token)
  - make_category(client, ...)  → category dict
  - make_account(client, ...)   → card account dict
  - make_expense(client, ...)   → HTTP response
  - make_income(client, ...)    → HTTP response
  - make_ledger_expense(...)    → HTTP response (ledger fixture category + account)

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from kontas.app import create_app
from kontas.app.extensions import db as _db
from kontas.app.models.user import User, UserRole
from kontas.app.services.user_service import hash_password


ADMIN_USERNAME = "admin"
PASSWORD = "Password1"


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """
    Creates the Flask application in 'testing' mode once for the entire test session.
    Tables are created from the model metadata and dropped at teardown.
    """
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """
    Seeds the administrator before each test and deletes all rows after it.

    Delete order respects FK RESTRICT constraints: owner rows and incomes
    first, then expenses, accounts, categories, and finally users.
    """
    with app.app_context():
        _db.session.add(User(
            username=ADMIN_USERNAME,
            full_name="Kontas Admin",
            email="admin@kontas.test",
            phone="11999999999",
            password_hash=hash_password(PASSWORD),
            role=UserRole.ADMIN,
        ))
        _db.session.commit()

    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            conn.execute(text("DELETE FROM expense_owners"))
            conn.execute(text("DELETE FROM incomes"))
            conn.execute(text("DELETE FROM expenses"))
            conn.execute(text("DELETE FROM card_accounts"))
            conn.execute(text("DELETE FROM categories"))
            conn.execute(text("DELETE FROM users"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


@pytest.fixture
def admin(client) -> dict:
    """Login data of the seeded administrator: {"user", "access_token", "refresh_token"}."""
    return login(client, ADMIN_USERNAME)


@pytest.fixture
def admin_token(admin) -> str:
    return admin["access_token"]


@pytest.fixture
def ledger(client, admin) -> dict:
    """
    Admin plus two members (alice, bob), an active EXPENSE category and an
    active card account owned by the admin. Used by the expense tests.
    """
    token = admin["access_token"]
    alice, alice_token = make_member(client, token, "alice")
    bob, _ = make_member(client, token, "bob")
    return {
        "token": token,
        "admin": admin["user"],
        "alice": alice,
        "alice_token": alice_token,
        "bob": bob,
        "category": make_category(client, token, "Food"),
        "account": make_account(client, token, "Nubank"),
    }


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def login(client, username: str, password: str = PASSWORD) -> dict:
    """
    Logs in a user and returns the response data dict.
    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    resp = client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    return resp.get_json()["data"]


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def user_payload(username: str, **overrides) -> dict:
    payload = {
        "username": username,
        "full_name": f"{username.title()} Tester",
        "email": f"{username}@kontas.test",
        "phone": "11987654321",
        "password": PASSWORD,
    }
    payload.update(overrides)
    return payload


def make_user(client, admin_token: str, username: str = "alice", **overrides) -> dict:
    """Creates a member through POST /users and returns the user dict."""
    resp = client.post(
        "/api/v1/users",
        json=user_payload(username, **overrides),
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 201, f"make_user failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_member(client, admin_token: str, username: str = "alice") -> tuple[dict, str]:
    """Creates a member and logs them in. Returns (user dict, access token)."""
    user = make_user(client, admin_token, username)
    return user, login(client, username)["access_token"]


def make_category(
    client,
    admin_token: str,
    name: str = "Food",
    category_type: str = "EXPENSE",
    **extra,
) -> dict:
    resp = client.post(
        "/api/v1/categories",
        json={"name": name, "type": category_type, **extra},
        headers=auth_headers(admin_token),
    )
    assert resp.status_code == 201, f"make_category failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_account(
    client,
    token: str,
    name: str = "Nubank",
    account_type: str = "CREDIT_CARD",
    **extra,
) -> dict:
    resp = client.post(
        "/api/v1/card-accounts",
        json={"name": name, "type": account_type, **extra},
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_account failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_expense(
    client,
    token: str,
    category_id: int,
    card_account_id: int,
    owners: list[dict],
    amount: str = "200.00",
    name: str = "Dinner",
    expense_date: str = "2026-01-15T12:00:00Z",
    **extra,
):
    """Creates an expense and returns the HTTP response."""
    return client.post(
        "/api/v1/expenses",
        json={
            "name": name,
            "amount": amount,
            "category_id": category_id,
            "card_account_id": card_account_id,
            "expense_date": expense_date,
            "expense_owners": owners,
            **extra,
        },
        headers=auth_headers(token),
    )


def make_income(
    client,
    token: str,
    category_id: int,
    card_account_id: int,
    amount: str = "1500.00",
    name: str = "Salary",
    income_date: str = "2026-01-05T09:00:00Z",
    **extra,
):
    """Creates an income and returns the HTTP response."""
    return client.post(
        "/api/v1/incomes",
        json={
            "name": name,
            "amount": amount,
            "category_id": category_id,
            "card_account_id": card_account_id,
            "income_date": income_date,
            **extra,
        },
        headers=auth_headers(token),
    )


def count_rows(app, table: str) -> int:
    with app.app_context():
        return _db.session.execute(text(f"SELECT COUNT(*) FROM {table}")).scalar_one()


def make_ledger_expense(client, ledger: dict, owners: list[dict], **kwargs):
    """make_expense() against the ledger fixture's category and account, as the admin."""
    return make_expense(
        client, ledger["token"], ledger["category"]["id"], ledger["account"]["id"], owners, **kwargs,
    )
