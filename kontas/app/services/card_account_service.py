"""
services/card_account_service.py — Card / account business logic.

A card account (credit card, debit card, bank account, PIX key, cash)
belongs to one user. Expenses and incomes are paid from / into it.

Rules enforced here:
  USER_NOT_FOUND          (404) — owning user does not exist
  DUPLICATE_CARD_ACCOUNT  (409) — the owner already has an account with that name
  CARD_ACCOUNT_NOT_FOUND  (404)
  RESOURCE_IN_USE         (409) — delete refused while transactions reference it

Layer rules:
  - No Flask imports. Only flush — the route commits.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from kontas.app.errors import AppError, ErrorCode, resource_in_use
from kontas.app.models.card_account import CardAccount, CardAccountType
from kontas.app.models.expense import Expense
from kontas.app.models.income import Income
from kontas.app.models.user import User
from kontas.app.services.common import count_transactions, paginate, sum_amount


logger = logging.getLogger(__name__)


# ── Lookup helpers ─────────────────────────────────────────────────────────

def get_card_account_or_404(card_account_id: int, session: Session) -> CardAccount:
    """Returns the CardAccount or raises CARD_ACCOUNT_NOT_FOUND (404)."""
    account = session.get(CardAccount, card_account_id)
    if account is None:
        raise AppError(
            ErrorCode.CARD_ACCOUNT_NOT_FOUND,
            f"Card account {card_account_id} does not exist.",
            404,
        )
    return account


def _require_user(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
            field="user_id",
        )
    return user


def _ensure_unique(
        user_id: int,
        name: str,
        session: Session,
        exclude_id: int | None = None,
) -> None:
    stmt = select(CardAccount.id).where(
        CardAccount.user_id == user_id,
        CardAccount.name == name,
    )
    if exclude_id is not None:
        stmt = stmt.where(CardAccount.id != exclude_id)

    if session.execute(stmt).first() is not None:
        raise AppError(
            ErrorCode.DUPLICATE_CARD_ACCOUNT,
            f"User {user_id} already has a card account named '{name}'.",
            409,
            field="name",
        )


# ── Public service functions ───────────────────────────────────────────────

def create_card_account(data: dict, owner_id: int, session: Session) -> CardAccount:
    """
    Args:
        data:     Validated dict from CreateCardAccountSchema.
        owner_id: Owning user; the route passes data["user_id"] or the caller.
    """
    _require_user(owner_id, session)
    _ensure_unique(owner_id, data["name"], session)

    account = CardAccount(
        user_id=owner_id,
        name=data["name"],
        type=data["type"],
        bank_name=data.get("bank_name"),
        last_digits=data.get("last_digits"),
        color=data.get("color"),
        active=data.get("active", True),
    )
    session.add(account)
    session.flush()
    return account


def list_card_accounts(
        session: Session,
        page: int,
        limit: int,
        account_type: CardAccountType | None = None,
        active: bool | None = None,
        user_id: int | None = None,
) -> tuple[list[CardAccount], int]:
    """Returns (page of accounts ordered by name, total matching)."""
    stmt = select(CardAccount).order_by(CardAccount.name.asc(), CardAccount.id.asc())
    if account_type is not None:
        stmt = stmt.where(CardAccount.type == account_type)
    if active is not None:
        stmt = stmt.where(CardAccount.active.is_(active))
    if user_id is not None:
        stmt = stmt.where(CardAccount.user_id == user_id)
    return paginate(stmt, page, limit, session)


def list_active_by_user(user_id: int, session: Session) -> list[CardAccount]:
    _require_user(user_id, session)
    stmt = (
        select(CardAccount)
        .where(CardAccount.user_id == user_id, CardAccount.active.is_(True))
        .order_by(CardAccount.name.asc())
    )
    return list(session.execute(stmt).scalars().all())


def list_active_by_type(account_type: CardAccountType, session: Session) -> list[CardAccount]:
    stmt = (
        select(CardAccount)
        .where(CardAccount.type == account_type, CardAccount.active.is_(True))
        .order_by(CardAccount.name.asc())
    )
    return list(session.execute(stmt).scalars().all())


def update_card_account(card_account_id: int, data: dict, session: Session) -> CardAccount:
    """
    Partial update. Moving an account to another user re-checks that the
    user exists; the name is re-checked against the effective owner.
    """
    account = get_card_account_or_404(card_account_id, session)

    if "user_id" in data:
        _require_user(data["user_id"], session)

    if "name" in data or "user_id" in data:
        _ensure_unique(
            data.get("user_id", account.user_id),
            data.get("name", account.name),
            session,
            exclude_id=account.id,
        )

    for key in ("user_id", "name", "type", "bank_name", "last_digits", "color", "active"):
        if key in data:
            setattr(account, key, data[key])

    session.flush()
    return account


def delete_card_account(card_account_id: int, session: Session) -> None:
    account = get_card_account_or_404(card_account_id, session)

    expense_count, income_count = count_transactions("card_account_id", account.id, session)
    if expense_count + income_count > 0:
        logger.info(
            "Refused to delete card account %s: %s expenses, %s incomes",
            account.id, expense_count, income_count,
        )
        raise resource_in_use("Card account", account.id)

    session.delete(account)
    session.flush()


def toggle_card_account_status(card_account_id: int, session: Session) -> CardAccount:
    account = get_card_account_or_404(card_account_id, session)
    account.active = not account.active
    session.flush()
    return account


def get_card_account_stats(card_account_id: int, session: Session) -> dict:
    account = get_card_account_or_404(card_account_id, session)

    expense_count, income_count = count_transactions("card_account_id", account.id, session)

    return {
        "expense_count":      expense_count,
        "income_count":       income_count,
        "total_expenses":     sum_amount(Expense.amount, [Expense.card_account_id == account.id], session),
        "total_incomes":      sum_amount(Income.amount, [Income.card_account_id == account.id], session),
        "total_transactions": expense_count + income_count,
    }


def get_user_accounts_summary(user_id: int, session: Session) -> list[dict]:
    """
    Every account of the user (active or not) with its transaction counts.

    Returns: [{"account": CardAccount, "expense_count": int, "income_count": int}]
    """
    _require_user(user_id, session)

    expense_counts = (
        select(Expense.card_account_id, func.count(Expense.id).label("n"))
        .group_by(Expense.card_account_id)
        .subquery()
    )
    income_counts = (
        select(Income.card_account_id, func.count(Income.id).label("n"))
        .group_by(Income.card_account_id)
        .subquery()
    )

    stmt = (
        select(
            CardAccount,
            func.coalesce(expense_counts.c.n, 0),
            func.coalesce(income_counts.c.n, 0),
        )
        .outerjoin(expense_counts, expense_counts.c.card_account_id == CardAccount.id)
        .outerjoin(income_counts, income_counts.c.card_account_id == CardAccount.id)
        .where(CardAccount.user_id == user_id)
        .order_by(CardAccount.name.asc())
    )

    return [
        {
            "account":       account,
            "expense_count": int(n_expenses),
            "income_count":  int(n_incomes),
        }
        for account, n_expenses, n_incomes in session.execute(stmt).all()
    ]
