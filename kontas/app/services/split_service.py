"""
services/split_service.py — Percentage ownership of expenses.

An expense is shared by one or more users ("owners"), each carrying a
percentage of the total. This module owns every rule about that split:

  INVALID_SPLIT (422)   — no owners, a percentage outside (0, 100] or with
                          more than 2 decimal places, a repeated user, or
                          percentages that do not sum to exactly 100
  USER_NOT_FOUND (404)  — one or more owners reference a missing user; the
                          message lists every missing id

The schema layer only checks shape (a list of {user_id, percentage} with
numeric values). Every split rule lives in validate_owners(), which runs
before any owner row is written.

Individual amounts (compute_individual_amounts):
  - amount = expense.amount * percentage / 100, rounded HALF_UP to 2 dp
  - Remainders are NOT redistributed: 10.00 split 33.33 / 33.33 / 33.34
    yields 3.33 / 3.33 / 3.33 (total 9.99). These are display values only.

Layer rules:
  - No Flask imports. Receives plain dicts and ORM objects.
  - Only flush — commits are the route's responsibility.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from kontas.app.errors import AppError, ErrorCode, invalid_split
from kontas.app.models.expense import Expense
from kontas.app.models.expense_owner import ExpenseOwner
from kontas.app.models.user import User


HUNDRED = Decimal("100")
CENT = Decimal("0.01")


# ── Private helpers ────────────────────────────────────────────────────────

def _as_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so that floats keep their printed form (33.33, not 33.329999…)
    return Decimal(str(value))


def _validate_percentage(percentage: Decimal, user_id: int) -> None:
    if percentage <= 0 or percentage > HUNDRED:
        raise invalid_split(
            f"Percentage for user {user_id} must be greater than 0 and at most 100."
        )
    if percentage.as_tuple().exponent < -2:
        raise invalid_split(
            f"Percentage for user {user_id} must have at most 2 decimal places."
        )


def _find_missing_user_ids(user_ids: list[int], session: Session) -> list[int]:
    """One batch query; returns the requested ids that do not exist, sorted."""
    found = set(
        session.execute(
            select(User.id).where(User.id.in_(user_ids))
        ).scalars().all()
    )
    return sorted(set(user_ids) - found)


def public_user_block(user: User) -> dict:
    """The denormalised user fields embedded next to each owner."""
    return {
        "user_id":         user.id,
        "username":        user.username,
        "full_name":       user.full_name,
        "profile_picture": user.profile_picture,
    }


# ── Public service functions ───────────────────────────────────────────────

def validate_owners(owners: list[dict], session: Session) -> None:
    """
    Checks a proposed split without writing anything.

    Args:
        owners: list of {"user_id": int, "percentage": Decimal}.

    Raises:
        AppError(INVALID_SPLIT, 422)  — see module docstring.
        AppError(USER_NOT_FOUND, 404) — one or more owners do not exist.
    """
    if not owners:
        raise invalid_split("At least one expense owner is required.")

    seen: set[int] = set()
    total = Decimal("0")
    for owner in owners:
        user_id = owner["user_id"]
        percentage = _as_decimal(owner["percentage"])

        _validate_percentage(percentage, user_id)

        if user_id in seen:
            raise invalid_split(f"User {user_id} appears more than once in expense_owners.")
        seen.add(user_id)
        total += percentage

    # Decimal equality: 99.99 and 100.01 are both rejected.
    if total != HUNDRED:
        raise invalid_split(f"Owner percentages sum to {total}; they must sum to exactly 100.")

    missing = _find_missing_user_ids([o["user_id"] for o in owners], session)
    if missing:
        ids = ", ".join(str(uid) for uid in missing)
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"Users not found: {ids}.",
            404,
            field="expense_owners",
        )


def build_owner_rows(owners: list[dict]) -> list[ExpenseOwner]:
    """Creates (unsaved) ExpenseOwner rows in input order. Call validate_owners() first."""
    return [
        ExpenseOwner(
            user_id=o["user_id"],
            percentage=_as_decimal(o["percentage"]),
        )
        for o in owners
    ]


def replace_owners(expense: Expense, owners: list[dict], session: Session) -> None:
    """
    Validates the new split, removes every current owner row and inserts the
    new ones, all inside the caller's transaction.

    Validation happens before the delete, so a rejected split leaves the
    stored split untouched. Applying the same split twice yields the same
    final state.
    """
    validate_owners(owners, session)

    # delete-orphan cascade removes the old rows; flush before inserting so
    # UNIQUE(expense_id, user_id) does not see old and new rows together.
    expense.owners.clear()
    session.flush()

    expense.owners.extend(build_owner_rows(owners))
    session.flush()


def owners_by_percentage(expense: Expense) -> list[ExpenseOwner]:
    """Owners by percentage, highest first; equal shares keep owner id order."""
    return sorted(expense.owners, key=lambda o: _as_decimal(o.percentage), reverse=True)


def compute_individual_amounts(expense: Expense) -> list[dict]:
    """
    Per-owner share of the expense amount.

    Pure: reads expense.amount and expense.owners (ordered by owner id) and
    touches no session.

    Returns:
        [{"user": {...}, "percentage": Decimal, "amount": Decimal}, ...]
        in owners_by_percentage() order.
    """
    amount = _as_decimal(expense.amount)
    return [
        {
            "user": public_user_block(owner.user),
            "percentage": _as_decimal(owner.percentage),
            "amount": (amount * _as_decimal(owner.percentage) / HUNDRED).quantize(
                CENT, rounding=ROUND_HALF_UP
            ),
        }
        for owner in owners_by_percentage(expense)
    ]
