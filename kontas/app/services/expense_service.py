"""
services/expense_service.py — Expense business logic.

Rules enforced here (in this order, all before any write):
  INVALID_SPLIT (422) / USER_NOT_FOUND (404) — via split_service.validate_owners
  CATEGORY_NOT_FOUND (404)
  CATEGORY_TYPE_MISMATCH (422)  — category must be an EXPENSE category
  CATEGORY_INACTIVE (422)
  CARD_ACCOUNT_NOT_FOUND (404)
  ACCOUNT_INACTIVE (422)

Ownership split:
  - Created together with the expense in a single flush.
  - Replaced wholesale on update when `expense_owners` is sent; left
    untouched otherwise (also when only the amount changes).
  - Removed with the expense (delete-orphan cascade).

Layer rules:
  - No Flask imports. No current_app, request, g, or HTTP knowledge.
  - Receives plain ints and dicts; returns ORM objects or raises AppError.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from kontas.app.errors import AppError, ErrorCode
from kontas.app.models.card_account import CardAccount
from kontas.app.models.category import Category, CategoryType
from kontas.app.models.expense import Expense
from kontas.app.models.expense_owner import ExpenseOwner
from kontas.app.models.user import User
from kontas.app.services import split_service
from kontas.app.services.card_account_service import get_card_account_or_404
from kontas.app.services.category_service import get_category_or_404
from kontas.app.services.common import paginate, sum_amount


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExpenseFilters:
    """
    Closed set of list filters. Every field is optional and narrows the
    result; bounds are inclusive.
    """

    category_id: int | None = None
    card_account_id: int | None = None
    user_id: int | None = None           # expense has an owner row for this user
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None

    @classmethod
    def from_query(cls, data: dict) -> "ExpenseFilters":
        """Builds filters from a loaded DateAmountFilterSchema dict; extra keys are ignored."""
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})

    def clauses(self) -> list:
        where = []
        if self.category_id is not None:
            where.append(Expense.category_id == self.category_id)
        if self.card_account_id is not None:
            where.append(Expense.card_account_id == self.card_account_id)
        if self.user_id is not None:
            where.append(Expense.owners.any(ExpenseOwner.user_id == self.user_id))
        if self.start_date is not None:
            where.append(Expense.expense_date >= self.start_date)
        if self.end_date is not None:
            where.append(Expense.expense_date <= self.end_date)
        if self.min_amount is not None:
            where.append(Expense.amount >= self.min_amount)
        if self.max_amount is not None:
            where.append(Expense.amount <= self.max_amount)
        return where


# ── Private helpers ────────────────────────────────────────────────────────

def _get_expense_or_404(expense_id: int, session: Session) -> Expense:
    """Returns the Expense or raises EXPENSE_NOT_FOUND (404)."""
    expense = session.get(Expense, expense_id)
    if expense is None:
        raise AppError(
            ErrorCode.EXPENSE_NOT_FOUND,
            f"Expense {expense_id} does not exist.",
            404,
        )
    return expense


def _require_expense_category(category_id: int, session: Session) -> Category:
    category = get_category_or_404(category_id, session)
    if category.type != CategoryType.EXPENSE:
        raise AppError(
            ErrorCode.CATEGORY_TYPE_MISMATCH,
            f"Category {category_id} is an {category.type.value} category; "
            f"expenses require an EXPENSE category.",
            422,
            field="category_id",
        )
    if not category.active:
        raise AppError(
            ErrorCode.CATEGORY_INACTIVE,
            f"Category {category_id} is inactive.",
            422,
            field="category_id",
        )
    return category


def _require_active_account(card_account_id: int, session: Session) -> CardAccount:
    account = get_card_account_or_404(card_account_id, session)
    if not account.active:
        raise AppError(
            ErrorCode.ACCOUNT_INACTIVE,
            f"Card account {card_account_id} is inactive.",
            422,
            field="card_account_id",
        )
    return account


def _require_user(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
        )
    return user


def _listing_stmt(filters: ExpenseFilters):
    return (
        select(Expense)
        .where(*filters.clauses())
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
    )


# ── Public service functions ───────────────────────────────────────────────

def create_expense(data: dict, session: Session) -> Expense:
    """
    Records a new expense and its ownership split.

    Args:
        data: Validated dict from CreateExpenseSchema.

    Every check runs before the expense row is added, so a rejected
    request leaves no partial state. The expense and its owners are
    written in one flush.
    """
    owners = data["expense_owners"]
    split_service.validate_owners(owners, session)
    _require_expense_category(data["category_id"], session)
    _require_active_account(data["card_account_id"], session)

    expense = Expense(
        name=data["name"],
        amount=data["amount"],
        category_id=data["category_id"],
        card_account_id=data["card_account_id"],
        annotation=data.get("annotation"),
        expense_date=data["expense_date"],
    )
    expense.owners = split_service.build_owner_rows(owners)
    session.add(expense)
    session.flush()

    logger.info(
        "Created expense %s (%s) with %s owner(s)",
        expense.id, expense.amount, len(expense.owners),
    )
    return expense


def get_expense(expense_id: int, session: Session) -> Expense:
    return _get_expense_or_404(expense_id, session)


def list_expenses(
        filters: ExpenseFilters,
        page: int,
        limit: int,
        session: Session,
) -> dict:
    """
    Returns one page of expenses matching `filters`, newest expense_date
    first, with the total count and total amount of ALL matching rows.

    Returns: {"expenses": [...], "total": int, "total_amount": Decimal}
    """
    expenses, total = paginate(_listing_stmt(filters), page, limit, session)
    return {
        "expenses":     expenses,
        "total":        total,
        "total_amount": sum_amount(Expense.amount, filters.clauses(), session),
    }


def list_user_expenses(
        user_id: int,
        filters: ExpenseFilters,
        page: int,
        limit: int,
        session: Session,
) -> dict:
    """Expenses the user owns a share of. Raises USER_NOT_FOUND for a missing user."""
    _require_user(user_id, session)
    filters = replace(filters, user_id=user_id)
    return list_expenses(filters, page, limit, session)


def list_category_expenses(
        category_id: int,
        page: int,
        limit: int,
        session: Session,
) -> dict:
    """Expenses of one category. The category must be an EXPENSE category."""
    category = get_category_or_404(category_id, session)
    if category.type != CategoryType.EXPENSE:
        raise AppError(
            ErrorCode.CATEGORY_TYPE_MISMATCH,
            f"Category {category_id} is not an EXPENSE category.",
            422,
            field="category_id",
        )
    return list_expenses(ExpenseFilters(category_id=category_id), page, limit, session)


def update_expense(expense_id: int, data: dict, session: Session) -> Expense:
    """
    Partially updates an expense.

    - category_id / card_account_id are re-checked only when they change.
    - expense_owners, when present, replaces the whole split (validated
      first; a rejected split leaves the stored one untouched).
    - Changing only the amount keeps the stored percentages.

    Args:
        data: Validated partial dict from UpdateExpenseSchema.
    """
    expense = _get_expense_or_404(expense_id, session)

    if "expense_owners" in data:
        split_service.validate_owners(data["expense_owners"], session)
    if "category_id" in data and data["category_id"] != expense.category_id:
        _require_expense_category(data["category_id"], session)
    if "card_account_id" in data and data["card_account_id"] != expense.card_account_id:
        _require_active_account(data["card_account_id"], session)

    for key in ("name", "amount", "category_id", "card_account_id", "annotation", "expense_date"):
        if key in data:
            setattr(expense, key, data[key])

    if "expense_owners" in data:
        split_service.replace_owners(expense, data["expense_owners"], session)

    session.flush()
    logger.info("Updated expense %s", expense.id)
    return expense


def delete_expense(expense_id: int, session: Session) -> None:
    """Hard delete. Owner rows are removed with the expense."""
    expense = _get_expense_or_404(expense_id, session)
    session.delete(expense)
    session.flush()
    logger.info("Deleted expense %s", expense_id)


def get_expense_stats(expense_id: int, session: Session) -> dict:
    """
    Returns: {"expense": Expense,
              "stats": {"total_owners": int, "individual_amounts": [...]}}
    """
    expense = _get_expense_or_404(expense_id, session)
    return {
        "expense": expense,
        "stats": {
            "total_owners":       len(expense.owners),
            "individual_amounts": split_service.compute_individual_amounts(expense),
        },
    }


def get_user_expenses_summary(
        user_id: int,
        session: Session,
        category_id: int | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
) -> dict:
    """
    Totals over the expenses the user owns a share of, grouped by category.

    Amounts are full expense amounts, not the user's percentage share.

    Returns:
        {"user": User,
         "summary": {"total_expenses": int, "total_amount": Decimal,
                     "expenses_by_category": [{"category", "count", "total_amount"}]}}
    """
    user = _require_user(user_id, session)
    filters = ExpenseFilters(
        user_id=user_id,
        category_id=category_id,
        start_date=start_date,
        end_date=end_date,
    )
    where = filters.clauses()

    total_expenses = session.execute(
        select(func.count(Expense.id)).where(*where)
    ).scalar_one()

    rows = session.execute(
        select(
            Category,
            func.count(Expense.id),
            func.coalesce(func.sum(Expense.amount), 0),
        )
        .join(Expense, Expense.category_id == Category.id)
        .where(*where)
        .group_by(Category.id)
        .order_by(Category.name.asc())
    ).all()

    return {
        "user": user,
        "summary": {
            "total_expenses": int(total_expenses),
            "total_amount":   sum_amount(Expense.amount, where, session),
            "expenses_by_category": [
                {
                    "category":     category,
                    "count":        int(count),
                    "total_amount": Decimal(str(total)).quantize(Decimal("0.01")),
                }
                for category, count, total in rows
            ],
        },
    }
