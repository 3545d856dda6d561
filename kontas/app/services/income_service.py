"""
services/income_service.py — Income business logic.

Incomes mirror expenses without the ownership split: each income is
received by a single user.

Rules enforced here (before any write):
  CATEGORY_NOT_FOUND (404) / CATEGORY_TYPE_MISMATCH (422) / CATEGORY_INACTIVE (422)
  CARD_ACCOUNT_NOT_FOUND (404) / ACCOUNT_INACTIVE (422)
  USER_NOT_FOUND (404) — receiving user

Layer rules:
  - No Flask imports. Only flush — the route commits.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from kontas.app.errors import AppError, ErrorCode
from kontas.app.models.category import CategoryType
from kontas.app.models.income import Income
from kontas.app.models.user import User
from kontas.app.services.card_account_service import get_card_account_or_404
from kontas.app.services.category_service import get_category_or_404
from kontas.app.services.common import paginate, sum_amount


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncomeFilters:
    category_id: int | None = None
    card_account_id: int | None = None
    user_id: int | None = None           # receiving user
    start_date: datetime | None = None
    end_date: datetime | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None

    @classmethod
    def from_query(cls, data: dict) -> "IncomeFilters":
        return cls(**{k: data.get(k) for k in cls.__dataclass_fields__})

    def clauses(self) -> list:
        where = []
        if self.category_id is not None:
            where.append(Income.category_id == self.category_id)
        if self.card_account_id is not None:
            where.append(Income.card_account_id == self.card_account_id)
        if self.user_id is not None:
            where.append(Income.user_id == self.user_id)
        if self.start_date is not None:
            where.append(Income.income_date >= self.start_date)
        if self.end_date is not None:
            where.append(Income.income_date <= self.end_date)
        if self.min_amount is not None:
            where.append(Income.amount >= self.min_amount)
        if self.max_amount is not None:
            where.append(Income.amount <= self.max_amount)
        return where


# ── Private helpers ────────────────────────────────────────────────────────

def _get_income_or_404(income_id: int, session: Session) -> Income:
    income = session.get(Income, income_id)
    if income is None:
        raise AppError(
            ErrorCode.INCOME_NOT_FOUND,
            f"Income {income_id} does not exist.",
            404,
        )
    return income


def _require_income_category(category_id: int, session: Session) -> None:
    category = get_category_or_404(category_id, session)
    if category.type != CategoryType.INCOME:
        raise AppError(
            ErrorCode.CATEGORY_TYPE_MISMATCH,
            f"Category {category_id} is an {category.type.value} category; "
            f"incomes require an INCOME category.",
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


def _require_active_account(card_account_id: int, session: Session) -> None:
    account = get_card_account_or_404(card_account_id, session)
    if not account.active:
        raise AppError(
            ErrorCode.ACCOUNT_INACTIVE,
            f"Card account {card_account_id} is inactive.",
            422,
            field="card_account_id",
        )


def _require_user(user_id: int, session: Session) -> None:
    if session.get(User, user_id) is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
            field="user_id",
        )


# ── Public service functions ───────────────────────────────────────────────

def create_income(data: dict, receiver_id: int, session: Session) -> Income:
    """
    Args:
        data:        Validated dict from CreateIncomeSchema.
        receiver_id: data["user_id"] or the authenticated user (route decides).
    """
    _require_income_category(data["category_id"], session)
    _require_active_account(data["card_account_id"], session)
    _require_user(receiver_id, session)

    income = Income(
        name=data["name"],
        amount=data["amount"],
        category_id=data["category_id"],
        card_account_id=data["card_account_id"],
        user_id=receiver_id,
        annotation=data.get("annotation"),
        income_date=data["income_date"],
    )
    session.add(income)
    session.flush()

    logger.info("Created income %s (%s) for user %s", income.id, income.amount, receiver_id)
    return income


def get_income(income_id: int, session: Session) -> Income:
    return _get_income_or_404(income_id, session)


def list_incomes(filters: IncomeFilters, page: int, limit: int, session: Session) -> dict:
    """Returns: {"incomes": [...], "total": int, "total_amount": Decimal}"""
    stmt = (
        select(Income)
        .where(*filters.clauses())
        .order_by(Income.income_date.desc(), Income.id.desc())
    )
    incomes, total = paginate(stmt, page, limit, session)
    return {
        "incomes":      incomes,
        "total":        total,
        "total_amount": sum_amount(Income.amount, filters.clauses(), session),
    }


def update_income(income_id: int, data: dict, session: Session) -> Income:
    income = _get_income_or_404(income_id, session)

    if "category_id" in data and data["category_id"] != income.category_id:
        _require_income_category(data["category_id"], session)
    if "card_account_id" in data and data["card_account_id"] != income.card_account_id:
        _require_active_account(data["card_account_id"], session)
    if "user_id" in data:
        _require_user(data["user_id"], session)

    for key in ("name", "amount", "category_id", "card_account_id", "user_id",
                "annotation", "income_date"):
        if key in data:
            setattr(income, key, data[key])

    session.flush()
    logger.info("Updated income %s", income.id)
    return income


def delete_income(income_id: int, session: Session) -> None:
    income = _get_income_or_404(income_id, session)
    session.delete(income)
    session.flush()
    logger.info("Deleted income %s", income_id)
