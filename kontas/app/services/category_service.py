"""
services/category_service.py — Category business logic.

Rules enforced here:
  DUPLICATE_CATEGORY (409) — (name, type) already used by another category
  CATEGORY_NOT_FOUND (404)
  RESOURCE_IN_USE    (409) — delete refused while expenses/incomes reference it

Toggle-status flips `active` only. Inactive categories stay attached to
existing transactions but cannot be used for new ones (expense_service).

Layer rules:
  - No Flask imports. Only flush — the route commits.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from kontas.app.errors import AppError, ErrorCode, resource_in_use
from kontas.app.models.category import Category, CategoryType
from kontas.app.models.expense import Expense
from kontas.app.models.income import Income
from kontas.app.services.common import count_transactions, paginate, sum_amount


logger = logging.getLogger(__name__)


# ── Lookup helpers ─────────────────────────────────────────────────────────

def get_category_or_404(category_id: int, session: Session) -> Category:
    """Returns the Category or raises CATEGORY_NOT_FOUND (404)."""
    category = session.get(Category, category_id)
    if category is None:
        raise AppError(
            ErrorCode.CATEGORY_NOT_FOUND,
            f"Category {category_id} does not exist.",
            404,
        )
    return category


def _ensure_unique(
        name: str,
        category_type: CategoryType,
        session: Session,
        exclude_id: int | None = None,
) -> None:
    stmt = select(Category.id).where(
        Category.name == name,
        Category.type == category_type,
    )
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)

    if session.execute(stmt).first() is not None:
        raise AppError(
            ErrorCode.DUPLICATE_CATEGORY,
            f"A {category_type.value} category named '{name}' already exists.",
            409,
            field="name",
        )


# ── Public service functions ───────────────────────────────────────────────

def create_category(data: dict, session: Session) -> Category:
    """
    Args:
        data: Validated dict from CreateCategorySchema.
    """
    _ensure_unique(data["name"], data["type"], session)

    category = Category(
        name=data["name"],
        type=data["type"],
        description=data.get("description"),
        color=data.get("color"),
        active=data.get("active", True),
    )
    session.add(category)
    session.flush()
    return category


def list_categories(
        session: Session,
        page: int,
        limit: int,
        category_type: CategoryType | None = None,
        active: bool | None = None,
) -> tuple[list[Category], int]:
    """Returns (page of categories ordered by name, total matching)."""
    stmt = select(Category).order_by(Category.name.asc(), Category.id.asc())
    if category_type is not None:
        stmt = stmt.where(Category.type == category_type)
    if active is not None:
        stmt = stmt.where(Category.active.is_(active))
    return paginate(stmt, page, limit, session)


def list_active_by_type(category_type: CategoryType, session: Session) -> list[Category]:
    stmt = (
        select(Category)
        .where(Category.type == category_type, Category.active.is_(True))
        .order_by(Category.name.asc())
    )
    return list(session.execute(stmt).scalars().all())


def update_category(category_id: int, data: dict, session: Session) -> Category:
    """
    Partial update. Only keys present in `data` change.

    (name, type) uniqueness is re-checked against the effective values,
    excluding the category itself.
    """
    category = get_category_or_404(category_id, session)

    if "name" in data or "type" in data:
        _ensure_unique(
            data.get("name", category.name),
            data.get("type", category.type),
            session,
            exclude_id=category.id,
        )

    for key in ("name", "type", "description", "color", "active"):
        if key in data:
            setattr(category, key, data[key])

    session.flush()
    return category


def delete_category(category_id: int, session: Session) -> None:
    """
    Raises:
        AppError(CATEGORY_NOT_FOUND, 404)
        AppError(RESOURCE_IN_USE, 409) — referenced by any expense or income.
    """
    category = get_category_or_404(category_id, session)

    expense_count, income_count = count_transactions("category_id", category.id, session)
    if expense_count + income_count > 0:
        logger.info(
            "Refused to delete category %s: %s expenses, %s incomes",
            category.id, expense_count, income_count,
        )
        raise resource_in_use("Category", category.id)

    session.delete(category)
    session.flush()


def toggle_category_status(category_id: int, session: Session) -> Category:
    category = get_category_or_404(category_id, session)
    category.active = not category.active
    session.flush()
    return category


def get_category_stats(category_id: int, session: Session) -> dict:
    category = get_category_or_404(category_id, session)

    expense_count, income_count = count_transactions("category_id", category.id, session)

    return {
        "expense_count":      expense_count,
        "income_count":       income_count,
        "total_expenses":     sum_amount(Expense.amount, [Expense.category_id == category.id], session),
        "total_incomes":      sum_amount(Income.amount, [Income.category_id == category.id], session),
        "total_transactions": expense_count + income_count,
    }
