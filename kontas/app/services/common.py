"""
services/common.py — Query helpers shared by several services.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from kontas.app.models.expense import Expense
from kontas.app.models.income import Income


def paginate(stmt: Select, page: int, limit: int, session: Session) -> tuple[list, int]:
    """
    Runs an ordered SELECT for one page and counts the full result set.

    Returns (items, total). page is 1-based.
    """
    total = session.execute(
        select(func.count()).select_from(stmt.order_by(None).subquery())
    ).scalar_one()

    items = session.execute(
        stmt.offset((page - 1) * limit).limit(limit)
    ).scalars().all()

    return list(items), int(total)


def sum_amount(column, stmt_filters: list, session: Session) -> Decimal:
    """SUM(column) over the filtered rows; Decimal("0") for an empty set."""
    total = session.execute(
        select(func.coalesce(func.sum(column), 0)).where(*stmt_filters)
    ).scalar_one()
    return Decimal(str(total)).quantize(Decimal("0.01"))


def count_transactions(column_name: str, value: int, session: Session) -> tuple[int, int]:
    """
    Number of expenses and incomes whose `column_name` equals `value`.

    Used by the category / card account delete guard and stats endpoints.
    """
    expense_count = session.execute(
        select(func.count(Expense.id)).where(getattr(Expense, column_name) == value)
    ).scalar_one()
    income_count = session.execute(
        select(func.count(Income.id)).where(getattr(Income, column_name) == value)
    ).scalar_one()
    return int(expense_count), int(income_count)
