"""
models/expense.py — Expense table definition.

Columns and constraints only. No business logic. No imports from services
or routes.

Key design points:
  - `amount` uses Numeric(12, 2) — never Float.
  - category_id and card_account_id are ON DELETE RESTRICT; the services
    refuse such deletes earlier with RESOURCE_IN_USE.
  - `owners` is the percentage split. It is created together with the
    expense, replaced wholesale on update and removed with the expense
    (ORM cascade + ON DELETE CASCADE on the owner FK).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kontas.app.extensions import db


class Expense(db.Model):
    __tablename__ = "expenses"

    __table_args__ = (
        # Also enforced by the marshmallow schema.
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_expenses_name_nonempty",
        ),
        # List endpoints order by expense_date and filter by date range.
        Index("idx_expenses_expense_date", "expense_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Never Float. Input with >2 decimal places is rejected by the schema
    # (INVALID_AMOUNT_PRECISION), not rounded.
    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    category_id: Mapped[int] = mapped_column(
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    card_account_id: Mapped[int] = mapped_column(
        ForeignKey("card_accounts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    annotation: Mapped[str | None] = mapped_column(Text, nullable=True)

    expense_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    category: Mapped["Category"] = relationship(  # noqa: F821
        "Category",
        back_populates="expenses",
    )

    card_account: Mapped["CardAccount"] = relationship(  # noqa: F821
        "CardAccount",
        back_populates="expenses",
    )

    # Ordered by id so that insertion order is the tie-breaker when owners
    # are sorted by percentage.
    owners: Mapped[list["ExpenseOwner"]] = relationship(  # noqa: F821
        "ExpenseOwner",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseOwner.id",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Expense id={self.id} "
            f"name={self.name!r} "
            f"amount={self.amount} "
            f"owners={len(self.owners)}>"
        )
