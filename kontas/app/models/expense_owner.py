"""
models/expense_owner.py — ExpenseOwner table definition.

One row per user responsible for an expense, carrying that user's share as
a percentage. No business logic. No imports from services or routes.

Key design points:
  - `percentage` uses Numeric(5, 2) — range (0, 100], never Float.
  - expense_id is ON DELETE CASCADE — owner rows belong to their expense.
  - user_id is ON DELETE RESTRICT — a user with expense shares is kept.
  - UNIQUE(expense_id, user_id) prevents the same user appearing twice in
    one split (rejected earlier as INVALID_SPLIT by the split service).

The sum-to-100 rule is enforced in services/split_service.py, and on
PostgreSQL by the deferred trigger in migration 002.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Numeric,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kontas.app.extensions import db


class ExpenseOwner(db.Model):
    __tablename__ = "expense_owners"

    __table_args__ = (
        UniqueConstraint("expense_id", "user_id", name="uq_expense_owners_expense_user"),
        CheckConstraint(
            "percentage > 0 AND percentage <= 100",
            name="ck_expense_owners_percentage_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    expense_id: Mapped[int] = mapped_column(
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ──────────────────────────────────────────────────────

    expense: Mapped["Expense"] = relationship(  # noqa: F821
        "Expense",
        back_populates="owners",
    )

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="expense_shares",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<ExpenseOwner id={self.id} "
            f"expense_id={self.expense_id} "
            f"user_id={self.user_id} "
            f"percentage={self.percentage}>"
        )
