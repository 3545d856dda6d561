"""
models/income.py — Income table definition.

Incomes mirror expenses without the ownership split: one receiving user,
an INCOME-typed category and the account the money landed in.
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


class Income(db.Model):
    __tablename__ = "incomes"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_incomes_amount_positive"),
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_incomes_name_nonempty",
        ),
        Index("idx_incomes_income_date", "income_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

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

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    annotation: Mapped[str | None] = mapped_column(Text, nullable=True)

    income_date: Mapped[datetime] = mapped_column(
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
        back_populates="incomes",
    )

    card_account: Mapped["CardAccount"] = relationship(  # noqa: F821
        "CardAccount",
        back_populates="incomes",
    )

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="incomes",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Income id={self.id} name={self.name!r} amount={self.amount}>"
