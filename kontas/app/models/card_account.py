"""
models/card_account.py — CardAccount table definition.

A payment source (card, bank account, PIX key, cash) owned by one user.
The name is unique per owning user.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    String,
    UniqueConstraint,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kontas.app.extensions import db
from kontas.app.models.user import _enum_values


class CardAccountType(str, enum.Enum):
    CREDIT_CARD  = "CREDIT_CARD"
    DEBIT_CARD   = "DEBIT_CARD"
    BANK_ACCOUNT = "BANK_ACCOUNT"
    PIX          = "PIX"
    CASH         = "CASH"


class CardAccount(db.Model):
    __tablename__ = "card_accounts"

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_card_accounts_user_name"),
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_card_accounts_name_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # ON DELETE RESTRICT: a user with accounts cannot be removed.
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    type: Mapped[CardAccountType] = mapped_column(
        Enum(
            CardAccountType,
            name="card_account_type_enum",
            native_enum=False,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=False,
    )

    bank_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    last_digits: Mapped[str | None] = mapped_column(String(4), nullable=True)

    color: Mapped[str | None] = mapped_column(String(7), nullable=True)

    active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
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

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="card_accounts",
    )

    expenses: Mapped[list["Expense"]] = relationship(  # noqa: F821
        "Expense",
        back_populates="card_account",
    )

    incomes: Mapped[list["Income"]] = relationship(  # noqa: F821
        "Income",
        back_populates="card_account",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<CardAccount id={self.id} user_id={self.user_id} "
            f"name={self.name!r} active={self.active}>"
        )
