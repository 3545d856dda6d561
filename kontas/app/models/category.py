"""
models/category.py — Category table definition.

A category classifies either expenses or incomes (never both). The pair
(name, type) is unique; the service checks it first and the constraint
below is the backstop for concurrent requests.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    String,
    Text,
    UniqueConstraint,
    func,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kontas.app.extensions import db
from kontas.app.models.user import _enum_values


class CategoryType(str, enum.Enum):
    INCOME  = "INCOME"
    EXPENSE = "EXPENSE"


class Category(db.Model):
    __tablename__ = "categories"

    __table_args__ = (
        UniqueConstraint("name", "type", name="uq_categories_name_type"),
        CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_categories_name_nonempty",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    type: Mapped[CategoryType] = mapped_column(
        Enum(
            CategoryType,
            name="category_type_enum",
            native_enum=False,
            length=20,
            values_callable=_enum_values,
        ),
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # "#RRGGBB"
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

    expenses: Mapped[list["Expense"]] = relationship(  # noqa: F821
        "Expense",
        back_populates="category",
    )

    incomes: Mapped[list["Income"]] = relationship(  # noqa: F821
        "Income",
        back_populates="category",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Category id={self.id} name={self.name!r} "
            f"type={self.type.value} active={self.active}>"
        )
