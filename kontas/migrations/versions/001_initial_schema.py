"""Initial schema — all tables, constraints, and indexes.

Revision: 001_initial_schema
Created:  2026-10-18

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order (FK dependency order):
  users → categories → card_accounts → expenses → expense_owners → incomes

Enum columns (users.role, categories.type, card_accounts.type) are stored
as VARCHAR(20); the models map them with Enum(native_enum=False), so no
PostgreSQL enum types are created.

ON DELETE policies:
  card_accounts.user_id         → RESTRICT
  expenses.category_id          → RESTRICT  (services refuse earlier: RESOURCE_IN_USE)
  expenses.card_account_id      → RESTRICT
  expense_owners.expense_id     → CASCADE   (owners belong to their expense)
  expense_owners.user_id        → RESTRICT
  incomes.*                     → RESTRICT
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    ]


def upgrade() -> None:

    # ── users ──────────────────────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("full_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(11), nullable=False),
        sa.Column("profile_picture", sa.String(500), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="member"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint(
            "LENGTH(TRIM(username)) > 0",
            name="ck_users_username_nonempty",
        ),
        sa.CheckConstraint(
            "email LIKE '%@%'",
            name="ck_users_email_format",
        ),
    )

    # ── categories ─────────────────────────────────────────────────────────
    # (name, type) unique: the same name may exist once as INCOME and
    # once as EXPENSE.

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(7), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_categories"),
        sa.UniqueConstraint("name", "type", name="uq_categories_name_type"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_categories_name_nonempty",
        ),
    )

    # ── card_accounts ──────────────────────────────────────────────────────

    op.create_table(
        "card_accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_card_accounts_user"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("bank_name", sa.String(100), nullable=True),
        sa.Column("last_digits", sa.String(4), nullable=True),
        sa.Column("color", sa.String(7), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_card_accounts"),
        sa.UniqueConstraint("user_id", "name", name="uq_card_accounts_user_name"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_card_accounts_name_nonempty",
        ),
    )

    # ── expenses ───────────────────────────────────────────────────────────

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="RESTRICT", name="fk_expenses_category"),
            nullable=False,
        ),
        sa.Column(
            "card_account_id",
            sa.Integer(),
            sa.ForeignKey("card_accounts.id", ondelete="RESTRICT", name="fk_expenses_card_account"),
            nullable=False,
        ),
        sa.Column("annotation", sa.Text(), nullable=True),
        sa.Column("expense_date", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_expenses"),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_expenses_name_nonempty",
        ),
    )

    # ── expense_owners ─────────────────────────────────────────────────────
    # The sum of percentages per expense is checked by the deferred trigger
    # in migration 002.

    op.create_table(
        "expense_owners",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "expense_id",
            sa.Integer(),
            sa.ForeignKey("expenses.id", ondelete="CASCADE", name="fk_expense_owners_expense"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_expense_owners_user"),
            nullable=False,
        ),
        sa.Column("percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_expense_owners"),
        sa.UniqueConstraint("expense_id", "user_id", name="uq_expense_owners_expense_user"),
        sa.CheckConstraint(
            "percentage > 0 AND percentage <= 100",
            name="ck_expense_owners_percentage_range",
        ),
    )

    # ── incomes ────────────────────────────────────────────────────────────

    op.create_table(
        "incomes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="RESTRICT", name="fk_incomes_category"),
            nullable=False,
        ),
        sa.Column(
            "card_account_id",
            sa.Integer(),
            sa.ForeignKey("card_accounts.id", ondelete="RESTRICT", name="fk_incomes_card_account"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="RESTRICT", name="fk_incomes_user"),
            nullable=False,
        ),
        sa.Column("annotation", sa.Text(), nullable=True),
        sa.Column("income_date", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_incomes"),
        sa.CheckConstraint("amount > 0", name="ck_incomes_amount_positive"),
        sa.CheckConstraint(
            "LENGTH(TRIM(name)) > 0",
            name="ck_incomes_name_nonempty",
        ),
    )

    # ── Indexes ────────────────────────────────────────────────────────────
    # ix_* names match SQLAlchemy's defaults for mapped_column(index=True)
    # so autogenerate sees no drift.

    op.create_index("ix_card_accounts_user_id", "card_accounts", ["user_id"])

    op.create_index("ix_expenses_category_id", "expenses", ["category_id"])
    op.create_index("ix_expenses_card_account_id", "expenses", ["card_account_id"])
    op.create_index("idx_expenses_expense_date", "expenses", ["expense_date"])

    op.create_index("ix_expense_owners_expense_id", "expense_owners", ["expense_id"])
    op.create_index("ix_expense_owners_user_id", "expense_owners", ["user_id"])

    op.create_index("ix_incomes_category_id", "incomes", ["category_id"])
    op.create_index("ix_incomes_card_account_id", "incomes", ["card_account_id"])
    op.create_index("ix_incomes_user_id", "incomes", ["user_id"])
    op.create_index("idx_incomes_income_date", "incomes", ["income_date"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.

    Provided for local development reset. In production prefer a corrective
    migration over a rollback.
    """
    op.drop_index("idx_incomes_income_date",      table_name="incomes")
    op.drop_index("ix_incomes_user_id",           table_name="incomes")
    op.drop_index("ix_incomes_card_account_id",   table_name="incomes")
    op.drop_index("ix_incomes_category_id",       table_name="incomes")
    op.drop_index("ix_expense_owners_user_id",    table_name="expense_owners")
    op.drop_index("ix_expense_owners_expense_id", table_name="expense_owners")
    op.drop_index("idx_expenses_expense_date",    table_name="expenses")
    op.drop_index("ix_expenses_card_account_id",  table_name="expenses")
    op.drop_index("ix_expenses_category_id",      table_name="expenses")
    op.drop_index("ix_card_accounts_user_id",     table_name="card_accounts")

    op.drop_table("incomes")
    op.drop_table("expense_owners")
    op.drop_table("expenses")
    op.drop_table("card_accounts")
    op.drop_table("categories")
    op.drop_table("users")
