"""
schemas/expense_schema.py — Marshmallow schemas for expense endpoints.

Validation responsibility:
  - This file:
      - Field types, lengths, decimal precision of amount
      - expense_owners only by shape: a list of {user_id, percentage}
  - services/split_service.py:
      - INVALID_SPLIT (422)   — empty list, percentage outside (0, 100] or
                              > 2 dp, repeated user, sum other than 100
      - USER_NOT_FOUND (404) — every owner must reference an existing user
  - services/expense_service.py:
      - CATEGORY_NOT_FOUND / CATEGORY_TYPE_MISMATCH / CATEGORY_INACTIVE
      - CARD_ACCOUNT_NOT_FOUND / ACCOUNT_INACTIVE

Schemas inherit from marshmallow.Schema and load without an app context.
"""

from __future__ import annotations

from datetime import timezone
from decimal import Decimal

from marshmallow import Schema, fields, validate

from kontas.app.schemas.common import (
    DateAmountFilterSchema,
    PaginationSchema,
    id_field,
    name_field,
    validate_monetary_amount,
)


# ── Sub-schema: one entry in the `expense_owners` array ───────────────────

class ExpenseOwnerInputSchema(Schema):
    """
    One responsible user and their share of the expense.

    percentage defaults to 100 so a single-owner expense can omit it. Its
    range, precision and the list-level rules are left to
    split_service.validate_owners() so every broken split is INVALID_SPLIT.
    """

    user_id = id_field("user_id")

    percentage = fields.Decimal(load_default=Decimal("100"))


def _owners_field(required: bool) -> fields.List:
    return fields.List(fields.Nested(ExpenseOwnerInputSchema), required=required)


# ── Create expense ─────────────────────────────────────────────────────────

class CreateExpenseSchema(Schema):
    """
    POST /expenses

    No split rule is checked here; every one belongs to
    split_service.validate_owners().
    """

    name = name_field(255)

    amount = fields.Decimal(
        required=True,
        validate=validate_monetary_amount,
    )

    category_id     = id_field("category_id")
    card_account_id = id_field("card_account_id")

    annotation = fields.Str(allow_none=True, validate=validate.Length(max=2000))

    expense_date = fields.AwareDateTime(required=True, default_timezone=timezone.utc)

    expense_owners = _owners_field(required=True)


# ── Update expense ─────────────────────────────────────────────────────────

class UpdateExpenseSchema(Schema):
    """
    PUT /expenses/:id — partial update.

    When expense_owners is present the whole split is replaced; when it is
    absent the current split is left untouched, even if amount changes
    (percentages do not depend on the amount).
    """

    name            = name_field(255, required=False)
    amount          = fields.Decimal(validate=validate_monetary_amount)
    category_id     = id_field("category_id", required=False)
    card_account_id = id_field("card_account_id", required=False)
    annotation      = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    expense_date    = fields.AwareDateTime(default_timezone=timezone.utc)
    expense_owners  = _owners_field(required=False)


# ── Query strings ──────────────────────────────────────────────────────────

class ExpenseListQuerySchema(DateAmountFilterSchema):
    """GET /expenses — see DateAmountFilterSchema for each filter's effect."""


class UserExpensesQuerySchema(PaginationSchema):
    """GET /expenses/user/:user_id"""

    category_id = fields.Int(validate=validate.Range(min=1))
    start_date  = fields.AwareDateTime(default_timezone=timezone.utc)
    end_date    = fields.AwareDateTime(default_timezone=timezone.utc)


class UserSummaryQuerySchema(Schema):
    """GET /expenses/user/:user_id/summary"""

    category_id = fields.Int(validate=validate.Range(min=1))
    start_date  = fields.AwareDateTime(default_timezone=timezone.utc)
    end_date    = fields.AwareDateTime(default_timezone=timezone.utc)


class DateRangeQuerySchema(DateAmountFilterSchema):
    """GET /expenses/date-range — both bounds are required."""

    start_date = fields.AwareDateTime(required=True, default_timezone=timezone.utc)
    end_date   = fields.AwareDateTime(required=True, default_timezone=timezone.utc)


class AmountRangeQuerySchema(DateAmountFilterSchema):
    """GET /expenses/amount-range — both bounds are required."""

    min_amount = fields.Decimal(required=True, validate=validate.Range(min=Decimal("0")))
    max_amount = fields.Decimal(required=True, validate=validate.Range(min=Decimal("0")))
