"""
schemas/income_schema.py — Marshmallow schemas for income endpoints.
"""

from __future__ import annotations

from datetime import timezone

from marshmallow import Schema, fields, validate

from kontas.app.schemas.common import (
    DateAmountFilterSchema,
    id_field,
    name_field,
    validate_monetary_amount,
)


class CreateIncomeSchema(Schema):
    """
    POST /incomes

    user_id (the receiving user) defaults to the authenticated user.
    """

    name            = name_field(255)
    amount          = fields.Decimal(required=True, validate=validate_monetary_amount)
    category_id     = id_field("category_id")
    card_account_id = id_field("card_account_id")
    user_id         = id_field("user_id", required=False)
    annotation      = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    income_date     = fields.AwareDateTime(required=True, default_timezone=timezone.utc)


class UpdateIncomeSchema(Schema):
    """PUT /incomes/:id — partial update."""

    name            = name_field(255, required=False)
    amount          = fields.Decimal(validate=validate_monetary_amount)
    category_id     = id_field("category_id", required=False)
    card_account_id = id_field("card_account_id", required=False)
    user_id         = id_field("user_id", required=False)
    annotation      = fields.Str(allow_none=True, validate=validate.Length(max=2000))
    income_date     = fields.AwareDateTime(default_timezone=timezone.utc)


class IncomeListQuerySchema(DateAmountFilterSchema):
    """GET /incomes"""
