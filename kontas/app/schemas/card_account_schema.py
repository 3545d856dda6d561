"""
schemas/card_account_schema.py — Marshmallow schemas for card/account endpoints.

Per-user name uniqueness and owner existence are checked in
card_account_service.py.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from kontas.app.errors import ErrorCode
from kontas.app.models.card_account import CardAccountType
from kontas.app.schemas.common import PaginationSchema, color_field, id_field, name_field


def _account_type_field(**kwargs) -> fields.Enum:
    return fields.Enum(
        CardAccountType,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_CARD_ACCOUNT_TYPE},
        **kwargs,
    )


def _last_digits_field() -> fields.Str:
    return fields.Str(
        allow_none=True,
        validate=validate.Regexp(
            r"^\d{4}$",
            error="last_digits must contain exactly 4 digits.",
        ),
    )


class CreateCardAccountSchema(Schema):
    """
    POST /card-accounts

    user_id is optional; the route defaults it to the authenticated user.
    """

    user_id     = id_field("user_id", required=False)
    name        = name_field(100)
    type        = _account_type_field(required=True)
    bank_name   = fields.Str(allow_none=True, validate=validate.Length(max=100))
    last_digits = _last_digits_field()
    color       = color_field()
    active      = fields.Bool(load_default=True)


class UpdateCardAccountSchema(Schema):
    """PUT /card-accounts/:id — partial update."""

    user_id     = id_field("user_id", required=False)
    name        = name_field(100, required=False)
    type        = _account_type_field()
    bank_name   = fields.Str(allow_none=True, validate=validate.Length(max=100))
    last_digits = _last_digits_field()
    color       = color_field()
    active      = fields.Bool()


class CardAccountListQuerySchema(PaginationSchema):
    """GET /card-accounts?type=&active=&user_id=&page=&limit="""

    type    = _account_type_field()
    active  = fields.Bool()
    user_id = fields.Int(validate=validate.Range(min=1))


class CardAccountTypePathSchema(Schema):
    """GET /card-accounts/type/:type"""

    type = _account_type_field(required=True)
