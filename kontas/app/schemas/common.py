"""
schemas/common.py — Validators and schemas shared by several endpoints.

Money and percentages arrive as JSON numbers or numeric strings and are
loaded as Decimal. Amounts with more than 2 decimal places are REJECTED,
never rounded or truncated; percentages are checked by the split service.

Schemas inherit from marshmallow.Schema and load without an app context.
"""

from __future__ import annotations

from datetime import timezone
from decimal import Decimal

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from kontas.app.errors import ErrorCode


HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"
MAX_AMOUNT = Decimal("9999999999.99")


def _has_at_most_two_places(value: Decimal) -> bool:
    # Decimal("10.123").as_tuple().exponent == -3  → reject
    # Decimal("10.12").as_tuple().exponent  == -2  → accept
    # Decimal("10").as_tuple().exponent     ==  0  → accept
    return value.as_tuple().exponent >= -2


def validate_monetary_amount(value: Decimal) -> None:
    """Strictly positive, fits Numeric(12, 2), at most 2 decimal places."""
    if value <= Decimal("0"):
        raise ValidationError("Amount must be greater than zero.")
    if value > MAX_AMOUNT:
        raise ValidationError(f"Amount must be at most {MAX_AMOUNT}.")
    if not _has_at_most_two_places(value):
        raise ValidationError(ErrorCode.INVALID_AMOUNT_PRECISION)


def validate_non_empty_after_trim(value: str) -> None:
    """
    Raises ValidationError if the string is blank or only whitespace.
    Mirrors the DB CHECK(LENGTH(TRIM(...)) > 0) constraints at the API layer.
    """
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


def name_field(max_length: int, required: bool = True) -> fields.Str:
    return fields.Str(
        required=required,
        validate=[
            validate.Length(
                min=1,
                max=max_length,
                error=f"Name must be between 1 and {max_length} characters.",
            ),
            validate_non_empty_after_trim,
        ],
    )


def color_field() -> fields.Str:
    return fields.Str(
        allow_none=True,
        validate=validate.Regexp(
            HEX_COLOR_PATTERN,
            error="Color must be a hexadecimal color such as #FF5733.",
        ),
    )


def id_field(name: str, required: bool = True) -> fields.Int:
    return fields.Int(
        required=required,
        strict=True,
        validate=validate.Range(min=1, error=f"{name} must be a positive integer."),
    )


class PaginationSchema(Schema):
    """
    ?page=&limit= on list endpoints.

    limit is capped at 100; the route falls back to DEFAULT_PAGE_SIZE when
    it is omitted.
    """

    page = fields.Int(
        load_default=1,
        validate=validate.Range(min=1, error="page must be a positive integer."),
    )
    limit = fields.Int(
        load_default=None,
        validate=validate.Range(min=1, max=100, error="limit must be between 1 and 100."),
    )


class DateAmountFilterSchema(PaginationSchema):
    """
    Shared query-string filters for expense and income listings.

    Each field narrows the result set:
      category_id     exact match
      card_account_id exact match
      user_id         expense owner / income receiver
      start_date      inclusive lower bound on the transaction date
      end_date        inclusive upper bound on the transaction date
      min_amount      inclusive lower bound on amount
      max_amount      inclusive upper bound on amount
    """

    category_id     = fields.Int(validate=validate.Range(min=1))
    card_account_id = fields.Int(validate=validate.Range(min=1))
    user_id         = fields.Int(validate=validate.Range(min=1))
    start_date      = fields.AwareDateTime(default_timezone=timezone.utc)
    end_date        = fields.AwareDateTime(default_timezone=timezone.utc)
    min_amount      = fields.Decimal(validate=validate.Range(min=Decimal("0")))
    max_amount      = fields.Decimal(validate=validate.Range(min=Decimal("0")))

    @validates_schema
    def validate_ranges(self, data: dict, **kwargs) -> None:
        start, end = data.get("start_date"), data.get("end_date")
        if start is not None and end is not None and start > end:
            raise ValidationError({"end_date": ["end_date must not be before start_date."]})

        low, high = data.get("min_amount"), data.get("max_amount")
        if low is not None and high is not None and low > high:
            raise ValidationError({"max_amount": ["max_amount must not be below min_amount."]})
