"""
schemas/user_schema.py — Marshmallow schemas for user administration.

Cross-entity rules (username / email uniqueness) live in user_service.py
because they require a DB query.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates

from kontas.app.models.user import UserRole


class CreateUserSchema(Schema):
    """
    POST /users  (admin only)

    Field rules:
      username  : 3–50 chars, letters, digits, dot and underscore
      full_name : 3–100 chars
      email     : valid email format
      phone     : exactly 11 digits
      password  : 8–64 chars, at least one letter and one digit
      role      : 'member' only — administrators are created from the CLI
    """

    username = fields.Str(
        required=True,
        validate=[
            validate.Length(
                min=3,
                max=50,
                error="Username must be between 3 and 50 characters.",
            ),
            validate.Regexp(
                r"^[a-zA-Z0-9_.]+$",
                error="Username may only contain letters, numbers, dots and underscores.",
            ),
        ],
    )

    full_name = fields.Str(
        required=True,
        validate=validate.Length(
            min=3,
            max=100,
            error="Full name must be between 3 and 100 characters.",
        ),
    )

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )

    phone = fields.Str(
        required=True,
        validate=validate.Regexp(
            r"^\d{11}$",
            error="Phone must contain exactly 11 digits.",
        ),
    )

    profile_picture = fields.Str(
        allow_none=True,
        validate=validate.Length(max=500),
    )

    password = fields.Str(required=True, load_only=True)

    role = fields.Enum(
        UserRole,
        by_value=True,
        load_default=UserRole.MEMBER,
        validate=validate.Equal(UserRole.MEMBER, error="Only members can be created through the API."),
    )

    @validates("password")
    def validate_password_strength(self, value: str, **kwargs) -> None:
        if len(value) < 8 or len(value) > 64:
            raise ValidationError("Password must be between 8 and 64 characters long.")
        if not any(c.isalpha() for c in value):
            raise ValidationError("Password must contain at least one letter.")
        if not any(c.isdigit() for c in value):
            raise ValidationError("Password must contain at least one digit.")
