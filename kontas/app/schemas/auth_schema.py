"""
schemas/auth_schema.py — Marshmallow schemas for authentication endpoints.

Credential correctness is checked in auth_service.py; these schemas only
check shape.

Schemas inherit from marshmallow.Schema and load without an app context.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class LoginSchema(Schema):
    """
    POST /auth/login

    Accepts username (not email) + password. Credential correctness
    is checked in auth_service.py (INVALID_CREDENTIALS, 401).
    """

    username = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=1, max=64))


class RefreshTokenSchema(Schema):
    """
    POST /auth/refresh

    Token validity (signature, expiry, token type) is checked in
    auth_service.py (REFRESH_TOKEN_INVALID, 401).
    """

    refresh_token = fields.Str(required=True)
