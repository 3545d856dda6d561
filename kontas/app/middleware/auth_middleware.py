"""
middleware/auth_middleware.py — JWT authentication and role decorators.

The @require_auth decorator:
  1. Reads the Authorization header (expected: "Bearer <token>")
  2. Decodes and verifies the JWT signature using HS256
  3. Checks token expiry and that it is an access token
  4. Attaches user_id (int), username and role to flask.g
  5. Returns the appropriate 401 error if any step fails

The @require_role(role) decorator runs after @require_auth and raises
403 FORBIDDEN when g.role differs. It compares the role stored in the
token; a role change takes effect on the next login or refresh.

Error codes:
  TOKEN_MISSING  (401) — no Authorization header
  TOKEN_INVALID  (401) — malformed header, invalid signature, bad payload,
                         or a refresh token used as an access token
  TOKEN_EXPIRED  (401) — valid token but exp claim is in the past
  FORBIDDEN      (403) — authenticated, but the role is not allowed
"""

from __future__ import annotations

import functools
from typing import Callable

import jwt
from flask import g, request

from kontas.app.errors import AppError, ErrorCode
from kontas.app.services.auth_service import ACCESS_TOKEN_TYPE, decode_token


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces JWT authentication.

    Raises AppError for all auth failures — the global error handler converts
    these to the correct JSON response. Routes never catch AppError.

    Usage:
        @bp.route("/categories")
        @require_auth
        def list_categories():
            user_id = g.user_id  # always an int when this runs
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def require_role(role: str) -> Callable:
    """
    Route decorator factory. Must be placed BELOW @require_auth:

        @bp.route("/categories", methods=["POST"])
        @require_auth
        @require_role("admin")
        def create_category(): ...
    """
    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            if getattr(g, "role", None) != role:
                raise AppError(
                    ErrorCode.FORBIDDEN,
                    f"This action requires the '{role}' role.",
                    403,
                )
            return f(*args, **kwargs)

        return decorated

    return decorator


def _authenticate_request() -> None:
    """
    Performs the full JWT authentication sequence and sets flask.g.

    Separated from the decorator wrapper for testability — can be called
    directly in tests inside a request context.
    """
    auth_header = request.headers.get("Authorization", "")

    # ── Step 1: Require Authorization header ──────────────────────────────
    if not auth_header:
        raise AppError(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide a Bearer token in the Authorization header.",
            401,
        )

    # ── Step 2: Parse "Bearer <token>" format ─────────────────────────────
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
            401,
        )

    # ── Step 3: Decode and verify the JWT ─────────────────────────────────
    try:
        payload = decode_token(parts[1])
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired. Use POST /auth/refresh to obtain a new one.",
            401,
        )
    except jwt.InvalidTokenError:
        # Covers: bad signature, malformed token, invalid claims, etc.
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "An access token is required.",
            401,
        )

    # ── Step 4: Extract and validate the sub (user_id) claim ──────────────
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The 'sub' claim in the access token is not a valid user ID.",
            401,
        )

    # ── Step 5: Attach identity to flask.g ────────────────────────────────
    # Services never import flask.g; routes pass these as plain arguments.
    g.user_id = user_id
    g.username = payload.get("username")
    g.role = payload.get("role")
