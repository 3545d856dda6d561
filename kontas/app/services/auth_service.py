"""
services/auth_service.py — Authentication business logic.

Responsibilities:
  - Credential validation
  - JWT creation (HS256) for access and refresh tokens
  - Exchanging a refresh token for a new access token

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP status codes
  - current_app.config is used ONLY to read JWT_SECRET_KEY and JWT expiry

Token design:
  - Both tokens are JWTs signed with JWT_SECRET_KEY and carry
    {sub: user_id (str), username, role, type, iat, exp, jti}.
  - type is "access" (short TTL) or "refresh" (long TTL). The auth
    middleware rejects refresh tokens; /auth/refresh rejects access tokens.
  - Tokens are stateless. There is no server-side revocation; access tokens
    are short-lived and refresh tokens expire on their own.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

import bcrypt
import jwt
from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from kontas.app.errors import AppError, ErrorCode
from kontas.app.models.user import User
from kontas.app.services.user_service import build_user_dict


logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


# ── Private helpers ────────────────────────────────────────────────────────

def _create_token(user: User, token_type: str) -> str:
    """
    Creates a signed JWT for `user`.

    TTL from JWT_ACCESS_TOKEN_EXPIRES or JWT_REFRESH_TOKEN_EXPIRES (timedelta).
    """
    now = datetime.now(timezone.utc)
    ttl_key = (
        "JWT_ACCESS_TOKEN_EXPIRES"
        if token_type == ACCESS_TOKEN_TYPE
        else "JWT_REFRESH_TOKEN_EXPIRES"
    )
    payload = {
        "sub": str(user.id),
        "username": user.username,
        "role": user.role.value,
        "type": token_type,
        "iat": now,
        "exp": now + current_app.config[ttl_key],
        # Guarantees each issued token is unique even if generated in the same second.
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def create_access_token(user: User) -> str:
    return _create_token(user, ACCESS_TOKEN_TYPE)


def create_refresh_token(user: User) -> str:
    return _create_token(user, REFRESH_TOKEN_TYPE)


def decode_token(raw_token: str) -> dict:
    """
    Verifies signature and expiry. Lets jwt.ExpiredSignatureError and
    jwt.InvalidTokenError propagate; callers map them to their own codes.
    """
    return jwt.decode(
        raw_token,
        current_app.config["JWT_SECRET_KEY"],
        algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
    )


# ── Public service functions ───────────────────────────────────────────────

def login_user(
        username: str,
        password: str,
        session: Session,
) -> dict:
    """
    Validates credentials and issues a new access + refresh token pair.

    Raises:
      AppError(INVALID_CREDENTIALS, 401) — username not found or password wrong.
      Uses the same error for both to avoid username enumeration.

    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    user = session.execute(
        select(User).where(User.username == username)
    ).scalar_one_or_none()

    # bcrypt.checkpw compares in constant time.
    if user is None or not bcrypt.checkpw(
            password.encode("utf-8"),
            user.password_hash.encode("utf-8"),
    ):
        logger.info("Failed login attempt for username %r", username)
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "The username or password is incorrect.",
            401,
        )

    return {
        "user": build_user_dict(user),
        "access_token": create_access_token(user),
        "refresh_token": create_refresh_token(user),
    }


def refresh_access_token(
        raw_refresh_token: str,
        session: Session,
) -> dict:
    """
    Validates a refresh token and issues a new access token.

    The refresh token itself is NOT rotated. The new access token carries
    the user's current username and role, not the ones in the refresh token.

    Raises:
      AppError(REFRESH_TOKEN_INVALID, 401) — bad signature, expired, not a
        refresh token, or the user no longer exists.

    Returns: {"access_token": "..."}
    """
    invalid = AppError(
        ErrorCode.REFRESH_TOKEN_INVALID,
        "The refresh token is invalid or expired.",
        401,
    )

    try:
        payload = decode_token(raw_refresh_token)
    except jwt.InvalidTokenError:
        # ExpiredSignatureError is a subclass of InvalidTokenError.
        raise invalid

    if payload.get("type") != REFRESH_TOKEN_TYPE:
        raise invalid

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise invalid

    user = session.get(User, user_id)
    if user is None:
        raise invalid

    return {"access_token": create_access_token(user)}


def get_current_user(user_id: int, session: Session) -> dict:
    """
    Returns the profile of the currently authenticated user.

    Raises:
      AppError(USER_NOT_FOUND, 404) — user_id from JWT no longer exists in DB.
    """
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
            404,
        )
    return build_user_dict(user)
