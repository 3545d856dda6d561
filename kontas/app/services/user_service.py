"""
services/user_service.py — User administration.

Users are created by administrators (POST /users) or, for the first
administrator, by the `create-admin` CLI command. There is no public
self-registration.

Password storage:
  - Hashed with bcrypt (cost factor from config BCRYPT_LOG_ROUNDS, default 12)
  - Raw password is never stored, never logged
"""

from __future__ import annotations

import logging

import bcrypt
from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from kontas.app.errors import AppError, ErrorCode
from kontas.app.models.user import User, UserRole


logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def build_user_dict(user: User) -> dict:
    """Serialises a User to a plain dict. Never includes the password hash."""
    return {
        "id":              user.id,
        "username":        user.username,
        "full_name":       user.full_name,
        "email":           user.email,
        "phone":           user.phone,
        "profile_picture": user.profile_picture,
        "role":            user.role.value,
        "created_at":      user.created_at.isoformat(),
    }


def get_user_or_404(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} does not exist.",
            404,
        )
    return user


def create_user(
        data: dict,
        session: Session,
        role: UserRole = UserRole.MEMBER,
) -> User:
    """
    Creates a user account.

    Args:
        data: Validated dict from CreateUserSchema.
        role: MEMBER for the API; the CLI passes ADMIN.

    Raises:
      AppError(DUPLICATE_EMAIL, 409)    — email already registered
      AppError(DUPLICATE_USERNAME, 409) — username already taken
    """
    # Cross-entity uniqueness checks need the DB, so they live here, not in the schema.
    existing_email = session.execute(
        select(User.id).where(User.email == data["email"])
    ).first()
    if existing_email is not None:
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            f"The email address '{data['email']}' is already registered.",
            409,
            field="email",
        )

    existing_username = session.execute(
        select(User.id).where(User.username == data["username"])
    ).first()
    if existing_username is not None:
        raise AppError(
            ErrorCode.DUPLICATE_USERNAME,
            f"The username '{data['username']}' is already taken.",
            409,
            field="username",
        )

    user = User(
        username=data["username"],
        full_name=data["full_name"],
        email=data["email"],
        phone=data["phone"],
        profile_picture=data.get("profile_picture"),
        password_hash=hash_password(data["password"]),
        role=role,
    )
    session.add(user)
    session.flush()

    logger.info("Created %s user %s (%s)", role.value, user.id, user.username)
    return user
