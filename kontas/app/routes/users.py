"""
routes/users.py — User administration route handlers.

Endpoints (url_prefix=/api/v1/users):
  POST   /users       → 201  create a member (admin only)
  GET    /users/:id   → 200  public profile
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from kontas.app.extensions import db
from kontas.app.middleware.auth_middleware import require_auth, require_role
from kontas.app.schemas.user_schema import CreateUserSchema
from kontas.app.services import user_service

users_bp = Blueprint("users", __name__)


@users_bp.route("", methods=["POST"])
@require_auth
@require_role("admin")
def create_user():
    """POST /users — Create a member account. Duplicate username/email → 409."""
    data = CreateUserSchema().load(request.get_json(force=True) or {})
    user = user_service.create_user(data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": user_service.build_user_dict(user), "warnings": []}), 201


@users_bp.route("/<int:user_id>", methods=["GET"])
@require_auth
def get_user(user_id: int):
    """GET /users/:id — Public profile of any user."""
    user = user_service.get_user_or_404(user_id, session=db.session)
    return jsonify({"data": user_service.build_user_dict(user), "warnings": []}), 200
