"""
routes/card_accounts.py — Card / account route handlers.

Endpoints (url_prefix=/api/v1/card-accounts):
  POST   /card-accounts                     → 201  owner defaults to the caller
  GET    /card-accounts                     → 200  ?type=&active=&user_id=&page=&limit=
  GET    /card-accounts/:id                 → 200
  PUT    /card-accounts/:id                 → 200  partial
  DELETE /card-accounts/:id                 → 200  (admin, refused while in use)
  GET    /card-accounts/user/:user_id       → 200  active accounts of one user
  GET    /card-accounts/type/:type          → 200  active accounts of one type
  PATCH  /card-accounts/:id/toggle-status   → 200
  GET    /card-accounts/:id/stats           → 200
  GET    /card-accounts/user/:user_id/summary → 200  every account with counts
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from kontas.app.extensions import db
from kontas.app.middleware.auth_middleware import require_auth, require_role
from kontas.app.models.card_account import CardAccount
from kontas.app.routes.common import isoformat, page_limit
from kontas.app.schemas.card_account_schema import (
    CardAccountListQuerySchema,
    CardAccountTypePathSchema,
    CreateCardAccountSchema,
    UpdateCardAccountSchema,
)
from kontas.app.services import card_account_service

card_accounts_bp = Blueprint("card_accounts", __name__)


def _serialize_card_account(account: CardAccount) -> dict:
    return {
        "id":          account.id,
        "user_id":     account.user_id,
        "name":        account.name,
        "type":        account.type.value,
        "bank_name":   account.bank_name,
        "last_digits": account.last_digits,
        "color":       account.color,
        "active":      account.active,
        "created_at":  isoformat(account.created_at),
        "updated_at":  isoformat(account.updated_at),
    }


@card_accounts_bp.route("", methods=["POST"])
@require_auth
def create_card_account():
    data = CreateCardAccountSchema().load(request.get_json(force=True) or {})
    account = card_account_service.create_card_account(
        data=data,
        owner_id=data.get("user_id", g.user_id),
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": _serialize_card_account(account), "warnings": []}), 201


@card_accounts_bp.route("", methods=["GET"])
@require_auth
def list_card_accounts():
    query = CardAccountListQuerySchema().load(request.args)
    page, limit = page_limit(query)
    accounts, total = card_account_service.list_card_accounts(
        session=db.session,
        page=page,
        limit=limit,
        account_type=query.get("type"),
        active=query.get("active"),
        user_id=query.get("user_id"),
    )
    return jsonify({
        "data": {
            "card_accounts": [_serialize_card_account(a) for a in accounts],
            "total": total,
            "page": page,
            "limit": limit,
        },
        "warnings": [],
    }), 200


@card_accounts_bp.route("/<int:card_account_id>", methods=["GET"])
@require_auth
def get_card_account(card_account_id: int):
    account = card_account_service.get_card_account_or_404(card_account_id, session=db.session)
    return jsonify({"data": _serialize_card_account(account), "warnings": []}), 200


@card_accounts_bp.route("/<int:card_account_id>", methods=["PUT"])
@require_auth
def update_card_account(card_account_id: int):
    data = UpdateCardAccountSchema().load(request.get_json(force=True) or {})
    account = card_account_service.update_card_account(
        card_account_id, data=data, session=db.session,
    )
    db.session.commit()
    return jsonify({"data": _serialize_card_account(account), "warnings": []}), 200


@card_accounts_bp.route("/<int:card_account_id>", methods=["DELETE"])
@require_auth
@require_role("admin")
def delete_card_account(card_account_id: int):
    card_account_service.delete_card_account(card_account_id, session=db.session)
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "card_account_id": card_account_id},
        "warnings": [],
    }), 200


@card_accounts_bp.route("/user/<int:user_id>", methods=["GET"])
@require_auth
def list_user_card_accounts(user_id: int):
    accounts = card_account_service.list_active_by_user(user_id, session=db.session)
    return jsonify({
        "data": [_serialize_card_account(a) for a in accounts],
        "warnings": [],
    }), 200


@card_accounts_bp.route("/type/<string:account_type>", methods=["GET"])
@require_auth
def list_card_accounts_by_type(account_type: str):
    path = CardAccountTypePathSchema().load({"type": account_type})
    accounts = card_account_service.list_active_by_type(path["type"], session=db.session)
    return jsonify({
        "data": [_serialize_card_account(a) for a in accounts],
        "warnings": [],
    }), 200


@card_accounts_bp.route("/<int:card_account_id>/toggle-status", methods=["PATCH"])
@require_auth
def toggle_card_account_status(card_account_id: int):
    account = card_account_service.toggle_card_account_status(
        card_account_id, session=db.session,
    )
    db.session.commit()
    return jsonify({"data": _serialize_card_account(account), "warnings": []}), 200


@card_accounts_bp.route("/<int:card_account_id>/stats", methods=["GET"])
@require_auth
def get_card_account_stats(card_account_id: int):
    stats = card_account_service.get_card_account_stats(card_account_id, session=db.session)
    return jsonify({"data": stats, "warnings": []}), 200


@card_accounts_bp.route("/user/<int:user_id>/summary", methods=["GET"])
@require_auth
def get_user_accounts_summary(user_id: int):
    rows = card_account_service.get_user_accounts_summary(user_id, session=db.session)
    return jsonify({
        "data": [
            {
                **_serialize_card_account(row["account"]),
                "expense_count": row["expense_count"],
                "income_count":  row["income_count"],
            }
            for row in rows
        ],
        "warnings": [],
    }), 200
