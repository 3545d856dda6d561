"""
routes/incomes.py — Income route handlers.

Endpoints (url_prefix=/api/v1/incomes):
  POST   /incomes        → 201  receiver defaults to the caller
  GET    /incomes        → 200  filtered, paginated list
  GET    /incomes/:id    → 200
  PUT    /incomes/:id    → 200  partial
  DELETE /incomes/:id    → 200  (admin)
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from kontas.app.extensions import db
from kontas.app.middleware.auth_middleware import require_auth, require_role
from kontas.app.models.income import Income
from kontas.app.routes.common import (
    isoformat,
    money,
    page_limit,
    serialize_card_account_ref,
    serialize_category_ref,
)
from kontas.app.schemas.income_schema import (
    CreateIncomeSchema,
    IncomeListQuerySchema,
    UpdateIncomeSchema,
)
from kontas.app.services import income_service
from kontas.app.services.income_service import IncomeFilters
from kontas.app.services.split_service import public_user_block

incomes_bp = Blueprint("incomes", __name__)


def _serialize_income(income: Income) -> dict:
    return {
        "id":           income.id,
        "name":         income.name,
        "amount":       money(income.amount),
        "annotation":   income.annotation,
        "income_date":  isoformat(income.income_date),
        "category":     serialize_category_ref(income.category),
        "card_account": serialize_card_account_ref(income.card_account),
        "user":         public_user_block(income.user),
        "created_at":   isoformat(income.created_at),
        "updated_at":   isoformat(income.updated_at),
    }


@incomes_bp.route("", methods=["POST"])
@require_auth
def create_income():
    data = CreateIncomeSchema().load(request.get_json(force=True) or {})
    income = income_service.create_income(
        data=data,
        receiver_id=data.get("user_id", g.user_id),
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": _serialize_income(income), "warnings": []}), 201


@incomes_bp.route("", methods=["GET"])
@require_auth
def list_incomes():
    query = IncomeListQuerySchema().load(request.args)
    page, limit = page_limit(query)
    result = income_service.list_incomes(
        filters=IncomeFilters.from_query(query),
        page=page,
        limit=limit,
        session=db.session,
    )
    return jsonify({
        "data": {
            "incomes":      [_serialize_income(i) for i in result["incomes"]],
            "total":        result["total"],
            "total_amount": money(result["total_amount"]),
            "page":         page,
            "limit":        limit,
        },
        "warnings": [],
    }), 200


@incomes_bp.route("/<int:income_id>", methods=["GET"])
@require_auth
def get_income(income_id: int):
    income = income_service.get_income(income_id, session=db.session)
    return jsonify({"data": _serialize_income(income), "warnings": []}), 200


@incomes_bp.route("/<int:income_id>", methods=["PUT"])
@require_auth
def update_income(income_id: int):
    data = UpdateIncomeSchema().load(request.get_json(force=True) or {})
    income = income_service.update_income(income_id, data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": _serialize_income(income), "warnings": []}), 200


@incomes_bp.route("/<int:income_id>", methods=["DELETE"])
@require_auth
@require_role("admin")
def delete_income(income_id: int):
    income_service.delete_income(income_id, session=db.session)
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "income_id": income_id},
        "warnings": [],
    }), 200
