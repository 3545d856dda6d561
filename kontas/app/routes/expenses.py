"""
routes/expenses.py — Expense route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.
  - _serialize_expense() is a pure data-shape helper — not business logic.

Endpoints (url_prefix=/api/v1/expenses):
  POST   /expenses                          → 201  create expense + split
  GET    /expenses                          → 200  filtered, paginated list
  GET    /expenses/:id                      → 200
  PUT    /expenses/:id                      → 200  partial; owners replaced when sent
  DELETE /expenses/:id                      → 200  (admin) hard delete, owners cascade
  GET    /expenses/user/:user_id            → 200  expenses the user owns a share of
  GET    /expenses/category/:category_id    → 200  EXPENSE category required
  GET    /expenses/:id/stats                → 200  individual amounts per owner
  GET    /expenses/user/:user_id/summary    → 200  totals grouped by category
  GET    /expenses/date-range               → 200  start_date & end_date required
  GET    /expenses/amount-range             → 200  min_amount & max_amount required
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from kontas.app.extensions import db
from kontas.app.middleware.auth_middleware import require_auth, require_role
from kontas.app.models.expense import Expense
from kontas.app.routes.common import (
    isoformat,
    money,
    page_limit,
    serialize_card_account_ref,
    serialize_category_ref,
)
from kontas.app.schemas.common import PaginationSchema
from kontas.app.schemas.expense_schema import (
    AmountRangeQuerySchema,
    CreateExpenseSchema,
    DateRangeQuerySchema,
    ExpenseListQuerySchema,
    UpdateExpenseSchema,
    UserExpensesQuerySchema,
    UserSummaryQuerySchema,
)
from kontas.app.services import expense_service
from kontas.app.services.expense_service import ExpenseFilters
from kontas.app.services.split_service import owners_by_percentage, public_user_block

expenses_bp = Blueprint("expenses", __name__)


# ── Serialization helpers ──────────────────────────────────────────────────
# Pure data-shaping. Amounts as 2-dp strings.

def _serialize_expense(expense: Expense) -> dict:
    """Converts an Expense ORM object to a plain dict for JSON output."""
    return {
        "id":           expense.id,
        "name":         expense.name,
        "amount":       money(expense.amount),
        "annotation":   expense.annotation,
        "expense_date": isoformat(expense.expense_date),
        "category":     serialize_category_ref(expense.category),
        "card_account": serialize_card_account_ref(expense.card_account),
        "expense_owners": [
            {
                "id":         owner.id,
                "user":       public_user_block(owner.user),
                "percentage": money(owner.percentage),
            }
            for owner in owners_by_percentage(expense)
        ],
        "created_at":   isoformat(expense.created_at),
        "updated_at":   isoformat(expense.updated_at),
    }


def _listing_response(result: dict, page: int, limit: int, **extra) -> dict:
    return {
        "expenses":     [_serialize_expense(e) for e in result["expenses"]],
        "total":        result["total"],
        "total_amount": money(result["total_amount"]),
        "page":         page,
        "limit":        limit,
        **extra,
    }


# ── Collection routes ──────────────────────────────────────────────────────

@expenses_bp.route("", methods=["POST"])
@require_auth
def create_expense():
    """POST /expenses — Record an expense and its ownership split."""
    data = CreateExpenseSchema().load(request.get_json(force=True) or {})
    expense = expense_service.create_expense(data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": _serialize_expense(expense), "warnings": []}), 201


@expenses_bp.route("", methods=["GET"])
@require_auth
def list_expenses():
    """GET /expenses — Filtered list, newest expense_date first."""
    query = ExpenseListQuerySchema().load(request.args)
    page, limit = page_limit(query)
    result = expense_service.list_expenses(
        filters=ExpenseFilters.from_query(query),
        page=page,
        limit=limit,
        session=db.session,
    )
    return jsonify({"data": _listing_response(result, page, limit), "warnings": []}), 200


@expenses_bp.route("/date-range", methods=["GET"])
@require_auth
def list_expenses_by_date_range():
    query = DateRangeQuerySchema().load(request.args)
    page, limit = page_limit(query)
    result = expense_service.list_expenses(
        filters=ExpenseFilters.from_query(query),
        page=page,
        limit=limit,
        session=db.session,
    )
    date_range = {
        "start_date": isoformat(query["start_date"]),
        "end_date":   isoformat(query["end_date"]),
    }
    return jsonify({
        "data": _listing_response(result, page, limit, date_range=date_range),
        "warnings": [],
    }), 200


@expenses_bp.route("/amount-range", methods=["GET"])
@require_auth
def list_expenses_by_amount_range():
    query = AmountRangeQuerySchema().load(request.args)
    page, limit = page_limit(query)
    result = expense_service.list_expenses(
        filters=ExpenseFilters.from_query(query),
        page=page,
        limit=limit,
        session=db.session,
    )
    amount_range = {
        "min_amount": money(query["min_amount"]),
        "max_amount": money(query["max_amount"]),
    }
    return jsonify({
        "data": _listing_response(result, page, limit, amount_range=amount_range),
        "warnings": [],
    }), 200


@expenses_bp.route("/user/<int:user_id>", methods=["GET"])
@require_auth
def list_user_expenses(user_id: int):
    query = UserExpensesQuerySchema().load(request.args)
    page, limit = page_limit(query)
    result = expense_service.list_user_expenses(
        user_id,
        filters=ExpenseFilters.from_query(query),
        page=page,
        limit=limit,
        session=db.session,
    )
    return jsonify({"data": _listing_response(result, page, limit), "warnings": []}), 200


@expenses_bp.route("/user/<int:user_id>/summary", methods=["GET"])
@require_auth
def get_user_expenses_summary(user_id: int):
    query = UserSummaryQuerySchema().load(request.args)
    result = expense_service.get_user_expenses_summary(
        user_id,
        session=db.session,
        category_id=query.get("category_id"),
        start_date=query.get("start_date"),
        end_date=query.get("end_date"),
    )
    user = result["user"]
    summary = result["summary"]
    return jsonify({
        "data": {
            "user": {
                "id":        user.id,
                "username":  user.username,
                "full_name": user.full_name,
            },
            "summary": {
                "total_expenses": summary["total_expenses"],
                "total_amount":   money(summary["total_amount"]),
                "expenses_by_category": [
                    {
                        "category":     serialize_category_ref(row["category"]),
                        "count":        row["count"],
                        "total_amount": money(row["total_amount"]),
                    }
                    for row in summary["expenses_by_category"]
                ],
            },
        },
        "warnings": [],
    }), 200


@expenses_bp.route("/category/<int:category_id>", methods=["GET"])
@require_auth
def list_category_expenses(category_id: int):
    query = PaginationSchema().load(request.args)
    page, limit = page_limit(query)
    result = expense_service.list_category_expenses(
        category_id,
        page=page,
        limit=limit,
        session=db.session,
    )
    return jsonify({"data": _listing_response(result, page, limit), "warnings": []}), 200


# ── Expense-ID routes ──────────────────────────────────────────────────────

@expenses_bp.route("/<int:expense_id>", methods=["GET"])
@require_auth
def get_expense(expense_id: int):
    expense = expense_service.get_expense(expense_id, session=db.session)
    return jsonify({"data": _serialize_expense(expense), "warnings": []}), 200


@expenses_bp.route("/<int:expense_id>", methods=["PUT"])
@require_auth
def update_expense(expense_id: int):
    """
    PUT /expenses/:id — Partial update.
    expense_owners, when present, replaces the whole split.
    """
    data = UpdateExpenseSchema().load(request.get_json(force=True) or {})
    expense = expense_service.update_expense(expense_id, data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": _serialize_expense(expense), "warnings": []}), 200


@expenses_bp.route("/<int:expense_id>", methods=["DELETE"])
@require_auth
@require_role("admin")
def delete_expense(expense_id: int):
    """DELETE /expenses/:id — Hard delete; owner rows go with it."""
    expense_service.delete_expense(expense_id, session=db.session)
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "expense_id": expense_id},
        "warnings": [],
    }), 200


@expenses_bp.route("/<int:expense_id>/stats", methods=["GET"])
@require_auth
def get_expense_stats(expense_id: int):
    """GET /expenses/:id/stats — Each owner's share of the amount."""
    result = expense_service.get_expense_stats(expense_id, session=db.session)
    return jsonify({
        "data": {
            "expense": _serialize_expense(result["expense"]),
            "stats": {
                "total_owners": result["stats"]["total_owners"],
                "individual_amounts": [
                    {
                        "user":       share["user"],
                        "percentage": money(share["percentage"]),
                        "amount":     money(share["amount"]),
                    }
                    for share in result["stats"]["individual_amounts"]
                ],
            },
        },
        "warnings": [],
    }), 200
