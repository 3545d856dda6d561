"""
routes/categories.py — Category route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - _serialize_category() is a pure data-shape helper — not business logic.

Endpoints (url_prefix=/api/v1/categories):
  POST   /categories                     → 201  (admin)
  GET    /categories                     → 200  ?type=&active=&page=&limit=
  GET    /categories/:id                 → 200
  PUT    /categories/:id                 → 200  (admin, partial)
  DELETE /categories/:id                 → 200  (admin, refused while in use)
  GET    /categories/type/:type          → 200  active categories of one type
  PATCH  /categories/:id/toggle-status   → 200  (admin)
  GET    /categories/:id/stats           → 200
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from kontas.app.extensions import db
from kontas.app.middleware.auth_middleware import require_auth, require_role
from kontas.app.models.category import Category
from kontas.app.routes.common import isoformat, page_limit
from kontas.app.schemas.category_schema import (
    CategoryListQuerySchema,
    CategoryTypePathSchema,
    CreateCategorySchema,
    UpdateCategorySchema,
)
from kontas.app.services import category_service

categories_bp = Blueprint("categories", __name__)


def _serialize_category(category: Category) -> dict:
    return {
        "id":          category.id,
        "name":        category.name,
        "type":        category.type.value,
        "description": category.description,
        "color":       category.color,
        "active":      category.active,
        "created_at":  isoformat(category.created_at),
        "updated_at":  isoformat(category.updated_at),
    }


@categories_bp.route("", methods=["POST"])
@require_auth
@require_role("admin")
def create_category():
    data = CreateCategorySchema().load(request.get_json(force=True) or {})
    category = category_service.create_category(data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": _serialize_category(category), "warnings": []}), 201


@categories_bp.route("", methods=["GET"])
@require_auth
def list_categories():
    query = CategoryListQuerySchema().load(request.args)
    page, limit = page_limit(query)
    categories, total = category_service.list_categories(
        session=db.session,
        page=page,
        limit=limit,
        category_type=query.get("type"),
        active=query.get("active"),
    )
    return jsonify({
        "data": {
            "categories": [_serialize_category(c) for c in categories],
            "total": total,
            "page": page,
            "limit": limit,
        },
        "warnings": [],
    }), 200


@categories_bp.route("/<int:category_id>", methods=["GET"])
@require_auth
def get_category(category_id: int):
    category = category_service.get_category_or_404(category_id, session=db.session)
    return jsonify({"data": _serialize_category(category), "warnings": []}), 200


@categories_bp.route("/<int:category_id>", methods=["PUT"])
@require_auth
@require_role("admin")
def update_category(category_id: int):
    data = UpdateCategorySchema().load(request.get_json(force=True) or {})
    category = category_service.update_category(category_id, data=data, session=db.session)
    db.session.commit()
    return jsonify({"data": _serialize_category(category), "warnings": []}), 200


@categories_bp.route("/<int:category_id>", methods=["DELETE"])
@require_auth
@require_role("admin")
def delete_category(category_id: int):
    category_service.delete_category(category_id, session=db.session)
    db.session.commit()
    return jsonify({
        "data": {"deleted": True, "category_id": category_id},
        "warnings": [],
    }), 200


@categories_bp.route("/type/<string:category_type>", methods=["GET"])
@require_auth
def list_categories_by_type(category_type: str):
    path = CategoryTypePathSchema().load({"type": category_type})
    categories = category_service.list_active_by_type(path["type"], session=db.session)
    return jsonify({
        "data": [_serialize_category(c) for c in categories],
        "warnings": [],
    }), 200


@categories_bp.route("/<int:category_id>/toggle-status", methods=["PATCH"])
@require_auth
@require_role("admin")
def toggle_category_status(category_id: int):
    category = category_service.toggle_category_status(category_id, session=db.session)
    db.session.commit()
    return jsonify({"data": _serialize_category(category), "warnings": []}), 200


@categories_bp.route("/<int:category_id>/stats", methods=["GET"])
@require_auth
def get_category_stats(category_id: int):
    stats = category_service.get_category_stats(category_id, session=db.session)
    return jsonify({"data": stats, "warnings": []}), 200
