"""
schemas/category_schema.py — Marshmallow schemas for category endpoints.

(name, type) uniqueness is a cross-entity rule and is checked in
category_service.py.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from kontas.app.errors import ErrorCode
from kontas.app.models.category import CategoryType
from kontas.app.schemas.common import PaginationSchema, color_field, name_field


def _category_type_field(**kwargs) -> fields.Enum:
    return fields.Enum(
        CategoryType,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_CATEGORY_TYPE},
        **kwargs,
    )


class CreateCategorySchema(Schema):
    """POST /categories"""

    name        = name_field(100)
    type        = _category_type_field(required=True)
    description = fields.Str(allow_none=True, validate=validate.Length(max=1000))
    color       = color_field()
    active      = fields.Bool(load_default=True)


class UpdateCategorySchema(Schema):
    """PUT /categories/:id — every field optional; only provided fields change."""

    name        = name_field(100, required=False)
    type        = _category_type_field()
    description = fields.Str(allow_none=True, validate=validate.Length(max=1000))
    color       = color_field()
    active      = fields.Bool()


class CategoryListQuerySchema(PaginationSchema):
    """GET /categories?type=&active=&page=&limit="""

    type   = _category_type_field()
    active = fields.Bool()


class CategoryTypePathSchema(Schema):
    """GET /categories/type/:type"""

    type = _category_type_field(required=True)
