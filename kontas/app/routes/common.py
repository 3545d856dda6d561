"""
routes/common.py — Data-shaping helpers shared by several blueprints.

Pure functions: no DB access, no business logic.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app


def money(value) -> Decimal:
    """Two-decimal Decimal; DecimalJSONProvider renders it as "70.00"."""
    return Decimal(str(value)).quantize(Decimal("0.01"))


def isoformat(value) -> str | None:
    return value.isoformat() if value is not None else None


def page_limit(query: dict) -> tuple[int, int]:
    """(page, limit) from a loaded PaginationSchema dict, applying DEFAULT_PAGE_SIZE."""
    limit = query.get("limit") or current_app.config["DEFAULT_PAGE_SIZE"]
    return query.get("page", 1), min(limit, current_app.config["MAX_PAGE_SIZE"])


def serialize_category_ref(category) -> dict:
    return {
        "id":    category.id,
        "name":  category.name,
        "type":  category.type.value,
        "color": category.color,
    }


def serialize_card_account_ref(account) -> dict:
    return {
        "id":          account.id,
        "name":        account.name,
        "type":        account.type.value,
        "bank_name":   account.bank_name,
        "last_digits": account.last_digits,
    }
