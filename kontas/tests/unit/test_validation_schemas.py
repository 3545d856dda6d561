"""
tests/unit/test_validation_schemas.py — Unit tests for the marshmallow schemas.

What this file proves:
  - Every schema accepts valid input without raising
  - Field-level rules (type, length, enum, decimal precision) are enforced by schemas
  - Error codes raised as ValidationError messages match the constants in errors.py
  - Split rules (percentage range, repeated users, sum to 100), user existence
    and uniqueness are NOT checked by schemas; they belong to the services

No database and no Flask application context: schemas inherit from
marshmallow.Schema directly.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from marshmallow import ValidationError

from kontas.app.errors import ErrorCode
from kontas.app.models.card_account import CardAccountType
from kontas.app.models.category import CategoryType
from kontas.app.models.user import UserRole
from kontas.app.schemas.auth_schema import LoginSchema, RefreshTokenSchema
from kontas.app.schemas.card_account_schema import CreateCardAccountSchema
from kontas.app.schemas.category_schema import CategoryListQuerySchema, CreateCategorySchema
from kontas.app.schemas.common import PaginationSchema
from kontas.app.schemas.expense_schema import (
    AmountRangeQuerySchema,
    CreateExpenseSchema,
    DateRangeQuerySchema,
    ExpenseListQuerySchema,
    UpdateExpenseSchema,
)
from kontas.app.schemas.income_schema import CreateIncomeSchema
from kontas.app.schemas.user_schema import CreateUserSchema


def _errors(schema, data: dict) -> dict:
    with pytest.raises(ValidationError) as exc_info:
        schema.load(data)
    return exc_info.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# Auth / users
# ═══════════════════════════════════════════════════════════════════════════

class TestAuthSchemas:

    def test_login_requires_both_fields(self):
        errors = _errors(LoginSchema(), {})
        assert set(errors) == {"username", "password"}

    def test_refresh_requires_token(self):
        assert "refresh_token" in _errors(RefreshTokenSchema(), {})


class TestCreateUserSchema:

    def _valid(self, **overrides) -> dict:
        data = {
            "username": "alice.b_99",
            "full_name": "Alice Tester",
            "email": "alice@example.com",
            "phone": "11987654321",
            "password": "Secure123",
        }
        data.update(overrides)
        return data

    def test_valid_payload_defaults_to_member(self):
        result = CreateUserSchema().load(self._valid())
        assert result["role"] is UserRole.MEMBER
        assert result["username"] == "alice.b_99"

    @pytest.mark.parametrize("username", ["ab", "alice smith", "alice-b", "a" * 51])
    def test_bad_username(self, username):
        assert "username" in _errors(CreateUserSchema(), self._valid(username=username))

    @pytest.mark.parametrize("phone", ["1198765432", "119876543210", "1198765432a"])
    def test_phone_must_be_eleven_digits(self, phone):
        assert "phone" in _errors(CreateUserSchema(), self._valid(phone=phone))

    @pytest.mark.parametrize("password", ["short1", "onlyletters", "123456789"])
    def test_weak_password(self, password):
        assert "password" in _errors(CreateUserSchema(), self._valid(password=password))

    def test_admin_role_is_rejected(self):
        assert "role" in _errors(CreateUserSchema(), self._valid(role="admin"))

    def test_password_is_load_only(self):
        assert "password" not in CreateUserSchema().dump({"username": "a", "password": "x"})


# ═══════════════════════════════════════════════════════════════════════════
# Categories / card accounts
# ═══════════════════════════════════════════════════════════════════════════

class TestCategoryAndAccountSchemas:

    def test_category_type_loads_enum(self):
        result = CreateCategorySchema().load({"name": "Food", "type": "EXPENSE"})
        assert result["type"] is CategoryType.EXPENSE
        assert result["active"] is True

    def test_unknown_category_type_uses_error_code(self):
        errors = _errors(CreateCategorySchema(), {"name": "Food", "type": "food"})
        assert errors["type"] == [ErrorCode.INVALID_CATEGORY_TYPE]

    def test_blank_name_is_rejected(self):
        assert "name" in _errors(CreateCategorySchema(), {"name": "   ", "type": "EXPENSE"})

    @pytest.mark.parametrize("color", ["#FFF", "FF5733", "#GG5733"])
    def test_bad_color(self, color):
        errors = _errors(CreateCategorySchema(), {"name": "Food", "type": "EXPENSE", "color": color})
        assert "color" in errors

    def test_list_query_parses_booleans(self):
        result = CategoryListQuerySchema().load({"active": "false", "type": "INCOME"})
        assert result["active"] is False
        assert result["type"] is CategoryType.INCOME

    def test_account_type_loads_enum(self):
        result = CreateCardAccountSchema().load({"name": "Pix", "type": "PIX"})
        assert result["type"] is CardAccountType.PIX
        assert "user_id" not in result

    def test_unknown_account_type_uses_error_code(self):
        errors = _errors(CreateCardAccountSchema(), {"name": "Pix", "type": "BOLETO"})
        assert errors["type"] == [ErrorCode.INVALID_CARD_ACCOUNT_TYPE]


# ═══════════════════════════════════════════════════════════════════════════
# Expenses
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateExpenseSchema:

    def _valid(self, **overrides) -> dict:
        data = {
            "name": "Dinner",
            "amount": "200.00",
            "category_id": 1,
            "card_account_id": 2,
            "expense_date": "2026-01-15T12:00:00Z",
            "expense_owners": [
                {"user_id": 3, "percentage": "70"},
                {"user_id": 4, "percentage": "30"},
            ],
        }
        data.update(overrides)
        return data

    def test_valid_payload(self):
        result = CreateExpenseSchema().load(self._valid())
        assert result["amount"] == Decimal("200.00")
        assert isinstance(result["amount"], Decimal)
        assert result["expense_date"] == datetime(2026, 1, 15, 12, tzinfo=timezone.utc)
        assert result["expense_owners"][0] == {"user_id": 3, "percentage": Decimal("70")}

    def test_naive_date_defaults_to_utc(self):
        result = CreateExpenseSchema().load(self._valid(expense_date="2026-01-15T12:00:00"))
        assert result["expense_date"].tzinfo is not None

    def test_percentage_defaults_to_100(self):
        result = CreateExpenseSchema().load(self._valid(expense_owners=[{"user_id": 3}]))
        assert result["expense_owners"][0]["percentage"] == Decimal("100")

    def test_sum_is_not_checked_by_schema(self):
        data = self._valid(expense_owners=[{"user_id": 3, "percentage": "10"}])
        CreateExpenseSchema().load(data)

    def test_amount_with_three_places_uses_precision_code(self):
        errors = _errors(CreateExpenseSchema(), self._valid(amount="10.005"))
        assert errors["amount"] == [ErrorCode.INVALID_AMOUNT_PRECISION]

    @pytest.mark.parametrize("amount", ["0", "-1.00"])
    def test_non_positive_amount(self, amount):
        assert "amount" in _errors(CreateExpenseSchema(), self._valid(amount=amount))

    @pytest.mark.parametrize("owners", [
        [{"user_id": 3, "percentage": "0"}],
        [{"user_id": 3, "percentage": "100.01"}],
        [{"user_id": 3, "percentage": "12.345"}],
        [{"user_id": 3, "percentage": "50"}, {"user_id": 3, "percentage": "50"}],
        [],
    ])
    def test_split_rules_are_left_to_the_split_service(self, owners):
        result = CreateExpenseSchema().load(self._valid(expense_owners=owners))
        assert len(result["expense_owners"]) == len(owners)

    def test_non_numeric_percentage_is_rejected(self):
        errors = _errors(
            CreateExpenseSchema(),
            self._valid(expense_owners=[{"user_id": 3, "percentage": "half"}]),
        )
        assert "percentage" in errors["expense_owners"][0]

    def test_owner_list_required(self):
        data = self._valid()
        del data["expense_owners"]
        assert "expense_owners" in _errors(CreateExpenseSchema(), data)

    def test_amount_above_column_range(self):
        assert "amount" in _errors(CreateExpenseSchema(), self._valid(amount="10000000000"))

    def test_ids_must_be_strict_positive_integers(self):
        assert "category_id" in _errors(CreateExpenseSchema(), self._valid(category_id="1"))
        assert "card_account_id" in _errors(CreateExpenseSchema(), self._valid(card_account_id=0))


class TestUpdateExpenseSchema:

    def test_every_field_is_optional(self):
        assert UpdateExpenseSchema().load({}) == {}

    def test_owners_absent_stays_absent(self):
        result = UpdateExpenseSchema().load({"amount": "10.00"})
        assert "expense_owners" not in result

    def test_empty_owner_list_reaches_the_service(self):
        assert UpdateExpenseSchema().load({"expense_owners": []}) == {"expense_owners": []}


class TestQuerySchemas:

    def test_pagination_defaults(self):
        assert PaginationSchema().load({}) == {"page": 1, "limit": None}

    @pytest.mark.parametrize("query", [{"page": "0"}, {"limit": "0"}, {"limit": "101"}])
    def test_pagination_bounds(self, query):
        _errors(PaginationSchema(), query)

    def test_list_filters_load(self):
        result = ExpenseListQuerySchema().load({
            "user_id": "3",
            "min_amount": "10",
            "start_date": "2026-01-01T00:00:00Z",
        })
        assert result["user_id"] == 3
        assert result["min_amount"] == Decimal("10")
        assert result["start_date"].tzinfo is not None

    def test_end_before_start_is_rejected(self):
        errors = _errors(ExpenseListQuerySchema(), {
            "start_date": "2026-02-01T00:00:00Z",
            "end_date": "2026-01-01T00:00:00Z",
        })
        assert "end_date" in errors

    def test_max_below_min_is_rejected(self):
        assert "max_amount" in _errors(ExpenseListQuerySchema(), {"min_amount": "10", "max_amount": "5"})

    def test_date_range_requires_both(self):
        errors = _errors(DateRangeQuerySchema(), {"start_date": "2026-01-01T00:00:00Z"})
        assert "end_date" in errors

    def test_amount_range_requires_both(self):
        errors = _errors(AmountRangeQuerySchema(), {})
        assert set(errors) == {"min_amount", "max_amount"}


class TestCreateIncomeSchema:

    def test_receiver_is_optional(self):
        result = CreateIncomeSchema().load({
            "name": "Salary",
            "amount": "1500.00",
            "category_id": 1,
            "card_account_id": 2,
            "income_date": "2026-01-05T09:00:00Z",
        })
        assert "user_id" not in result
        assert result["amount"] == Decimal("1500.00")
