"""
errors.py — AppError base class and error code registry.

Every error returned by the Kontas API uses a code defined here.
Do not raise strings or generic exceptions from service or route code.

  - Error codes are a versioned contract. They do not change once published.
  - Error messages are human-readable prose. They may be improved at any time.
  - 401 (unauthenticated) and 403 (role mismatch) are never conflated.
"""

from __future__ import annotations


class AppError(Exception):

    def __init__(
            self,
            code: str,
            message: str,
            http_status: int,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code        = code
        self.message     = message
        self.http_status = http_status
        self.field       = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"AppError(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


# ── Error Code Registry ────────────────────────────────────────────────────
#
# Organised by category. HTTP status is indicated in the comment.
# These are the string values sent in the API response.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Schema / Input Errors (400) ────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    INVALID_AMOUNT_PRECISION   = "INVALID_AMOUNT_PRECISION"
    INVALID_CATEGORY_TYPE      = "INVALID_CATEGORY_TYPE"
    INVALID_CARD_ACCOUNT_TYPE  = "INVALID_CARD_ACCOUNT_TYPE"
    BAD_REQUEST                = "BAD_REQUEST"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"
    DUPLICATE_USERNAME         = "DUPLICATE_USERNAME"
    DUPLICATE_CATEGORY         = "DUPLICATE_CATEGORY"
    DUPLICATE_CARD_ACCOUNT     = "DUPLICATE_CARD_ACCOUNT"
    RESOURCE_IN_USE            = "RESOURCE_IN_USE"
    CONFLICT                   = "CONFLICT"               # store constraint backstop

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    CATEGORY_NOT_FOUND         = "CATEGORY_NOT_FOUND"
    CARD_ACCOUNT_NOT_FOUND     = "CARD_ACCOUNT_NOT_FOUND"
    EXPENSE_NOT_FOUND          = "EXPENSE_NOT_FOUND"
    INCOME_NOT_FOUND           = "INCOME_NOT_FOUND"
    NOT_FOUND                  = "NOT_FOUND"
    METHOD_NOT_ALLOWED         = "METHOD_NOT_ALLOWED"     # 405

    # ── Business Rule Violations (422) ────────────────────────────────────
    INVALID_SPLIT              = "INVALID_SPLIT"          # any broken expense_owners split
    CATEGORY_TYPE_MISMATCH     = "CATEGORY_TYPE_MISMATCH"
    CATEGORY_INACTIVE          = "CATEGORY_INACTIVE"
    ACCOUNT_INACTIVE           = "ACCOUNT_INACTIVE"

    # ── Auth Errors ────────────────────────────────────────────────────────
    # 401 = we do not know who you are (unauthenticated)
    # 403 = we know who you are, but your role is not allowed
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"    # 401
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    REFRESH_TOKEN_INVALID      = "REFRESH_TOKEN_INVALID"  # 401
    FORBIDDEN                  = "FORBIDDEN"              # 403

    # ── System Errors ──────────────────────────────────────────────────────
    STORE_UNAVAILABLE          = "STORE_UNAVAILABLE"      # 503
    INTERNAL_ERROR             = "INTERNAL_ERROR"         # 500


# ── Convenience constructors ───────────────────────────────────────────────
# The split engine and the lifecycle guards raise these from several
# services; keeping them here keeps the message wording in one place.

def invalid_split(message: str) -> AppError:
    return AppError(ErrorCode.INVALID_SPLIT, message, 422, field="expense_owners")


def resource_in_use(resource: str, resource_id: int) -> AppError:
    return AppError(
        ErrorCode.RESOURCE_IN_USE,
        f"{resource} {resource_id} is referenced by existing expenses or incomes "
        f"and cannot be deleted.",
        409,
    )
