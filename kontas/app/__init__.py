"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - Clean separation between app creation and app startup
           - Alembic and the CLI to load the app without serving requests

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure logging from LOG_LEVEL
  3. Initialise the SQLAlchemy extension via init_app()
  4. Register all route blueprints under /api/v1
  5. Register global error handlers (AppError → JSON, Exception → 500)
  6. Register a custom JSON provider to serialise Decimal as string
  7. Register CLI commands (create-admin)

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic inspects it. They are not used
  directly here — the import side-effect is sufficient.
"""

from __future__ import annotations

import logging
import os
import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from flask.logging import default_handler
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from kontas.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# Flask's default JSON encoder does not handle Decimal.
# Monetary amounts and percentages are serialised as strings to preserve
# precision; clients never receive them as JS numbers.

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("10.50") → "10.50" (not 10.5 or 10.500000001)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str | None = None) -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to $FLASK_ENV, then "development".

    Returns:
        A fully configured Flask app ready to serve requests.
    """
    config_name = config_name or os.getenv("FLASK_ENV", "development")

    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from kontas.app.extensions import db
    db.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    # Import all models so that SQLAlchemy's MetaData is populated.
    # Imported for the side effect of registering the tables.
    with app.app_context():
        from kontas.app.models import (  # noqa: F401
            card_account,
            category,
            expense,
            expense_owner,
            income,
            user,
        )

    # ── Blueprints ─────────────────────────────────────────────────────────
    _register_blueprints(app)

    # ── Error handlers ─────────────────────────────────────────────────────
    _register_error_handlers(app)
    _register_cors(app)

    # ── CLI ────────────────────────────────────────────────────────────────
    from kontas.app.cli import create_admin_command
    app.cli.add_command(create_admin_command)

    return app


def _configure_logging(app: Flask) -> None:
    """
    Sets the level of app.logger and of the `kontas` logger tree (services
    log through logging.getLogger(__name__)) from LOG_LEVEL, and routes the
    `kontas` loggers through Flask's default handler.
    """
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()

    # app.logger is "kontas.app"; attaching the handler to the parent first
    # stops Flask from adding a second one to app.logger.
    package_logger = logging.getLogger("kontas")
    package_logger.setLevel(level)
    if default_handler not in package_logger.handlers:
        package_logger.addHandler(default_handler)

    app.logger.setLevel(level)


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    The url_prefix is set here so individual route files only specify
    the path relative to their resource (e.g. "" and "/<int:id>").
    """
    from kontas.app.routes.auth import auth_bp
    from kontas.app.routes.card_accounts import card_accounts_bp
    from kontas.app.routes.categories import categories_bp
    from kontas.app.routes.expenses import expenses_bp
    from kontas.app.routes.incomes import incomes_bp
    from kontas.app.routes.users import users_bp

    app.register_blueprint(auth_bp,          url_prefix="/api/v1/auth")
    app.register_blueprint(users_bp,         url_prefix="/api/v1/users")
    app.register_blueprint(categories_bp,    url_prefix="/api/v1/categories")
    app.register_blueprint(card_accounts_bp, url_prefix="/api/v1/card-accounts")
    app.register_blueprint(expenses_bp,      url_prefix="/api/v1/expenses")
    app.register_blueprint(incomes_bp,       url_prefix="/api/v1/incomes")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError         → structured JSON error envelope with the correct HTTP status
      ValidationError  → marshmallow schema errors formatted as MISSING_FIELD /
                         INVALID_FIELD / specific code responses (400)
      IntegrityError   → CONFLICT (409); a unique constraint lost a race
                         against a concurrent request
      OperationalError → STORE_UNAVAILABLE (503)
      HTTPException    → werkzeug errors (404 unknown route, 405, bad JSON)
                         in the same JSON envelope
      Exception        → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces and store error text never leave the server.
    """
    from kontas.app.errors import AppError, ErrorCode
    from kontas.app.extensions import db

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """
        Converts an AppError raised anywhere in the request lifecycle
        (middleware, service, route) into the standard error envelope.

        Routes never catch AppError — they let it propagate here. Nothing
        was committed, so discarding the session undoes any flushed rows.
        """
        db.session.rollback()
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Only the FIRST error is returned ("one error, not many"). Nested
        errors (e.g. expense_owners[0].percentage) are reported against the
        top-level field.

        The error code from the ValidationError message is used directly if it
        matches a known ErrorCode constant; otherwise INVALID_FIELD is used.
        """
        field, raw_message = _first_validation_error(error.messages)

        known_codes = set(vars(ErrorCode).values())
        if raw_message in known_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(error: IntegrityError):
        db.session.rollback()
        app.logger.warning("Integrity error: %s", error.orig)
        return jsonify({
            "error": {
                "code": ErrorCode.CONFLICT,
                "message": "The request conflicts with existing data.",
            }
        }), 409

    @app.errorhandler(OperationalError)
    def handle_operational_error(error: OperationalError):
        db.session.rollback()
        app.logger.error("Database unavailable: %s", error.orig)
        return jsonify({
            "error": {
                "code": ErrorCode.STORE_UNAVAILABLE,
                "message": "The data store is temporarily unavailable. Please try again later.",
            }
        }), 503

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        code = {
            404: ErrorCode.NOT_FOUND,
            405: ErrorCode.METHOD_NOT_ALLOWED,
        }.get(error.code, ErrorCode.BAD_REQUEST)
        return jsonify({
            "error": {
                "code": code,
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.

        The full traceback is logged to the application logger. Stack traces
        NEVER leave the server in the response body.
        """
        db.session.rollback()
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a frontend served from another
    local port can call the API with Authorization headers.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            # Reflect origin when present so bearer-auth requests from local
            # dev servers are accepted by browsers.
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response


def _first_validation_error(messages) -> tuple[str | None, str]:
    """
    Returns (top-level field or None, first leaf message) from a marshmallow
    messages structure such as
      {"amount": ["INVALID_AMOUNT_PRECISION"]}
      {"expense_owners": {0: {"percentage": ["Not a valid number."]}}}
      {"_schema": ["..."]}
    """
    if isinstance(messages, dict):
        for field_name, field_errors in messages.items():
            _, message = _first_validation_error(field_errors)
            field = field_name if isinstance(field_name, str) and field_name != "_schema" else None
            return field, message
        return None, "Invalid input."

    if isinstance(messages, list):
        if not messages:
            return None, "Invalid value."
        return _first_validation_error(messages[0])

    return None, str(messages)


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself
    (e.g. INVALID_AMOUNT_PRECISION raised as ValidationError in schemas).
    """
    _messages = {
        "INVALID_AMOUNT_PRECISION": "Amount must have at most 2 decimal places.",
        "INVALID_CATEGORY_TYPE": "Category type must be 'INCOME' or 'EXPENSE'.",
        "INVALID_CARD_ACCOUNT_TYPE": (
            "Card account type must be one of CREDIT_CARD, DEBIT_CARD, BANK_ACCOUNT, PIX, CASH."
        ),
    }
    return _messages.get(code, "Invalid input.")
