"""
tests/unit/conftest.py — Shared setup for the DB-free unit tests.

Some unit tests instantiate ORM classes (e.g. ExpenseOwner). SQLAlchemy
configures every mapper on first instantiation, so all models referenced
by string in a relationship() must be imported, as create_app() does.
"""

from __future__ import annotations

import pytest
from flask import Flask

from kontas.app.models import (  # noqa: F401
    card_account,
    category,
    expense,
    expense_owner,
    income,
    user,
)
from kontas.config import TestingConfig


@pytest.fixture
def app_context():
    """
    A bare Flask app context carrying TestingConfig, for code that reads
    current_app.config (JWT secrets, bcrypt rounds, page sizes). No
    extensions and no database.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(TestingConfig)
    with flask_app.app_context():
        yield flask_app
