"""
extensions.py — Flask extension singletons.

The SQLAlchemy object lives at module level so it can be imported anywhere
without creating circular dependencies.

Pattern:
    1. Create the extension object here (no app attached yet).
    2. Call init_app(app) inside the app factory in app/__init__.py.
    3. Import `db` from here wherever needed.

`db` is the store handle. It is bound to an app in create_app() and its
engine is disposed when the app is torn down; services never import it,
they receive `db.session` from the route as an explicit `session` argument.

Validation schemas in app/schemas/ are plain marshmallow.Schema classes and
need no extension object.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
