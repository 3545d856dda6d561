"""
cli.py — Flask CLI commands.

  flask --app kontas.app:create_app create-admin

User creation through the API is restricted to administrators, so the
first administrator is created here.
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext
from marshmallow import ValidationError

from kontas.app.errors import AppError
from kontas.app.extensions import db
from kontas.app.models.user import UserRole
from kontas.app.schemas.user_schema import CreateUserSchema
from kontas.app.services import user_service


@click.command("create-admin")
@click.option("--username", prompt=True)
@click.option("--full-name", prompt=True)
@click.option("--email", prompt=True)
@click.option("--phone", prompt=True, help="11 digits, area code included.")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin_command(username, full_name, email, phone, password):
    """Create an administrator account."""
    try:
        data = CreateUserSchema().load({
            "username": username,
            "full_name": full_name,
            "email": email,
            "phone": phone,
            "password": password,
        })
    except ValidationError as exc:
        raise click.ClickException(f"Invalid input: {exc.messages}")

    try:
        user = user_service.create_user(data, session=db.session, role=UserRole.ADMIN)
    except AppError as exc:
        db.session.rollback()
        raise click.ClickException(exc.message)

    db.session.commit()
    click.echo(f"Administrator '{user.username}' created (id={user.id}).")
