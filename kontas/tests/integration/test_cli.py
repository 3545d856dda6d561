"""
tests/integration/test_cli.py — The `create-admin` CLI command.
"""

from __future__ import annotations

from .conftest import login


def _invoke(app, *args):
    return app.test_cli_runner().invoke(args=["create-admin", *args])


def test_create_admin_command_creates_an_admin(app, client):
    result = _invoke(
        app,
        "--username", "root2",
        "--full-name", "Second Admin",
        "--email", "root2@kontas.test",
        "--phone", "11911111111",
        "--password", "Password1",
    )

    assert result.exit_code == 0, result.output
    assert "root2" in result.output
    assert login(client, "root2")["user"]["role"] == "admin"


def test_create_admin_command_rejects_invalid_input(app):
    result = _invoke(
        app,
        "--username", "root2",
        "--full-name", "Second Admin",
        "--email", "not-an-email",
        "--phone", "11911111111",
        "--password", "Password1",
    )

    assert result.exit_code != 0
    assert "email" in result.output


def test_create_admin_command_rejects_duplicate_username(app):
    result = _invoke(
        app,
        "--username", "admin",
        "--full-name", "Another Admin",
        "--email", "another@kontas.test",
        "--phone", "11911111111",
        "--password", "Password1",
    )

    assert result.exit_code != 0
    assert "already taken" in result.output
