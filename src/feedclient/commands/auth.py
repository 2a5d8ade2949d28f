"""Auth commands -- start, end and inspect the stored session.

Typical workflow::

    feedclient auth login ada@example.com   # prompts for the password
    feedclient auth whoami
    feedclient auth logout
"""

from __future__ import annotations

from typing import Optional

import typer

from feedclient.commands import run_session
from feedclient.output import format_response, info, success


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(
    ctx: typer.Context,
    email: str = typer.Argument(help="Account email."),
    password: Optional[str] = typer.Option(
        None, "--password", "-p", help="Password (prompted when omitted)."
    ),
) -> None:
    """Log in and store the token pair in the credential store.

    Example::

        feedclient auth login ada@example.com --password hunter2
    """
    if password is None:
        password = typer.prompt("Password", hide_input=True)

    data = run_session(ctx, lambda session: session.auth.login(email, password))
    user = data.get("user") or {}
    success(f"Logged in as {user.get('username') or email}.")


@auth_app.command("logout")
def auth_logout(ctx: typer.Context) -> None:
    """Log out and drop the stored credentials."""
    run_session(ctx, lambda session: session.auth.logout())
    success("Logged out.")


@auth_app.command("whoami")
def auth_whoami(ctx: typer.Context) -> None:
    """Show the user stored at login, without contacting the backend."""

    async def _current(session):  # noqa: ANN001, ANN202
        if not session.auth.is_authenticated():
            return None
        return session.auth.current_user()

    user = run_session(ctx, _current)
    if user is None:
        info("Not logged in.")
        raise typer.Exit(code=1)
    format_response(user)
