"""Built-in CLI sub-commands for feedclient.

This package groups the Typer sub-applications that form the CLI's
top-level command tree:

* :mod:`~feedclient.commands.auth` -- log in, log out, show the current user.
* :mod:`~feedclient.commands.posts` -- browse the feed, show, like and
  delete posts.
* :mod:`~feedclient.commands.comments` -- list and add comments.

Every command body is an ``async`` function run through :func:`run_session`,
which opens a :class:`~feedclient.session.FeedSession` for the duration of
the call and turns library errors into exit codes.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, TypeVar

import typer

from feedclient.exceptions import FeedClientError, ReauthenticationRequired

T = TypeVar("T")


def run_session(ctx: typer.Context, operation: Callable[[Any], Awaitable[T]]) -> T:
    """Run *operation* against a fresh session built from the CLI options.

    Args:
        ctx: The Typer context; ``ctx.obj["base_url"]`` overrides the
            configured backend.
        operation: Coroutine function receiving the open session.

    Raises:
        typer.Exit: With the error's ``exit_code`` on any
            :class:`~feedclient.exceptions.FeedClientError`.
    """
    from feedclient.config import resolve_config
    from feedclient.output import error, suggest
    from feedclient.session import FeedSession

    obj = ctx.obj or {}

    async def _run() -> T:
        async with FeedSession(resolve_config(obj.get("base_url"))) as session:
            return await operation(session)

    try:
        return asyncio.run(_run())
    except FeedClientError as exc:
        error(str(exc))
        if isinstance(exc, ReauthenticationRequired):
            suggest("Run 'feedclient auth login EMAIL' to start a new session.")
        raise typer.Exit(code=exc.exit_code) from None
