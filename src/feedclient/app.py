"""``feedclient`` command line: the root Typer app and the console-script entry.

Global flags (``--base-url``, output format, ``--quiet``, ``--verbose``) are
handled once in :func:`main_callback`; the ``auth``, ``posts`` and
``comments`` groups come from :mod:`feedclient.commands`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from feedclient import __version__
from feedclient.exit_codes import EXIT_GENERIC_FAILURE

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="feedclient",
    help="Command-line client for the social-feed backend.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(f"feedclient {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_show_version, is_eager=True, help="Show version and exit."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Backend API root; beats FEEDCLIENT_BASE_URL and config.json."
    ),
    json_output: bool = typer.Option(False, "--json", help="Print data as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Print data as tab-separated text."),
    no_color: bool = typer.Option(False, "--no-color", help="Never use colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print data and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show library debug logs."),
) -> None:
    """Set up output for this invocation and remember ``--base-url`` in ``ctx.obj``."""
    from feedclient.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    output.install_log_handler()
    set_output(output)

    ctx.ensure_object(dict)
    ctx.obj["base_url"] = base_url


def _register_commands() -> None:
    from feedclient.commands.auth import auth_app
    from feedclient.commands.comments import comments_app
    from feedclient.commands.posts import posts_app

    app.add_typer(auth_app, name="auth", help="Log in, log out, show the current user.")
    app.add_typer(posts_app, name="posts", help="Browse and manage posts.")
    app.add_typer(comments_app, name="comments", help="Read and write comments.")


_register_commands()


def _exit_interrupted(*_: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_INTERRUPTED)


def _write_crash_log() -> Path:
    """Save the active traceback under ``<data dir>/logs`` and return the file."""
    from feedclient.config import get_data_dir

    log_dir = get_data_dir() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(traceback.format_exc())
    return log_path


def main() -> None:
    """Console-script entry point.

    A :class:`~feedclient.exceptions.FeedClientError` that escapes a command
    exits with its own code. Anything else is a bug: the traceback goes to a
    crash log and the exit code is generic failure.
    """
    from feedclient.exceptions import FeedClientError
    from feedclient.output import error

    signal.signal(signal.SIGINT, _exit_interrupted)
    try:
        app()
    except KeyboardInterrupt:
        _exit_interrupted()
    except FeedClientError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception:
        error(f"Unexpected error. Debug log: {_write_crash_log()}")
        sys.exit(EXIT_GENERIC_FAILURE)
