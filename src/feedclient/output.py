"""Terminal rendering for the ``feedclient`` CLI.

Response bodies and tables are written to stdout; status lines, errors and
hints go to stderr, so ``feedclient posts feed --json | jq`` only ever sees
data. The format defaults to rich on an interactive terminal and to
tab-separated plain text otherwise. ``NO_COLOR`` and ``TERM=dumb`` turn
colour off, as does ``--no-color``.

Library code never prints. It logs through :mod:`logging`, and with
``--verbose`` :meth:`OutputManager.install_log_handler` attaches a
:class:`~rich.logging.RichHandler` so those records reach the stderr console.

Commands use the module-level shortcuts (:func:`format_response`,
:func:`info`, :func:`error`...), which forward to the manager installed by
:func:`~feedclient.app.main_callback`.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How stdout data is rendered. ``AUTO`` picks ``RICH`` or ``PLAIN``."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Holds the rendering preferences for one CLI invocation.

    Args:
        format: Requested format; ``AUTO`` means rich on a colour TTY.
        no_color: Force colour off regardless of the environment.
        quiet: Drop info, success and suggestion lines. Errors still print.
        verbose: Let :meth:`install_log_handler` surface library logs.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._format = _resolve_format(format, self._no_color)

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=self._format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    # -- stdout ---------------------------------------------------------- #

    def format_response(self, data: Any) -> None:
        """Write a decoded response body to stdout."""
        if self._format == OutputFormat.JSON:
            self._write(_to_json(data))
        elif self._format == OutputFormat.PLAIN:
            for line in _plain_lines(data):
                self._write(line)
        elif isinstance(data, (dict, list)):
            self._stdout.print(Syntax(_to_json(data), "json", theme="monokai", word_wrap=True))
        else:
            self._stdout.print(str(data))

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows to stdout.

        JSON output is a list of objects keyed by *headers*; plain output is
        one tab-separated line per row after a header line.
        """
        if self._format == OutputFormat.JSON:
            self._write(_to_json([dict(zip(headers, row)) for row in rows]))
            return
        if self._format == OutputFormat.PLAIN:
            for row in [headers, *rows]:
                self._write("\t".join(row))
            return
        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def _write(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    # -- stderr ---------------------------------------------------------- #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._note(message, message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._note(message, f"[green]{message}[/green]")

    def error(self, message: str) -> None:
        self._note(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def suggest(self, message: str) -> None:
        """Hint at the next command to run, e.g. ``feedclient auth login``."""
        if not self._quiet:
            self._note(f"→ {message}", f"[dim]→ {message}[/dim]")

    def _note(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)

    def install_log_handler(self, logger_name: str = "feedclient") -> Optional[logging.Handler]:
        """Route DEBUG and above from *logger_name* to stderr when verbose.

        Returns:
            The attached handler, or ``None`` if the manager is not verbose.
        """
        if not self._verbose:
            return None
        handler = RichHandler(console=self._stderr, show_path=False, markup=False)
        log = logging.getLogger(logger_name)
        log.addHandler(handler)
        log.setLevel(logging.DEBUG)
        return handler


def _resolve_format(requested: OutputFormat, no_color: bool) -> OutputFormat:
    if requested != OutputFormat.AUTO:
        return requested
    return OutputFormat.RICH if _is_tty() and not no_color else OutputFormat.PLAIN


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False, default=str)


def _plain_lines(data: Any) -> list[str]:
    """Flatten a body to lines: ``key<TAB>value`` for dicts, one line per list item."""
    if data is None:
        return []
    if isinstance(data, dict):
        return [f"{key}\t{value}" for key, value in data.items()]
    if isinstance(data, list):
        return [
            "\t".join(str(v) for v in item.values()) if isinstance(item, dict) else str(item)
            for item in data
        ]
    return [str(data)]


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# -- process-wide manager ------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager; the next :func:`get_output` builds a default."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)
