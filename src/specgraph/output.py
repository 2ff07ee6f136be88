"""Terminal output for the specgraph CLI.

Data and diagnostics never share a stream:

* **stdout** carries the result of a command (a table or the relationships
  export) and nothing else, so it can be piped into ``jq`` or a file.
* **stderr** carries status lines, warnings, errors, suggestions and, with
  ``--verbose``, engine debug records.

Rich styling is used only when stdout is an interactive terminal and colour
has not been disabled through ``NO_COLOR``, ``TERM=dumb`` or ``--no-color``.

The CLI builds one :class:`OutputManager` per invocation in
:func:`~specgraph.app.main_callback` and installs it with :func:`set_output`.
Command code then calls the module-level helpers (:func:`info`,
:func:`error`, :func:`format_document`, ...) without passing it around.

Engine modules never print. They log under the ``specgraph`` logger, and
:func:`configure_logging` attaches a :class:`DiagnosticsHandler` that turns
those records into stderr diagnostics.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, NamedTuple, Optional

from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How command results are rendered on stdout.

    ``AUTO`` becomes ``RICH`` on an interactive, colour-capable terminal and
    ``PLAIN`` everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class _Style(NamedTuple):
    prefix: str
    markup: str
    quiet_hides: bool


# Diagnostic kinds: plain-text prefix, Rich markup template, hidden by --quiet.
_STYLES: dict[str, _Style] = {
    "info": _Style("", "{}", True),
    "success": _Style("", "[green]{}[/green]", True),
    "suggest": _Style("→ ", "[dim]→ {}[/dim]", True),
    "warning": _Style("Warning: ", "[yellow]Warning:[/yellow] {}", False),
    "error": _Style("Error: ", "[bold red]Error:[/bold red] {}", False),
    "debug": _Style("[debug] ", "[dim]\\[debug] {}[/dim]", False),
}


class OutputManager:
    """Routes command results to stdout (or ``-o FILE``) and diagnostics to stderr.

    Args:
        format: Requested format; ``AUTO`` is resolved on construction.
        no_color: Force uncoloured output even on a terminal.
        quiet: Hide info, success and suggestion lines.
        verbose: Show debug lines.
        output_file: Write results to this path instead of stdout. The first
            write of an invocation truncates the file.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file
        self._file_started = False

        if format is OutputFormat.AUTO:
            format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        self._format = format

        rich_stdout = format is OutputFormat.RICH
        self._stdout = Console(file=sys.stdout, no_color=self._no_color, force_terminal=rich_stdout)
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    # ------------------------------------------------------------------ #
    # Results
    # ------------------------------------------------------------------ #

    def format_document(self, data: Any) -> None:
        """Emit a JSON-ready document.

        Every format except Rich prints two-space indented JSON, so the
        export stays machine-readable when piped. Rich highlights the same
        text. A configured output file always receives the plain JSON.
        """
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format is OutputFormat.RICH and not self._output_file:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self.print_data(text)

    def print_data(self, text: str) -> None:
        """Write one block of result text, newline-terminated."""
        if not text.endswith("\n"):
            text += "\n"
        if not self._output_file:
            sys.stdout.write(text)
            sys.stdout.flush()
            return
        mode = "a" if self._file_started else "w"
        with open(self._output_file, mode, encoding="utf-8") as f:
            f.write(text)
        self._file_started = True

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Render rows as a Rich table, TSV lines, or a JSON array of objects.

        In JSON mode each row becomes an object keyed by *headers*. *title*
        is shown in Rich mode only.
        """
        if self._format is OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format is OutputFormat.PLAIN:
            self.print_data("\n".join("\t".join(line) for line in [headers, *rows]))
        else:
            table = Table(*headers, title=title, header_style="bold cyan")
            for row in rows:
                table.add_row(*(escape(cell) for cell in row))
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics
    # ------------------------------------------------------------------ #

    def diagnostic(self, kind: str, message: str) -> None:
        """Write a diagnostic of the given *kind* (a key of ``_STYLES``) to stderr."""
        style = _STYLES[kind]
        if style.quiet_hides and self._quiet:
            return
        if kind == "debug" and not self._verbose:
            return
        if self._no_color:
            sys.stderr.write(f"{style.prefix}{message}\n")
            sys.stderr.flush()
        else:
            self._stderr.print(style.markup.format(escape(message)), highlight=False)

    def info(self, message: str) -> None:
        self.diagnostic("info", message)

    def success(self, message: str) -> None:
        self.diagnostic("success", message)

    def warning(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self.diagnostic("warning", message)

    def error(self, message: str) -> None:
        """Shown even with ``--quiet``."""
        self.diagnostic("error", message)

    def suggest(self, message: str) -> None:
        self.diagnostic("suggest", message)

    def debug(self, message: str) -> None:
        """Shown only with ``--verbose``."""
        self.diagnostic("debug", message)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything or ``TERM`` is ``dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Engine logging
# ------------------------------------------------------------------ #


class DiagnosticsHandler(logging.Handler):
    """Turns ``specgraph.*`` log records into stderr diagnostics.

    The record's logger name is kept as a prefix so ``--verbose`` output
    shows which stage (loader, refs, catalog, detector) produced it.
    """

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.ERROR:
            kind = "error"
        elif record.levelno >= logging.WARNING:
            kind = "warning"
        else:
            kind = "debug"
        get_output().diagnostic(kind, f"{record.name}: {record.getMessage()}")


def configure_logging(verbose: bool) -> None:
    """Attach a single :class:`DiagnosticsHandler` to the ``specgraph`` logger.

    Safe to call once per CLI invocation; an earlier handler is replaced.
    """
    logger = logging.getLogger("specgraph")
    for handler in [h for h in logger.handlers if isinstance(h, DiagnosticsHandler)]:
        logger.removeHandler(handler)
    logger.addHandler(DiagnosticsHandler())
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


# ------------------------------------------------------------------ #
# Process-wide manager
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating an ``AUTO`` one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (tests call this between CLI runs)."""
    global _output
    _output = None


def format_document(data: Any) -> None:
    get_output().format_document(data)


def print_data(text: str) -> None:
    get_output().print_data(text)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def debug(message: str) -> None:
    get_output().debug(message)
