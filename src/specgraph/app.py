"""The ``specgraph`` command line.

Commands::

    specgraph operations SPEC      operation catalog, grouped by tag
    specgraph schemas SPEC         named schemas and structural twins
    specgraph relationships SPEC   the validated relationships export
    specgraph mutual SPEC          entity pairs related both ways
    specgraph config ...           user configuration

Global flags (``--json``, ``--plain``, ``-q``, ``-v``, ``-o`` ...) go before
the command name and are applied by :func:`main_callback`.

:func:`main` is the console-script entry point. A
:class:`~specgraph.exceptions.SpecgraphError` that escapes a command exits
with its own code; anything else is written to a crash log.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from specgraph import __version__
from specgraph.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="specgraph",
    help="Resolve types and infer entity relationships from OpenAPI 3.x documents.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

from specgraph.commands.config import config_app  # noqa: E402
from specgraph.commands.inspect import (  # noqa: E402
    mutual_command,
    operations_command,
    relationships_command,
    schemas_command,
)

app.command("operations")(operations_command)
app.command("schemas")(schemas_command)
app.command("relationships")(relationships_command)
app.command("mutual")(mutual_command)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"specgraph {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Tab-separated plain output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show engine debug output."),
    output_file: Optional[str] = typer.Option(
        None, "-o", "--output", help="Write the command result to this file."
    ),
) -> None:
    """Install the output manager for this run and route engine logs to it."""
    from specgraph.output import OutputFormat, OutputManager, configure_logging, set_output

    if json_output and plain_output:
        raise typer.BadParameter("--json and --plain cannot be combined.")
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
            output_file=output_file,
        )
    )
    configure_logging(verbose)


def _setup_signal_handlers() -> None:
    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: BaseException) -> Path:
    """Save the traceback of *exc* under ``<data dir>/logs`` and return the file."""
    from specgraph.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        encoding="utf-8",
    )
    return log_path


def main() -> None:
    """Entry point of the ``specgraph`` console script.

    Raises:
        SystemExit: Always.
    """
    from specgraph.exceptions import SpecgraphError
    from specgraph.output import error

    _setup_signal_handlers()
    try:
        app()
    except SpecgraphError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)
