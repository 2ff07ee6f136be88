"""Exception hierarchy for specgraph.

All exceptions inherit from :class:`SpecgraphError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`specgraph.exit_codes`.
The top-level error handler in :func:`specgraph.app.main` catches
``SpecgraphError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Resolution itself never raises on malformed documents; only the loader and
the export boundary do.

Subclass hierarchy::

    SpecgraphError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- SpecParseError         (exit 7)
    +-- ExportValidationError  (exit 8)
    +-- ConfigError            (exit 1)
"""

from __future__ import annotations

from typing import NamedTuple, Sequence

from specgraph.exit_codes import (
    EXIT_EXPORT_INVALID,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
)


class SpecgraphError(Exception):
    """Base exception for all specgraph errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`specgraph.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SpecgraphError):
    """Raised for a command-line value the command cannot use (e.g. an unknown config key)."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(SpecgraphError):
    """Raised when the input document cannot be loaded, parsed, or dereferenced."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(SpecgraphError):
    """Raised for configuration problems (invalid JSON, unknown keys, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class ExportFieldError(NamedTuple):
    """A single offending field in a rejected relationships export."""

    path: str
    message: str


class ExportValidationError(SpecgraphError):
    """Raised when a relationships export violates its structural contract.

    This is a construction error: the in-memory model broke its own
    invariants. The message enumerates every offending field path, one per
    line, and the same data is available on :attr:`errors`.

    Args:
        errors: The offending fields, in the order they were reported.
        title: Name of the structure that failed validation.
    """

    exit_code = EXIT_EXPORT_INVALID

    def __init__(
        self,
        errors: Sequence[ExportFieldError],
        title: str = "RelationshipsExport",
    ):
        self.errors: tuple[ExportFieldError, ...] = tuple(errors)
        lines = [f"Invalid {title} structure:"]
        lines.extend(f"  - {err.path or '<root>'}: {err.message}" for err in self.errors)
        super().__init__("\n".join(lines))
