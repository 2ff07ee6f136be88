"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~specgraph.exceptions.SpecgraphError` subclass.
Shell wrappers and CI jobs can inspect the exit code to tell a broken input
document apart from an engine invariant violation without parsing stderr.

Example::

    $ specgraph relationships openapi.yaml
    $ echo $?
    7   # EXIT_SPEC_PARSE_ERROR -- the document could not be loaded
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_PARSE_ERROR = 7
"""The input document could not be loaded, parsed, or dereferenced."""

EXIT_EXPORT_INVALID = 8
"""The relationships export violated its own structural contract."""
