"""Pure resolution utilities: naming, structural fingerprints and type names.

Sub-modules:

* :mod:`~specgraph.resolution.naming` -- identifier normalization and
  operation naming.
* :mod:`~specgraph.resolution.canonical` -- structural fingerprints of
  schema nodes.
* :mod:`~specgraph.resolution.schema_ref` -- one-time classification of raw
  schema nodes into the ``SchemaRef`` union.
* :mod:`~specgraph.resolution.types` -- the type/DTO resolver.
* :mod:`~specgraph.resolution.params` -- parameter-signature synthesis.
"""

from specgraph.resolution.canonical import fingerprint
from specgraph.resolution.naming import detect_convention, normalize, operation_name
from specgraph.resolution.schema_ref import classify_schema
from specgraph.resolution.types import (
    ParameterContext,
    TypeResolver,
    resolve_parameter_type,
    resolve_type,
)

__all__ = [
    "ParameterContext",
    "TypeResolver",
    "classify_schema",
    "detect_convention",
    "fingerprint",
    "normalize",
    "operation_name",
    "resolve_parameter_type",
    "resolve_type",
]
