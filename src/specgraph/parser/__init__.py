"""OpenAPI document ingestion -- load, dereference, and build the operation catalog.

This sub-package turns a raw OpenAPI 3.x document (JSON or YAML, local file
or remote URL) into the operation catalog that emitters and the relationship
engine consume.

Typical usage::

    from specgraph.parser import build_catalog, load_spec, validate_openapi_version

    document = load_spec("https://petstore3.swagger.io/api/v3/openapi.json")
    validate_openapi_version(document)
    catalog = build_catalog(document)

Sub-modules:

* :mod:`~specgraph.parser.loader` -- I/O layer (URL, file, stdin), format
  detection, version validation and tolerant accessors.
* :mod:`~specgraph.parser.refs` -- inlining of non-schema ``$ref`` pointers.
* :mod:`~specgraph.parser.catalog` -- builds
  :class:`~specgraph.models.OperationDescriptor` objects grouped by tag.
"""

from specgraph.parser.catalog import build_catalog
from specgraph.parser.loader import (
    document_info,
    load_spec,
    named_schemas,
    validate_openapi_version,
)

__all__ = [
    "build_catalog",
    "document_info",
    "load_spec",
    "named_schemas",
    "validate_openapi_version",
]
