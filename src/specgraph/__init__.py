"""specgraph -- schema resolution and relationship inference for OpenAPI documents.

This package ingests an OpenAPI 3.x document and derives a normalized
intermediate model for downstream source emitters: resolved type names,
per-operation parameter signatures, and a confidence-scored relationship
graph with a validated, deterministic JSON export.

Typical workflow::

    from specgraph.parser import build_catalog, load_spec, named_schemas
    from specgraph.relationships import infer_relationships

    document = load_spec("openapi.yaml")
    catalog = build_catalog(document)
    export = infer_relationships(catalog, named_schemas(document))
    print(export.to_json())

Resolution never raises on malformed input; only loading and export
construction do.

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware engine configuration with precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
