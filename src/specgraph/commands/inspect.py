"""Inspect commands -- examine what the engine derives from a document.

Provides the read-only ``operations``, ``schemas``, ``relationships`` and
``mutual`` commands. Each one loads the document named on the command line
(file path, URL, or ``-`` for stdin), resolves the engine configuration,
and presents the result as a table or as JSON.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from specgraph.exceptions import SpecgraphError, SpecParseError
from specgraph.models import EngineConfig, OperationDescriptor
from specgraph.output import debug, error, format_document, get_output, info, suggest

_SPEC_HELP = "OpenAPI document: file path, URL, or '-' for stdin."
_STRICT_HELP = "Fail on unresolvable $ref pointers instead of skipping them."
_DEFAULT_TAG_HELP = "Tag assigned to operations without one."


def _load(
    source: str,
    export_version: Optional[str] = None,
    default_tag: Optional[str] = None,
) -> tuple[dict[str, Any], EngineConfig]:
    """Resolve the configuration and load a validated OpenAPI 3.x document.

    Raises:
        typer.Exit: With the error's exit code when the configuration or
            the document cannot be loaded.
    """
    from specgraph.config import resolve_config
    from specgraph.parser import load_spec, validate_openapi_version

    try:
        config = resolve_config(
            cli_export_version=export_version, cli_default_tag=default_tag
        )
        document = load_spec(source)
        version = validate_openapi_version(document)
    except SpecgraphError as exc:
        error(str(exc))
        if isinstance(exc, SpecParseError):
            suggest("Check the document path and that it declares 'openapi: 3.x'.")
        raise typer.Exit(code=exc.exit_code) from None

    debug(f"Loaded OpenAPI {version} document from {source}")
    return document, config


def _signature(operation: OperationDescriptor) -> str:
    parts = [
        f"{p.sanitized_name}{'?' if p.is_optional else ''}: {p.inferred_type}"
        for p in operation.parameters
    ]
    if operation.body_type is not None:
        parts.append(f"body{'' if operation.body_required else '?'}: {operation.body_type}")
    return ", ".join(parts)


def _flags(operation: OperationDescriptor) -> str:
    flags = []
    if operation.is_multipart:
        flags.append(f"upload({operation.file_field_name})")
    if operation.is_binary_response:
        flags.append("binary")
    if operation.deprecated:
        flags.append("deprecated")
    return " ".join(flags)


def operations_command(
    spec: str = typer.Argument(help=_SPEC_HELP),
    strict: bool = typer.Option(False, "--strict", help=_STRICT_HELP),
    default_tag: Optional[str] = typer.Option(None, "--default-tag", help=_DEFAULT_TAG_HELP),
) -> None:
    """List the operation catalog grouped by tag.

    Example::

        specgraph operations petstore.yaml
        specgraph --json operations https://example.com/openapi.json
    """
    from specgraph.parser import build_catalog

    document, config = _load(spec, default_tag=default_tag)
    try:
        catalog = build_catalog(document, config, strict_refs=strict)
    except SpecgraphError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    headers = ["Tag", "Method", "Path", "Name", "Signature", "Returns", "Flags"]
    rows: list[list[str]] = []
    for tag, operations in catalog.items():
        for op in operations:
            rows.append([
                tag,
                op.http_method.value.upper(),
                op.raw_path,
                op.normalized_name,
                _signature(op),
                op.response_type,
                _flags(op),
            ])

    if not rows:
        info("No operations defined in this document.")
        return
    get_output().print_table(headers, rows, title=f"Operations ({len(rows)})")


def schemas_command(
    spec: str = typer.Argument(help=_SPEC_HELP),
) -> None:
    """List the named schemas and which of them share a structure.

    Two schemas with the same structural fingerprint are interchangeable for
    type resolution; the first declared one wins when an inline schema
    matches both.

    Example::

        specgraph schemas petstore.yaml
    """
    from specgraph.parser import named_schemas
    from specgraph.resolution.canonical import fingerprint, is_structurally_empty
    from specgraph.resolution.schema_ref import schema_type

    document, _ = _load(spec)
    schemas = named_schemas(document)
    if not schemas:
        info("No schemas defined in this document.")
        return

    by_shape: dict[str, list[str]] = {}
    for name, node in schemas.items():
        if isinstance(node, dict) and not is_structurally_empty(node):
            by_shape.setdefault(fingerprint(node), []).append(name)

    headers = ["Schema", "Type", "Properties", "Same shape as"]
    rows: list[list[str]] = []
    for name, node in schemas.items():
        props = node.get("properties") if isinstance(node, dict) else None
        prop_names = list(props) if isinstance(props, dict) else []
        shown = ", ".join(prop_names[:5]) + ("..." if len(prop_names) > 5 else "")
        twins: list[str] = []
        if isinstance(node, dict) and not is_structurally_empty(node):
            twins = [n for n in by_shape[fingerprint(node)] if n != name]
        rows.append([
            name,
            schema_type(node) or ("$ref" if isinstance(node, dict) and "$ref" in node else "-"),
            shown,
            ", ".join(twins),
        ])

    get_output().print_table(headers, rows, title=f"Schemas ({len(rows)})")


def relationships_command(
    spec: str = typer.Argument(help=_SPEC_HELP),
    strict: bool = typer.Option(False, "--strict", help=_STRICT_HELP),
    export_version: Optional[str] = typer.Option(
        None, "--export-version", help="Version stamped into the export metadata."
    ),
    default_tag: Optional[str] = typer.Option(None, "--default-tag", help=_DEFAULT_TAG_HELP),
) -> None:
    """Infer entity relationships and print the relationships export.

    The export is sorted and validated before it is printed, so the output
    is reproducible for identical input. Use ``-o FILE`` to write it to a
    file.

    Example::

        specgraph relationships petstore.yaml
        specgraph -o relationships.json relationships petstore.yaml
    """
    from specgraph.relationships.detector import infer_from_document

    document, config = _load(spec, export_version=export_version, default_tag=default_tag)
    try:
        export = infer_from_document(document, config, strict_refs=strict)
    except SpecgraphError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    debug(
        f"{export.metadata.total_entities} entities, "
        f"{export.metadata.total_relationships} relationships"
    )
    format_document(export.to_dict())


def mutual_command(
    spec: str = typer.Argument(help=_SPEC_HELP),
) -> None:
    """List entity pairs related in both directions.

    Example::

        specgraph mutual petstore.yaml
    """
    from specgraph.relationships.detector import infer_from_document
    from specgraph.relationships.graph import find_mutual_pairs

    document, config = _load(spec)
    export = infer_from_document(document, config)

    by_pair = {(r.source_entity, r.target_entity): r for r in export.relationships}
    rows: list[list[str]] = []
    for a, b in find_mutual_pairs(export.relationships):
        forward, backward = by_pair[(a, b)], by_pair[(b, a)]
        rows.append([
            a,
            b,
            forward.type.value,
            backward.type.value,
            f"{forward.confidence.value}/{backward.confidence.value}",
        ])

    if not rows:
        info("No mutual relationships found.")
        return
    get_output().print_table(
        ["Entity A", "Entity B", "A -> B", "B -> A", "Confidence"],
        rows,
        title=f"Mutual relationships ({len(rows)})",
    )
