"""Build the operation catalog of an OpenAPI document.

The catalog groups one :class:`~specgraph.models.OperationDescriptor` per
(path, method) pair under the operation's primary tag. Each descriptor
carries the normalized operation name, the ordered parameter signature, the
resolved body and response types, and the file-upload / binary-response
flags an emitter needs to pick the right request and response handling.

Ordering follows the document: tags appear in the order they are first
seen, and operations keep path order and then verb order within each path
item. Building a catalog never raises on malformed input; unusable
operations, parameters and references are skipped or fall back to generic
markers.

Example::

    document = load_spec("petstore.yaml")
    catalog = build_catalog(document)
    for tag, operations in catalog.items():
        for op in operations:
            print(tag, op.http_method.value, op.raw_path, op.normalized_name)
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterator, Optional

from specgraph.models import (
    ANY,
    VOID,
    EngineConfig,
    HTTPMethod,
    OperationDescriptor,
    SchemaRole,
)
from specgraph.parser.loader import named_schemas
from specgraph.parser.refs import resolve_component_refs
from specgraph.resolution.naming import entity_name, operation_name
from specgraph.resolution.params import build_parameters, merge_parameters
from specgraph.resolution.schema_ref import classify_schema, ref_name
from specgraph.resolution.types import TypeResolver

logger = logging.getLogger(__name__)

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)

Catalog = dict[str, tuple[OperationDescriptor, ...]]


def build_catalog(
    document: Any,
    config: Optional[EngineConfig] = None,
    strict_refs: bool = False,
) -> Catalog:
    """Build the tag -> operations catalog for *document*.

    Args:
        document: The raw OpenAPI document. Anything that is not a dict
            yields an empty catalog.
        config: Engine settings; defaults to :class:`~specgraph.models.EngineConfig`.
        strict_refs: Raise on unresolvable non-schema references instead
            of skipping what they point to.

    Returns:
        A dict mapping each tag to its operations in declaration order.

    Raises:
        SpecParseError: Only when *strict_refs* is set and a reference
            cannot be resolved.
    """
    config = config or EngineConfig()
    if not isinstance(document, dict):
        return {}

    resolved = resolve_component_refs(document, strict=strict_refs)
    resolver = TypeResolver(named_schemas(resolved), config.reserved_type_names)

    grouped: dict[str, list[OperationDescriptor]] = {}
    for operation in iter_operations(resolved, resolver, config):
        grouped.setdefault(operation.tag, []).append(operation)
    return {tag: tuple(operations) for tag, operations in grouped.items()}


def iter_operations(
    document: dict[str, Any],
    resolver: TypeResolver,
    config: EngineConfig,
) -> Iterator[OperationDescriptor]:
    """Yield a descriptor for every recognised (path, method) pair, in document order."""
    paths = document.get("paths")
    if not isinstance(paths, dict):
        return

    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        path_params = path_item.get("parameters")

        for key, operation in path_item.items():
            method = str(key).lower()
            if method not in _HTTP_METHODS or not isinstance(operation, dict):
                continue
            yield build_operation(str(path), method, operation, path_params, resolver, config)


def build_operation(
    path: str,
    method: str,
    operation: dict[str, Any],
    path_params: Any,
    resolver: TypeResolver,
    config: EngineConfig,
) -> OperationDescriptor:
    """Build the descriptor of a single operation."""
    tags = operation.get("tags")
    first_tag = tags[0] if isinstance(tags, list) and tags else None
    tagged = isinstance(first_tag, str) and bool(first_tag.strip())
    tag = first_tag if tagged else config.default_tag
    entity = entity_name(tag) if tagged else None

    operation_id = operation.get("operationId")
    summary = _text(operation.get("summary"))
    description = _text(operation.get("description"))

    parameters = build_parameters(
        merge_parameters(path_params, operation.get("parameters")),
        resolver,
        entity,
    )

    request_body = operation.get("requestBody")
    body_schema = body_type = None
    body_required = False
    if isinstance(request_body, dict):
        body_schema = classify_schema(select_media_schema(request_body.get("content")))
        body_type = resolver.resolve(body_schema, SchemaRole.BODY)
        body_required = request_body.get("required") is True

    status, response = success_response(operation.get("responses"))
    response_schema = None
    response_type = VOID
    if response is not None:
        content = response.get("content")
        if isinstance(content, dict) and content:
            response_node = select_media_schema(content)
            if response_node is None:
                response_type = ANY
            else:
                response_schema = classify_schema(response_node)
                response_type = resolver.resolve(response_schema, SchemaRole.RESPONSE) or ANY

    is_multipart, file_field = detect_multipart(request_body, operation, resolver, config)

    return OperationDescriptor(
        http_method=HTTPMethod(method),
        raw_path=path,
        normalized_name=operation_name(
            operation_id, method, tag if tagged else None, path
        ),
        tag=tag,
        operation_id=operation_id if isinstance(operation_id, str) else None,
        summary=summary,
        description=description,
        parameters=parameters,
        body_schema=body_schema,
        body_type=body_type,
        body_required=body_required,
        response_schema=response_schema,
        response_type=response_type,
        is_multipart=is_multipart,
        file_field_name=file_field,
        is_binary_response=detect_binary_response(status, response, operation, config),
        deprecated=operation.get("deprecated") is True,
    )


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


# --- Media types ---


def select_media_schema(content: Any) -> Optional[dict[str, Any]]:
    """Pick the schema of the preferred media type in a ``content`` map.

    Preference: ``application/json``, then any other JSON media type
    (``*/json`` or ``*+json``), then the first entry that has a schema.
    """
    if not isinstance(content, dict):
        return None

    with_schema = [
        (str(media_type).lower(), media["schema"])
        for media_type, media in content.items()
        if isinstance(media, dict) and isinstance(media.get("schema"), dict)
    ]
    for media_type, schema in with_schema:
        if media_type == "application/json":
            return schema
    for media_type, schema in with_schema:
        if media_type.endswith("/json") or media_type.endswith("+json"):
            return schema
    return with_schema[0][1] if with_schema else None


def success_response(responses: Any) -> tuple[Optional[str], Optional[dict[str, Any]]]:
    """Return ``(status, response)`` for 200, else 201, else the first other 2xx.

    Returns ``(None, None)`` when the operation declares no success response.
    """
    if not isinstance(responses, dict):
        return None, None
    by_status = {str(code): resp for code, resp in responses.items() if isinstance(resp, dict)}
    for preferred in ("200", "201"):
        if preferred in by_status:
            return preferred, by_status[preferred]
    for code, resp in by_status.items():
        if code.startswith("2"):
            return code, resp
    return None, None


def is_binary_media_type(media_type: str, prefixes: list[str]) -> bool:
    """Return True if *media_type* starts with one of the binary *prefixes*."""
    lowered = media_type.lower()
    return any(lowered.startswith(prefix.lower()) for prefix in prefixes)


def _mentions(text: str, keywords: list[str]) -> bool:
    return any(re.search(rf"\b{re.escape(k)}", text, re.IGNORECASE) for k in keywords)


# --- Upload / binary classification ---


def detect_multipart(
    request_body: Any,
    operation: dict[str, Any],
    resolver: TypeResolver,
    config: EngineConfig,
) -> tuple[bool, Optional[str]]:
    """Decide whether an operation takes a file upload.

    A declared request body decides on its own: any ``multipart/*`` media
    type or binary media type means upload, anything else means no upload.
    Only when no request body is declared at all do upload keywords in the
    summary, description or operationId imply one.

    Returns:
        ``(is_multipart, file_field_name)``; the field name is ``None`` when
        the operation is not an upload.
    """
    if isinstance(request_body, dict):
        content = request_body.get("content")
        if not isinstance(content, dict):
            return False, None
        for media_type, media in content.items():
            if str(media_type).lower().startswith("multipart/"):
                schema = media.get("schema") if isinstance(media, dict) else None
                return True, file_field_name(schema, resolver)
        if any(is_binary_media_type(str(mt), config.binary_mime_prefixes) for mt in content):
            return True, "file"
        return False, None

    text = " ".join(
        str(part)
        for part in (
            operation.get("summary"),
            operation.get("description"),
            operation.get("operationId"),
        )
        if isinstance(part, str)
    )
    if text and _mentions(text, config.upload_keywords):
        return True, "file"
    return False, None


def file_field_name(schema: Any, resolver: TypeResolver) -> str:
    """Return the multipart property carrying the file, defaulting to ``"file"``.

    The first property with ``format: binary`` (or an array of such) wins.
    A named reference is looked up in the resolver's table.
    """
    if isinstance(schema, dict) and isinstance(schema.get("$ref"), str):
        schema = resolver.named_schemas.get(ref_name(schema["$ref"]))
    properties = schema.get("properties") if isinstance(schema, dict) else None
    if not isinstance(properties, dict):
        return "file"
    for name, prop in properties.items():
        if not isinstance(prop, dict):
            continue
        if prop.get("format") == "binary":
            return str(name)
        items = prop.get("items")
        if isinstance(items, dict) and items.get("format") == "binary":
            return str(name)
    return "file"


def detect_binary_response(
    status: Optional[str],
    response: Optional[dict[str, Any]],
    operation: dict[str, Any],
    config: EngineConfig,
) -> bool:
    """Decide whether the success response is a binary payload.

    Declared media types are checked against the configured binary
    prefixes. When the success response declares no content (and is not a
    204), download keywords in its description or the operation summary
    decide instead.
    """
    if response is None:
        return False
    content = response.get("content")
    if isinstance(content, dict) and content:
        return any(is_binary_media_type(str(mt), config.binary_mime_prefixes) for mt in content)
    if status == "204":
        return False

    text = " ".join(
        part
        for part in (response.get("description"), operation.get("summary"))
        if isinstance(part, str)
    )
    return bool(text) and _mentions(text, config.download_keywords)
