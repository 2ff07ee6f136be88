"""Classify raw schema nodes into the ``SchemaRef`` union.

OpenAPI schema nodes are duck-typed: the same dict may be a ``$ref``, an
object, an array or a scalar, distinguished only by which keys are present.
:func:`classify_schema` makes that decision exactly once, when a node enters
the catalog, so downstream code switches on the ``variant`` of a
:class:`~specgraph.models.NamedReference`,
:class:`~specgraph.models.InlineObject`,
:class:`~specgraph.models.InlineArray` or
:class:`~specgraph.models.Primitive` instead of probing keys again.
"""

from __future__ import annotations

from typing import Any, Optional

from specgraph.models import (
    ANY,
    InlineArray,
    InlineObject,
    NamedReference,
    Primitive,
    SchemaRef,
)

_COMPOSITION_KEYWORDS = ("allOf", "oneOf", "anyOf")
_OBJECT_KEYWORDS = ("properties", "additionalProperties", "patternProperties") + _COMPOSITION_KEYWORDS


def ref_name(ref: str) -> str:
    """Return the last JSON-pointer segment of a ``$ref``, unescaped.

    ``"#/components/schemas/Pet"`` gives ``"Pet"``; ``"#/a/b~1c"`` gives
    ``"b/c"``.
    """
    segment = ref.rstrip("/").rsplit("/", 1)[-1]
    return segment.replace("~1", "/").replace("~0", "~")


def schema_type(node: Any) -> Optional[str]:
    """Extract the declared ``type`` of a schema node.

    Handles OpenAPI 3.1 type arrays (e.g. ``["string", "null"]``) by
    returning the first non-null type. Returns ``None`` when no type is
    declared.
    """
    if not isinstance(node, dict):
        return None
    type_value = node.get("type")
    if isinstance(type_value, list):
        non_null = [str(t) for t in type_value if t != "null"]
        return non_null[0] if non_null else None
    if type_value is None:
        return None
    return str(type_value)


def has_object_shape(node: Any) -> bool:
    """Return True if *node* declares ``type: object`` or object keywords."""
    if not isinstance(node, dict):
        return False
    if schema_type(node) == "object":
        return True
    return any(key in node for key in ("properties", "additionalProperties", "patternProperties"))


def _single_ref_wrapper(node: dict[str, Any]) -> Optional[str]:
    """Return the ``$ref`` of a one-member ``allOf``/``oneOf``/``anyOf`` wrapper.

    The node must use exactly one composition keyword and add no shape of
    its own.
    """
    keywords = [key for key in _COMPOSITION_KEYWORDS if key in node]
    if len(keywords) != 1:
        return None
    members = node[keywords[0]]
    if not isinstance(members, list) or len(members) != 1:
        return None
    if any(key in node for key in ("properties", "additionalProperties", "items")):
        return None
    member = members[0]
    if isinstance(member, dict) and isinstance(member.get("$ref"), str):
        return member["$ref"]
    return None


def classify_schema(node: Any) -> Optional[SchemaRef]:
    """Classify a raw schema node.

    Args:
        node: A raw schema node. Anything that is not a dict means "no
            schema".

    Returns:
        The matching ``SchemaRef`` variant, or ``None`` when there is no
        schema. Never raises.
    """
    if not isinstance(node, dict):
        return None

    ref = node.get("$ref")
    if isinstance(ref, str) and ref:
        return NamedReference(name=ref_name(ref), ref=ref)

    wrapped = _single_ref_wrapper(node)
    if wrapped:
        return NamedReference(name=ref_name(wrapped), ref=wrapped)

    title = node.get("title") if isinstance(node.get("title"), str) else None
    kind = schema_type(node)

    if kind == "array" or (kind is None and "items" in node):
        return InlineArray(items=classify_schema(node.get("items")), title=title, node=node)

    if kind == "object" or (kind is None and any(key in node for key in _OBJECT_KEYWORDS)):
        properties = node.get("properties")
        required = node.get("required")
        return InlineObject(
            properties=properties if isinstance(properties, dict) else {},
            required=tuple(str(r) for r in required) if isinstance(required, list) else (),
            title=title,
            node=node,
        )

    enum_values = node.get("enum")
    fmt = node.get("format")
    return Primitive(
        kind=kind or ANY,
        format=fmt if isinstance(fmt, str) else None,
        enum_values=tuple(enum_values) if isinstance(enum_values, list) else None,
        title=title,
        node=node,
    )
