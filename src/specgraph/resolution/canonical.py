"""Structural fingerprints of schema nodes.

Two schema nodes are structurally identical iff their fingerprints are
byte-equal. The fingerprint is a compact JSON serialization with object keys
sorted and non-structural keywords removed: display annotations, examples,
vendor extensions (``x-*``) and value constraints such as ``minimum`` or
``maxLength``. Two nodes with the same shape but different constraints
therefore compare equal.

Keyword filtering applies to schema positions only. The keys of name maps
(``properties``, ``patternProperties``, ``$defs``, ``definitions``,
``dependentSchemas``) are property names, not keywords, and are always kept.
Literal values under ``enum`` and ``const`` are kept verbatim. Array order
is preserved.
"""

from __future__ import annotations

import json
from typing import Any

ANNOTATION_KEYWORDS = frozenset({
    "title",
    "description",
    "example",
    "examples",
    "externalDocs",
    "xml",
    "$comment",
    "deprecated",
})

CONSTRAINT_KEYWORDS = frozenset({
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minLength",
    "maxLength",
    "pattern",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
    "default",
    "readOnly",
    "writeOnly",
})

IGNORED_KEYWORDS = ANNOTATION_KEYWORDS | CONSTRAINT_KEYWORDS

_NAME_MAP_KEYWORDS = frozenset({
    "properties",
    "patternProperties",
    "$defs",
    "definitions",
    "dependentSchemas",
})

_LITERAL_KEYWORDS = frozenset({"enum", "const"})


def canonicalize(node: Any) -> Any:
    """Return a copy of *node* with non-structural keywords removed.

    Dict keys are coerced to strings so that YAML documents with integer
    keys (``200:``) serialize deterministically.
    """
    if isinstance(node, dict):
        result: dict[str, Any] = {}
        for key, value in node.items():
            key = str(key)
            if key in IGNORED_KEYWORDS or key.startswith("x-"):
                continue
            if key in _NAME_MAP_KEYWORDS and isinstance(value, dict):
                result[key] = {str(name): canonicalize(sub) for name, sub in value.items()}
            elif key in _LITERAL_KEYWORDS:
                result[key] = value
            else:
                result[key] = canonicalize(value)
        return result
    if isinstance(node, (list, tuple)):
        return [canonicalize(item) for item in node]
    return node


def fingerprint(node: Any) -> str:
    """Produce the deterministic structural fingerprint of a schema node.

    Args:
        node: Any JSON-like value. ``None`` fingerprints as ``"null"``.

    Returns:
        Compact JSON with sorted keys. Values that JSON cannot represent
        (dates from YAML, for instance) are rendered with ``str``.

    Example::

        >>> fingerprint({"type": "string", "description": "Name"})
        '{"type":"string"}'
    """
    return json.dumps(
        canonicalize(node),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def is_structurally_empty(node: Any) -> bool:
    """Return True when nothing structural remains after canonicalization."""
    canonical = canonicalize(node)
    return canonical in ({}, None, [])
