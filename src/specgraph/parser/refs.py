"""Dereference non-schema ``$ref`` pointers in OpenAPI documents.

Parameters, request bodies, responses and path items are often declared once
under ``components`` and referenced from operations. The catalog builder
needs those inlined, but schema references must survive: a
``{"$ref": "#/components/schemas/Pet"}`` is exactly what lets the type
resolver name a body ``Pet``. :func:`resolve_component_refs` therefore
inlines every internal reference except those pointing into
``#/components/schemas/``.

Only internal references (``#/...``) are followed. In the default soft mode
an external, missing or circular reference is logged and left in place; in
strict mode it raises :class:`~specgraph.exceptions.SpecParseError`.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from specgraph.exceptions import SpecParseError

logger = logging.getLogger(__name__)

SCHEMA_REF_PREFIX = "#/components/schemas/"


def resolve_pointer(ref: str, root: dict[str, Any]) -> Any:
    """Resolve a single internal ``$ref`` against *root*.

    Handles RFC 6901 escaping (``~0`` for ``~``, ``~1`` for ``/``).

    Raises:
        SpecParseError: If the reference is external or any segment of the
            pointer does not exist.
    """
    if not ref.startswith("#/"):
        raise SpecParseError(f"External $ref not supported: {ref}")

    current: Any = root
    for raw_segment in ref[2:].split("/"):
        segment = raw_segment.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(f"Cannot resolve $ref '{ref}': key '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{ref}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{ref}': cannot navigate into {type(current).__name__}"
            )
    return current


def resolve_component_refs(document: dict[str, Any], strict: bool = False) -> dict[str, Any]:
    """Return a deep copy of *document* with non-schema references inlined.

    Args:
        document: The raw document, as returned by
            :func:`~specgraph.parser.loader.load_spec`. Not modified.
        strict: Raise on unresolvable references instead of leaving them.

    Returns:
        A new dict. Schema references and unresolvable references (soft
        mode) keep their ``{"$ref": ...}`` form.

    Raises:
        SpecParseError: In strict mode, for external, missing or circular
            references.
    """
    root = copy.deepcopy(document)
    return _inline(root, root, frozenset(), strict)


def _inline(obj: Any, root: dict[str, Any], seen: frozenset[str], strict: bool) -> Any:
    """Depth-first copy of *obj*, inlining non-schema references.

    *seen* holds the references being expanded on the current branch only,
    so sibling branches may expand the same reference independently.
    """
    if isinstance(obj, dict):
        ref = obj.get("$ref")
        if isinstance(ref, str) and not ref.startswith(SCHEMA_REF_PREFIX):
            if ref in seen:
                return _unresolved(obj, f"Circular $ref '{ref}'", strict)
            try:
                target = resolve_pointer(ref, root)
            except SpecParseError as exc:
                if strict:
                    raise
                logger.debug("leaving $ref in place: %s", exc)
                return obj
            return _inline(target, root, seen | {ref}, strict)
        return {key: _inline(value, root, seen, strict) for key, value in obj.items()}

    if isinstance(obj, list):
        return [_inline(item, root, seen, strict) for item in obj]

    return obj


def _unresolved(obj: dict[str, Any], message: str, strict: bool) -> dict[str, Any]:
    if strict:
        raise SpecParseError(message)
    logger.debug("leaving $ref in place: %s", message)
    return obj
