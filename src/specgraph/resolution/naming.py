"""Identifier normalization for operation names, tags and parameters.

Every function here is a pure string transformation: any input, including
``None`` or pure punctuation, yields a value instead of raising. The main
entry point is :func:`normalize`, which produces a camelCase identifier
matching ``^[a-z_][a-zA-Z0-9_]*$`` (or the empty string). Operation naming
builds on it in :func:`operation_name`, which understands the common
``Tag_Method`` operationId style and falls back to a ``<method><Resource>``
name when no usable operationId exists.

Example::

    >>> normalize("Users_GetById")
    'usersGetById'
    >>> operation_name("Pets_List", "get", "pets")
    'list'
    >>> operation_name(None, "get", "pets")
    'getPets'
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

_SEPARATOR_RE = re.compile(r"[^A-Za-z0-9]+")
_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z0-9]+|[0-9]+")
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SANITIZE_RE = re.compile(r"[^A-Za-z0-9_]")

_CAMEL_RE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
_PASCAL_RE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
_KEBAB_RE = re.compile(r"^[A-Za-z0-9]+(?:-[A-Za-z0-9]+)+$")

# Verbs used when an operation has neither an operationId nor a tag.
_PATH_VERBS: dict[str, str] = {
    "get": "get",
    "post": "create",
    "put": "update",
    "patch": "update",
    "delete": "delete",
    "head": "head",
    "options": "options",
    "trace": "trace",
}


class ConventionResult(BaseModel):
    """Outcome of :func:`detect_convention` for a raw identifier."""

    model_config = ConfigDict(frozen=True)

    convention: str
    operation_name: str
    tag: Optional[str] = None
    method: Optional[str] = None
    was_sanitized: bool = False
    warnings: tuple[str, ...] = Field(default_factory=tuple)


# --- Word splitting ---


def split_words(identifier: Any) -> list[str]:
    """Split *identifier* at separators and case boundaries.

    ``"getHTTPResponse_v2"`` splits into ``["get", "HTTP", "Response", "v2"]``.
    Non-string input yields an empty list.
    """
    if not isinstance(identifier, str):
        return []
    words: list[str] = []
    for chunk in _SEPARATOR_RE.split(identifier):
        if chunk:
            words.extend(_WORD_RE.findall(chunk))
    return words


def _settle(step: Callable[[Any], str], identifier: Any) -> str:
    # Adjacent one-letter words re-read as an acronym ("getAB" -> "getAb").
    # Re-reading a joined result only lower-cases letters, so this terminates.
    result = step(identifier)
    while True:
        again = step(result)
        if again == result:
            return result
        result = again


def _camel_step(identifier: Any) -> str:
    words = split_words(identifier)
    if not words:
        return ""
    result = words[0].lower() + "".join(w.capitalize() for w in words[1:])
    if result[0].isdigit():
        result = "_" + result
    return result


def _pascal_step(identifier: Any) -> str:
    return "".join(w.capitalize() for w in split_words(identifier))


def normalize(identifier: Any) -> str:
    """Convert an arbitrary identifier into camelCase.

    The first word is lower-cased and every following word capitalised;
    characters outside ``[A-Za-z0-9]`` act as separators and are dropped. A
    result that would start with a digit gets a leading underscore. The
    function is idempotent: ``normalize(normalize(x)) == normalize(x)``.

    Args:
        identifier: Any value. Non-strings and empty strings yield ``""``,
            which callers treat as "unnamed".

    Returns:
        A string matching ``^[a-z_][a-zA-Z0-9_]*$``, or ``""``.
    """
    return _settle(_camel_step, identifier)


def to_pascal_case(identifier: Any) -> str:
    """Convert *identifier* to PascalCase (``"order_items"`` -> ``"OrderItems"``)."""
    return _settle(_pascal_step, identifier)


def singularize(word: str) -> str:
    """Naive English singular: ``ies -> y``, ``sses -> ss``, drop a trailing ``s``.

    Words ending in ``ss`` (``"address"``) are left alone.
    """
    if not word:
        return word
    lower = word.lower()
    if lower.endswith("ies") and len(word) > 3:
        return word[:-3] + ("Y" if word[-3].isupper() else "y")
    if lower.endswith("sses"):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return word[:-1]
    return word


def is_plural(word: str) -> bool:
    """Return True if :func:`singularize` would change *word*."""
    return bool(word) and singularize(word) != word


def entity_name(tag: Any) -> str:
    """Derive a graph entity name from a tag or path segment.

    The last word is singularised before PascalCasing, so ``"users"``
    becomes ``"User"`` and ``"order-items"`` becomes ``"OrderItem"``.
    """
    words = split_words(tag)
    if not words:
        return ""
    words[-1] = singularize(words[-1])
    return to_pascal_case(" ".join(words))


def sanitize_param_name(name: Any) -> str:
    """Turn a raw parameter name into a camelCase identifier.

    ``"X-Request-ID"`` becomes ``"xRequestId"``, ``"page[size]"`` becomes
    ``"pageSize"``. Returns ``"param"`` when nothing usable remains.
    """
    return normalize(name) or "param"


# --- Convention detection ---


def _sanitize(identifier: str) -> str:
    return _SANITIZE_RE.sub("", identifier.replace("-", "_").replace(" ", "_"))


def detect_convention(identifier: Any) -> ConventionResult:
    """Detect the naming convention of a raw operationId.

    Priority: ``Tag_Method`` (exactly one underscore, both halves valid
    identifiers), then snake_case, kebab-case, camelCase, PascalCase.
    Anything else is ``"mixed"`` when it still yields words, ``"unknown"``
    otherwise.

    Returns:
        A :class:`ConventionResult` whose ``operation_name`` is
        :func:`normalize` applied to the whole identifier. For
        ``Tag_Method`` input, ``tag`` and ``method`` carry the two halves.
    """
    if not isinstance(identifier, str) or not identifier:
        return ConventionResult(
            convention="unknown",
            operation_name="",
            was_sanitized=True,
            warnings=("Input is empty or not a string",),
        )

    warnings: list[str] = []
    sanitized = _sanitize(identifier)
    was_sanitized = sanitized != identifier and not _KEBAB_RE.match(identifier)
    if was_sanitized:
        warnings.append("Input contained invalid characters and was sanitized")
    if not sanitized:
        return ConventionResult(
            convention="unknown",
            operation_name="",
            was_sanitized=True,
            warnings=tuple(warnings + ["Sanitization resulted in empty string"]),
        )

    name = normalize(identifier)

    if identifier.count("_") == 1:
        tag, method = identifier.split("_")
        if _IDENTIFIER_RE.match(tag) and _IDENTIFIER_RE.match(method):
            return ConventionResult(
                convention="tag_method",
                operation_name=name,
                tag=tag,
                method=method,
                was_sanitized=was_sanitized,
                warnings=tuple(warnings),
            )

    if "_" in sanitized and not _KEBAB_RE.match(identifier):
        convention = "snake_case"
    elif _KEBAB_RE.match(identifier):
        convention = "kebab_case"
    elif _CAMEL_RE.match(sanitized):
        convention = "camel_case"
    elif _PASCAL_RE.match(sanitized):
        convention = "pascal_case"
        warnings.append("PascalCase detected and converted to camelCase")
    else:
        convention = "mixed" if name else "unknown"

    return ConventionResult(
        convention=convention,
        operation_name=name,
        was_sanitized=was_sanitized,
        warnings=tuple(warnings),
    )


# --- Operation naming ---


def fallback_name_from_path(http_method: str, path: str) -> str:
    """Build an operation name from the verb and the last static path segment.

    ``("post", "/users/{id}/orders")`` yields ``"createOrders"``; a path with
    no static segment yields the bare verb.
    """
    verb = _PATH_VERBS.get(str(http_method).lower(), str(http_method).lower())
    segments = [s for s in str(path).split("/") if s and not s.startswith("{")]
    resource = to_pascal_case(segments[-1]) if segments else ""
    return normalize(f"{verb} {resource}") or normalize(verb) or "operation"


def operation_name(
    operation_id: Any,
    http_method: str,
    resource: Optional[str],
    path: Optional[str] = None,
) -> str:
    """Derive the normalized name of an operation.

    A ``Tag_Method`` operationId contributes only its method half
    (``"Pets_List"`` -> ``"list"``); any other operationId is normalized as
    a whole. When that yields nothing, the name falls back to
    ``<method><Resource>`` built from *resource* (``"get"`` + ``"pets"`` ->
    ``"getPets"``), or to :func:`fallback_name_from_path` when there is no
    resource either.

    Args:
        operation_id: The raw ``operationId`` (may be missing or malformed).
        http_method: Lower-case HTTP verb of the operation.
        resource: The classification tag, or ``None`` for untagged operations.
        path: URL template, used only by the path-based fallback.
    """
    result = detect_convention(operation_id)
    if result.convention == "tag_method" and result.method:
        name = normalize(result.method)
    else:
        name = result.operation_name
    if name:
        return name

    if resource:
        name = normalize(f"{http_method} {to_pascal_case(resource)}")
        if name:
            logger.debug(
                "operation %s %s has no usable operationId, using %r",
                http_method.upper(), path, name,
            )
            return name

    name = fallback_name_from_path(http_method, path or "")
    logger.debug(
        "operation %s %s has no operationId or tag, using %r",
        http_method.upper(), path, name,
    )
    return name
