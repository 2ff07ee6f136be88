"""Load OpenAPI documents from a URL, local file, or stdin.

This is the only part of specgraph that performs I/O. It reads a raw
document (JSON or YAML, detected from the source and content), checks that
it declares a supported OpenAPI version, and exposes small accessors for the
pieces the engine needs: the named-schema table and the ``info`` block.

* :func:`load_spec` -- read and parse a document from any supported source.
* :func:`parse_document` -- parse already-read text.
* :func:`validate_openapi_version` -- accept 3.x, reject Swagger 2.x.
* :func:`named_schemas` / :func:`document_info` -- tolerant accessors.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import yaml

from specgraph.exceptions import SpecParseError


def load_spec(source: str) -> dict[str, Any]:
    """Load an OpenAPI document from a URL, a file path, or ``-`` for stdin.

    Args:
        source: An ``http(s)://`` URL, a file path, or ``"-"``.

    Returns:
        The parsed document.

    Raises:
        SpecParseError: If the source cannot be read or parsed, or does not
            contain a JSON/YAML object.
    """
    if source == "-":
        content, hint, label = _read_stdin(), "", "stdin"
    elif source.startswith(("http://", "https://")):
        content, hint = _fetch_url(source)
        label = source
    else:
        content, hint = _read_file(source)
        label = source

    if not content.strip():
        raise SpecParseError(f"Empty document: {label}")
    return parse_document(content, hint=hint)


def _read_stdin() -> str:
    try:
        return sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc


def _fetch_url(url: str) -> tuple[str, str]:
    """Fetch *url* and return its text with a format hint from the content type."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    else:
        hint = ""
    return response.text, hint


def _read_file(path: str) -> tuple[str, str]:
    """Read a local file and return its text with a hint from the extension."""
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Document not found: {path}")
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read {path}: {exc}") from exc

    suffix = file_path.suffix.lower()
    hint = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}.get(suffix, "")
    return content, hint


def parse_document(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON or YAML.

    JSON is tried first unless *hint* is ``"yaml"``; a ``"json"`` hint
    disables the YAML fallback.

    Raises:
        SpecParseError: If neither parser accepts the content or the result
            is not an object.
    """
    errors: list[str] = []

    if hint != "yaml":
        try:
            return _require_object(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            errors.append(f"JSON error: {exc}")

    try:
        return _require_object(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        errors.append(f"YAML error: {exc}")

    raise SpecParseError("Failed to parse document as JSON or YAML\n  " + "\n  ".join(errors))


def _require_object(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        kind = type(value).__name__ if value is not None else "empty document"
        raise SpecParseError(f"Document must be a JSON/YAML object (got {kind})")
    return value


def validate_openapi_version(document: dict[str, Any]) -> str:
    """Return the ``openapi`` version string of a 3.x document.

    Raises:
        SpecParseError: For Swagger 2.x, a missing ``openapi`` field, or a
            non-3.x version.
    """
    if "swagger" in document:
        raise SpecParseError(
            f"Swagger {document['swagger']} is not supported. "
            "Only OpenAPI 3.x documents are supported."
        )

    version = document.get("openapi")
    if version is None:
        raise SpecParseError("Missing 'openapi' field. Is this an OpenAPI 3.x document?")

    version_str = str(version)
    if not version_str.startswith("3."):
        raise SpecParseError(
            f"Unsupported OpenAPI version: {version_str}. Only 3.x is supported."
        )
    return version_str


def named_schemas(document: Any) -> dict[str, Any]:
    """Return ``components.schemas``, or an empty dict when absent or malformed."""
    if not isinstance(document, dict):
        return {}
    components = document.get("components")
    if not isinstance(components, dict):
        return {}
    schemas = components.get("schemas")
    if not isinstance(schemas, dict):
        return {}
    return {str(name): node for name, node in schemas.items()}


def document_info(document: Any) -> tuple[Optional[str], Optional[str]]:
    """Return ``(title, version)`` from the ``info`` block, ``None`` where missing."""
    info = document.get("info") if isinstance(document, dict) else None
    if not isinstance(info, dict):
        return None, None
    title = info.get("title")
    version = info.get("version")
    return (
        str(title) if title is not None else None,
        str(version) if version is not None else None,
    )
