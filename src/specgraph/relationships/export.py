"""Validated, deterministic construction of the relationships export.

This module is the hard-validation boundary of the engine. Everything
upstream falls back softly on bad input; here, a structure that violates
the export contract is a programming error, reported as
:class:`~specgraph.exceptions.ExportValidationError` with one entry per
offending field path.

Determinism comes from :func:`sort_relationships` and :func:`sort_entities`,
which return new, sorted values and leave their arguments untouched.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, NamedTuple, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from specgraph.exceptions import ExportFieldError, ExportValidationError
from specgraph.models import (
    EntityDescriptor,
    ExportMetadata,
    RelationshipRecord,
    RelationshipsExport,
)

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class ExportValidationResult(NamedTuple):
    """Outcome of :func:`validate_export_data`."""

    valid: bool
    errors: tuple[ExportFieldError, ...] = ()


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Return *now* (default: the current time) as UTC ISO-8601 with a ``Z`` suffix.

    Naive datetimes are taken to be UTC already.
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def field_errors(exc: ValidationError) -> tuple[ExportFieldError, ...]:
    """Flatten a pydantic ``ValidationError`` into dotted-path field errors."""
    return tuple(
        ExportFieldError(".".join(str(part) for part in err["loc"]), err["msg"])
        for err in exc.errors()
    )


def _validate(model: type[_ModelT], value: Any, title: str) -> _ModelT:
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise ExportValidationError(field_errors(exc), title=title) from exc


def validate_metadata(value: Any) -> ExportMetadata:
    """Validate export metadata, raising :class:`ExportValidationError` on failure."""
    return _validate(ExportMetadata, value, "ExportMetadata")


def validate_entity(value: Any) -> EntityDescriptor:
    """Validate one entity, raising :class:`ExportValidationError` on failure."""
    return _validate(EntityDescriptor, value, "EntityDescriptor")


def validate_relationship(value: Any) -> RelationshipRecord:
    """Validate one relationship record, raising :class:`ExportValidationError` on failure."""
    return _validate(RelationshipRecord, value, "RelationshipRecord")


def validate_export_data(value: Any) -> ExportValidationResult:
    """Check a complete export (dict or model) without raising.

    Example::

        result = validate_export_data(json.loads(path.read_text()))
        if not result.valid:
            for err in result.errors:
                print(err.path, err.message)
    """
    try:
        RelationshipsExport.model_validate(value)
    except ValidationError as exc:
        return ExportValidationResult(valid=False, errors=field_errors(exc))
    return ExportValidationResult(valid=True)


def create_relationships_export(
    metadata: Any,
    entities: Any,
    relationships: Any,
) -> RelationshipsExport:
    """Build a :class:`~specgraph.models.RelationshipsExport` after validating its parts.

    Each argument may be a model instance or plain data using either the
    camelCase export keys or the snake_case field names. Model instances
    are revalidated, so nothing reaches the export unchecked.

    Args:
        metadata: Export metadata.
        entities: Mapping of entity name to entity.
        relationships: Sequence of relationship records.

    Returns:
        The validated export.

    Raises:
        ExportValidationError: Listing every offending field path, e.g.
            ``relationships.0.evidence: Tuple should have at least 1 item ...``.
    """
    return _validate(
        RelationshipsExport,
        {
            "metadata": metadata,
            "entities": entities,
            "relationships": relationships,
        },
        "RelationshipsExport",
    )


def sort_relationships(
    relationships: Iterable[RelationshipRecord],
) -> tuple[RelationshipRecord, ...]:
    """Return the records ordered by ``(source_entity, target_entity, type)``."""
    return tuple(
        sorted(
            relationships,
            key=lambda r: (r.source_entity, r.target_entity, r.type.value),
        )
    )


def sort_entities(entities: Mapping[str, EntityDescriptor]) -> dict[str, EntityDescriptor]:
    """Return a new dict with the entities ordered by name."""
    return {name: entities[name] for name in sorted(entities)}
