"""Canonical Pydantic models shared across all specgraph modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration** -- :class:`EngineConfig`, serialised as JSON in the user's
config directory or in a project-local ``specgraph.json``.

**Catalog models** -- produced by the operation catalog builder and consumed
by the type resolver, the relationship engine and external emitters:
    :class:`HTTPMethod`, :class:`ParameterLocation`, the ``SchemaRef`` union
    (:class:`NamedReference`, :class:`InlineObject`, :class:`InlineArray`,
    :class:`Primitive`), :class:`ParameterDescriptor`, and
    :class:`OperationDescriptor`.

**Export models** -- the persisted relationships artifact:
    :class:`RelationshipEvidence`, :class:`RelationshipRecord`,
    :class:`EndpointDefinition`, :class:`EntityDescriptor`,
    :class:`ExportMetadata`, and :class:`RelationshipsExport`. These serialise
    with camelCase aliases and reject unknown keys.

Catalog and export models are frozen; transformations always build new
values.
"""

from __future__ import annotations

import enum
import json
import re
from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# --- Markers ---

VOID = "void"
"""Type name for a body or response with no schema at all."""

ANY = "any"
"""Generic marker for a schema that is present but carries no usable name."""

OBJECT = "object"
"""Generic marker for an anonymous object shape."""

ANY_ARRAY = "any[]"
"""Generic marker for an array whose items could not be resolved."""

DEFAULT_BINARY_MIME_PREFIXES: tuple[str, ...] = (
    "application/octet-stream",
    "application/pdf",
    "application/zip",
    "application/gzip",
    "application/x-tar",
    "application/vnd.",
    "image/",
    "audio/",
    "video/",
)


# --- Engine Config ---


class EngineConfig(BaseModel):
    """Tunable knobs for catalog building and relationship export.

    Loaded by :func:`~specgraph.config.resolve_config` from the user config
    file, a project-local ``specgraph.json``, ``SPECGRAPH_*`` environment
    variables and CLI flags, in increasing order of precedence.
    """

    default_tag: str = Field(
        default="Default", min_length=1, description="Tag for untagged operations"
    )
    export_version: str = Field(
        default="1.0.0",
        pattern=r"^\d+\.\d+\.\d+$",
        description="Version stamped into the relationships export",
    )
    binary_mime_prefixes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BINARY_MIME_PREFIXES),
        description="Media-type prefixes treated as binary payloads",
    )
    upload_keywords: list[str] = Field(
        default_factory=lambda: ["upload", "attachment"],
        description="Words implying a file upload when no request body is declared",
    )
    download_keywords: list[str] = Field(
        default_factory=lambda: ["download", "file"],
        description="Words implying a binary response when no content is declared",
    )
    reserved_type_names: dict[str, str] = Field(
        default_factory=lambda: {"Object": "ObjectDto"},
        description="Schema names remapped to avoid built-in identifiers",
    )


# --- Catalog Models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects."""

    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class SchemaRole(str, enum.Enum):
    """Where a schema node is being resolved.

    Body and response roles distinguish "no schema" (``void``) from an opaque
    schema (``any``); parameter and property roles map primitives to their
    scalar type names instead.
    """

    BODY = "body"
    RESPONSE = "response"
    PARAMETER = "parameter"
    PROPERTY = "property"


class NamedReference(BaseModel):
    """A ``$ref`` to an entry of ``components.schemas``."""

    model_config = ConfigDict(frozen=True)

    variant: Literal["named"] = "named"
    name: str
    ref: str


class InlineObject(BaseModel):
    """An anonymous object shape (``properties``, composition, or ``type: object``)."""

    model_config = ConfigDict(frozen=True)

    variant: Literal["object"] = "object"
    properties: dict[str, Any] = Field(default_factory=dict)
    required: tuple[str, ...] = ()
    title: Optional[str] = None
    node: dict[str, Any] = Field(default_factory=dict)


class InlineArray(BaseModel):
    """An anonymous array; ``items`` is ``None`` when the item schema is missing."""

    model_config = ConfigDict(frozen=True)

    variant: Literal["array"] = "array"
    items: Optional[SchemaRef] = None
    title: Optional[str] = None
    node: dict[str, Any] = Field(default_factory=dict)


class Primitive(BaseModel):
    """A scalar schema. ``kind`` is ``"any"`` when the node declares no type."""

    model_config = ConfigDict(frozen=True)

    variant: Literal["primitive"] = "primitive"
    kind: str = ANY
    format: Optional[str] = None
    enum_values: Optional[tuple[Any, ...]] = None
    title: Optional[str] = None
    node: dict[str, Any] = Field(default_factory=dict)


SchemaRef = Annotated[
    Union[NamedReference, InlineObject, InlineArray, Primitive],
    Field(discriminator="variant"),
]

InlineArray.model_rebuild()


class ParameterDescriptor(BaseModel):
    """A single parameter in an operation signature.

    ``sanitized_name`` is a valid camelCase identifier derived from
    ``source_name``; ``inferred_type`` comes from the type resolver.
    """

    model_config = ConfigDict(frozen=True)

    source_name: str
    sanitized_name: str
    location: ParameterLocation
    inferred_type: str = "string"
    is_optional: bool = False
    description: Optional[str] = None
    enum_values: Optional[tuple[str, ...]] = None
    schema_ref: Optional[SchemaRef] = None


class OperationDescriptor(BaseModel):
    """One (path, method) pair of the input document, fully resolved.

    ``parameters`` is already in signature order: every required parameter
    precedes every optional one, with declaration order kept within each
    group. ``body_type`` is ``None`` when the operation declares no request
    body; ``response_type`` is a type name, ``"void"`` or ``"any"``.
    """

    model_config = ConfigDict(frozen=True)

    http_method: HTTPMethod
    raw_path: str
    normalized_name: str
    tag: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    parameters: tuple[ParameterDescriptor, ...] = ()
    body_schema: Optional[SchemaRef] = None
    body_type: Optional[str] = None
    body_required: bool = False
    response_schema: Optional[SchemaRef] = None
    response_type: str = VOID
    is_multipart: bool = False
    file_field_name: Optional[str] = None
    is_binary_response: bool = False
    deprecated: bool = False

    @field_validator("parameters")
    @classmethod
    def _check_signature_order(
        cls, value: tuple[ParameterDescriptor, ...]
    ) -> tuple[ParameterDescriptor, ...]:
        seen_optional = False
        for param in value:
            if param.is_optional:
                seen_optional = True
            elif seen_optional:
                raise ValueError(
                    f"required parameter '{param.source_name}' follows an optional one"
                )
        return value

    @property
    def required_parameters(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.parameters if not p.is_optional)

    @property
    def optional_parameters(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(p for p in self.parameters if p.is_optional)


# --- Export Models ---

_ISO_TIMESTAMP_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})$"
)


class RelationshipType(str, enum.Enum):
    """Cardinality of a directed relationship, strongest first."""

    HAS_MANY = "hasMany"
    HAS_ONE = "hasOne"
    BELONGS_TO = "belongsTo"


class ConfidenceLevel(str, enum.Enum):
    """Ordinal strength label on a relationship record."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DetectionSource(str, enum.Enum):
    """Heuristic that produced a piece of evidence, in canonical order."""

    SCHEMA_REF = "schema_ref"
    NAMING_PATTERN = "naming_pattern"
    PATH_PATTERN = "path_pattern"


class _ExportModel(BaseModel):
    """Base for the persisted artifact: camelCase keys, closed shape, immutable.

    Instances are revalidated whenever they are nested into another export
    model, so a value built with ``model_construct`` cannot slip past the
    export boundary.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        revalidate_instances="always",
    )


class RelationshipEvidence(_ExportModel):
    """One heuristic observation backing a relationship."""

    source: DetectionSource
    location: str = Field(min_length=1)
    details: str = Field(min_length=1)


class RelationshipRecord(_ExportModel):
    """A merged, confidence-scored directed relationship between two entities."""

    source_entity: str = Field(min_length=1)
    target_entity: str = Field(min_length=1)
    type: RelationshipType
    confidence: ConfidenceLevel
    detected_by: tuple[DetectionSource, ...] = Field(min_length=1)
    evidence: tuple[RelationshipEvidence, ...] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_detected_by(self) -> RelationshipRecord:
        if len(set(self.detected_by)) != len(self.detected_by):
            raise ValueError("detectedBy must not contain duplicates")
        evidence_sources = {item.source for item in self.evidence}
        if set(self.detected_by) != evidence_sources:
            raise ValueError("detectedBy must equal the set of evidence sources")
        return self


class EndpointDefinition(_ExportModel):
    """An operation attached to an entity, as it appears in the export."""

    method: Literal["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD", "TRACE"]
    path: str = Field(min_length=1)
    operation_id: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_operation(cls, operation: OperationDescriptor) -> EndpointDefinition:
        return cls(
            method=operation.http_method.value.upper(),
            path=operation.raw_path,
            operation_id=operation.operation_id,
            description=operation.description or operation.summary,
        )


class EntityDescriptor(_ExportModel):
    """A node of the relationship graph.

    ``relationships`` holds the records whose ``source_entity`` is this
    entity.
    """

    name: str = Field(min_length=1)
    endpoints: tuple[EndpointDefinition, ...] = ()
    relationships: tuple[RelationshipRecord, ...] = ()


class ExportMetadata(_ExportModel):
    """Provenance and totals for a relationships export."""

    spec_title: Optional[str] = None
    spec_version: Optional[str] = None
    generated_at: str
    total_entities: int = Field(ge=0, strict=True)
    total_relationships: int = Field(ge=0, strict=True)
    export_version: str = Field(default="1.0.0", pattern=r"^\d+\.\d+\.\d+$")

    @field_validator("generated_at")
    @classmethod
    def _check_generated_at(cls, value: str) -> str:
        if not _ISO_TIMESTAMP_RE.match(value):
            raise ValueError(
                "must be an ISO-8601 timestamp with a 'T' separator "
                "and a 'Z' or numeric UTC offset"
            )
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValueError(f"is not a valid calendar timestamp ({exc})") from exc
        return value


class RelationshipsExport(_ExportModel):
    """The persisted relationships artifact.

    Use :func:`~specgraph.relationships.export.create_relationships_export`
    to build one: it converts validation failures into
    :class:`~specgraph.exceptions.ExportValidationError`.
    """

    metadata: ExportMetadata
    entities: dict[str, EntityDescriptor]
    relationships: tuple[RelationshipRecord, ...] = ()

    @field_validator("entities")
    @classmethod
    def _check_entity_keys(
        cls, value: dict[str, EntityDescriptor]
    ) -> dict[str, EntityDescriptor]:
        for key, entity in value.items():
            if not key:
                raise ValueError("entity keys must be non-empty")
            if key != entity.name:
                raise ValueError(
                    f"entity key '{key}' does not match its name '{entity.name}'"
                )
        return value

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready dict with camelCase keys and unset optionals omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Serialise to the persisted JSON form (two-space indent, trailing newline)."""
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n"
