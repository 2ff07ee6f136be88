"""Relationship inference between the entities of an OpenAPI document.

Three independent heuristics each look at the whole document and emit
candidate edges with one piece of evidence:

* **schema_ref** -- a named schema's property is a ``$ref`` to another named
  schema (``hasOne``), an array of such references (``hasMany``), or a
  composition (``allOf``/``oneOf``/``anyOf``) containing one (``hasOne``).
* **naming_pattern** -- a property named ``<entity>Id``/``<entity>_id``
  without a ``$ref`` implies ``belongsTo``; an array property named
  ``<entity>Ids``/``<entity>_ids`` implies ``hasMany``.
* **path_pattern** -- a path containing ``/<parent>/{param}/<child>``
  implies the parent ``hasMany`` children (``hasOne`` for a singular child
  segment).

Candidates are then merged into one
:class:`~specgraph.models.RelationshipRecord` per (source, target) pair. A
``belongsTo`` candidate whose inverse ownership candidate exists is folded
into that inverse record first, so ``Order.userId`` and
``/users/{userId}/orders`` corroborate a single ``User hasMany Order``.

Confidence is table-driven and monotonic: two or more heuristics give
``high``, ``schema_ref`` alone gives ``medium``, a single naming or path
match gives ``low``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Mapping, NamedTuple, Optional, Sequence

from specgraph.models import (
    ConfidenceLevel,
    DetectionSource,
    EndpointDefinition,
    EngineConfig,
    EntityDescriptor,
    InlineArray,
    NamedReference,
    OperationDescriptor,
    RelationshipEvidence,
    RelationshipRecord,
    RelationshipsExport,
    RelationshipType,
)
from specgraph.parser.catalog import build_catalog
from specgraph.parser.loader import document_info, named_schemas as schema_table
from specgraph.relationships.export import (
    create_relationships_export,
    sort_entities,
    sort_relationships,
    utc_timestamp,
)
from specgraph.resolution.naming import (
    entity_name,
    is_plural,
    split_words,
    to_pascal_case,
)
from specgraph.resolution.schema_ref import classify_schema, ref_name

logger = logging.getLogger(__name__)

_SINGULAR_ID_RE = re.compile(r"^(.+?)(?:Id|_id|ID)$")
_PLURAL_ID_RE = re.compile(r"^(.+?)(?:Ids|_ids|IDs)$")

_COMPOSITION_KEYWORDS = ("allOf", "oneOf", "anyOf")

_TYPE_PRECEDENCE = {
    RelationshipType.HAS_MANY: 0,
    RelationshipType.HAS_ONE: 1,
    RelationshipType.BELONGS_TO: 2,
}

_SOURCE_ORDER = {source: index for index, source in enumerate(DetectionSource)}


class RelationshipCandidate(NamedTuple):
    """A single detector's vote for a directed edge."""

    source: str
    target: str
    type: RelationshipType
    evidence: RelationshipEvidence
    folded: bool = False


def _properties(schema: Any) -> dict[str, Any]:
    properties = schema.get("properties") if isinstance(schema, dict) else None
    if not isinstance(properties, dict):
        return {}
    # Keys from YAML may be ints or booleans; unnamed properties carry no edge.
    return {str(k): v for k, v in properties.items() if k is not None and str(k)}


def _schema_items(named_schemas: Mapping[Any, Any]) -> list[tuple[str, Any]]:
    return [(str(k), v) for k, v in named_schemas.items() if k is not None and str(k)]


def _evidence(source: DetectionSource, location: str, details: str) -> RelationshipEvidence:
    return RelationshipEvidence(source=source, location=location, details=details)


# ------------------------------------------------------------------ #
# Detectors
# ------------------------------------------------------------------ #


def detect_schema_refs(named_schemas: Mapping[str, Any]) -> list[RelationshipCandidate]:
    """Find properties of named schemas that reference other named schemas.

    Only references whose target exists in *named_schemas* are reported.
    Evidence details carry the referencing property name.
    """
    candidates: list[RelationshipCandidate] = []

    def add(schema_name: str, target: str, rel_type: RelationshipType, location: str, prop: str) -> None:
        if not target or target not in named_schemas:
            logger.debug("ignoring reference from %s to unknown schema %r", location, target)
            return
        candidates.append(
            RelationshipCandidate(
                schema_name, target, rel_type,
                _evidence(DetectionSource.SCHEMA_REF, location, prop),
            )
        )

    for schema_name, schema in _schema_items(named_schemas):
        for prop_name, prop in _properties(schema).items():
            if not isinstance(prop, dict):
                continue
            base = f"components.schemas.{schema_name}.properties.{prop_name}"
            ref = classify_schema(prop)

            if isinstance(ref, InlineArray):
                if isinstance(ref.items, NamedReference):
                    add(schema_name, ref.items.name, RelationshipType.HAS_MANY, f"{base}.items", prop_name)
                continue

            if isinstance(ref, NamedReference):
                add(schema_name, ref.name, RelationshipType.HAS_ONE, base, prop_name)
                continue

            for keyword in _COMPOSITION_KEYWORDS:
                members = prop.get(keyword)
                if not isinstance(members, list):
                    continue
                for member in members:
                    if isinstance(member, dict) and isinstance(member.get("$ref"), str):
                        add(
                            schema_name, ref_name(member["$ref"]),
                            RelationshipType.HAS_ONE, f"{base}.{keyword}", prop_name,
                        )

    return candidates


def _is_array_property(prop: Any) -> bool:
    return isinstance(classify_schema(prop), InlineArray)


def detect_naming_patterns(
    named_schemas: Mapping[str, Any],
    known_entities: Iterable[str],
) -> list[RelationshipCandidate]:
    """Find foreign-key style property names in named schemas.

    The derived target must be a known entity other than the schema itself.
    """
    known = {name for name in known_entities if name}
    candidates: list[RelationshipCandidate] = []

    for schema_name, schema in _schema_items(named_schemas):
        for prop_name, prop in _properties(schema).items():
            location = f"components.schemas.{schema_name}.properties.{prop_name}"

            plural = _PLURAL_ID_RE.match(prop_name)
            if plural:
                target = entity_name(plural.group(1))
                if _is_array_property(prop) and target in known and target != schema_name:
                    candidates.append(
                        RelationshipCandidate(
                            schema_name, target, RelationshipType.HAS_MANY,
                            _evidence(
                                DetectionSource.NAMING_PATTERN, location,
                                f'Foreign key list "{prop_name}" follows the plural id naming pattern',
                            ),
                        )
                    )
                continue

            singular = _SINGULAR_ID_RE.match(prop_name)
            if not singular:
                continue
            if isinstance(classify_schema(prop), (NamedReference, InlineArray)):
                continue
            target = to_pascal_case(singular.group(1))
            if target in known and target != schema_name:
                candidates.append(
                    RelationshipCandidate(
                        schema_name, target, RelationshipType.BELONGS_TO,
                        _evidence(
                            DetectionSource.NAMING_PATTERN, location,
                            f'Foreign key "{prop_name}" follows the singular id naming pattern',
                        ),
                    )
                )

    return candidates


def _is_param_segment(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


def detect_path_patterns(
    paths: Iterable[str],
    known_entities: Iterable[str],
) -> list[RelationshipCandidate]:
    """Find ``/<parent>/{param}/<child>`` runs in URL templates.

    Every such run in a path counts, not only the first. Both ends must be
    known entities and distinct.
    """
    known = {name for name in known_entities if name}
    candidates: list[RelationshipCandidate] = []

    for path in paths:
        segments = [s for s in path.split("/") if s]
        for parent, param, child in zip(segments, segments[1:], segments[2:]):
            if _is_param_segment(parent) or _is_param_segment(child) or not _is_param_segment(param):
                continue
            source, target = entity_name(parent), entity_name(child)
            if source == target or source not in known or target not in known:
                continue
            child_words = split_words(child)
            rel_type = (
                RelationshipType.HAS_MANY
                if child_words and is_plural(child_words[-1])
                else RelationshipType.HAS_ONE
            )
            candidates.append(
                RelationshipCandidate(
                    source, target, rel_type,
                    _evidence(
                        DetectionSource.PATH_PATTERN, path,
                        f"Nested path pattern: {source} {rel_type.value} {target}",
                    ),
                )
            )

    return candidates


# ------------------------------------------------------------------ #
# Merging
# ------------------------------------------------------------------ #


def score_confidence(sources: Iterable[DetectionSource]) -> ConfidenceLevel:
    """Map the set of agreeing heuristics to a confidence tier."""
    distinct = set(sources)
    if len(distinct) >= 2:
        return ConfidenceLevel.HIGH
    if distinct == {DetectionSource.SCHEMA_REF}:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def fold_inverse_candidates(
    candidates: Sequence[RelationshipCandidate],
) -> list[RelationshipCandidate]:
    """Redirect ``belongsTo`` candidates onto an existing inverse ownership edge.

    ``A belongsTo B`` is folded into ``B -> A`` when some other detector
    already proposed ``B hasMany A`` or ``B hasOne A``. The folded candidate
    keeps its evidence but no longer votes on the relationship type.
    """
    ownership = {
        (c.source, c.target)
        for c in candidates
        if c.type is not RelationshipType.BELONGS_TO
    }
    folded: list[RelationshipCandidate] = []
    for candidate in candidates:
        if candidate.type is RelationshipType.BELONGS_TO and (candidate.target, candidate.source) in ownership:
            candidate = candidate._replace(
                source=candidate.target, target=candidate.source, folded=True
            )
        folded.append(candidate)
    return folded


def merge_candidates(candidates: Sequence[RelationshipCandidate]) -> list[RelationshipRecord]:
    """Merge candidates into one record per (source, target), in first-seen order.

    Evidence with an identical (location, details) pair is kept once. The
    relationship type is the strongest voted type (hasMany > hasOne >
    belongsTo).
    """
    grouped: dict[tuple[str, str], list[RelationshipCandidate]] = {}
    for candidate in fold_inverse_candidates(candidates):
        grouped.setdefault((candidate.source, candidate.target), []).append(candidate)

    records: list[RelationshipRecord] = []
    for (source, target), group in grouped.items():
        evidence: list[RelationshipEvidence] = []
        seen: set[tuple[str, str]] = set()
        for candidate in group:
            key = (candidate.evidence.location, candidate.evidence.details)
            if key not in seen:
                seen.add(key)
                evidence.append(candidate.evidence)

        votes = [c.type for c in group if not c.folded] or [c.type for c in group]
        detected_by = sorted({e.source for e in evidence}, key=_SOURCE_ORDER.__getitem__)

        records.append(
            RelationshipRecord(
                source_entity=source,
                target_entity=target,
                type=min(votes, key=_TYPE_PRECEDENCE.__getitem__),
                confidence=score_confidence(detected_by),
                detected_by=tuple(detected_by),
                evidence=tuple(evidence),
            )
        )
    return records


# ------------------------------------------------------------------ #
# Entities and the full pass
# ------------------------------------------------------------------ #


def collect_entity_endpoints(
    catalog: Mapping[str, Sequence[OperationDescriptor]],
    default_tag: str = "Default",
) -> dict[str, list[OperationDescriptor]]:
    """Group catalog operations by entity name, merging tags that map to the same entity."""
    entities: dict[str, list[OperationDescriptor]] = {}
    for tag, operations in catalog.items():
        name = entity_name(tag) or entity_name(default_tag) or "Default"
        entities.setdefault(name, []).extend(operations)
    return entities


def _unique_paths(catalog: Mapping[str, Sequence[OperationDescriptor]]) -> list[str]:
    paths: dict[str, None] = {}
    for operations in catalog.values():
        for operation in operations:
            paths.setdefault(operation.raw_path, None)
    return list(paths)


def detect_relationships(
    catalog: Mapping[str, Sequence[OperationDescriptor]],
    named_schemas: Mapping[str, Any],
    known_entities: Optional[Iterable[str]] = None,
) -> tuple[RelationshipRecord, ...]:
    """Run all detectors and return the merged records, sorted.

    *known_entities* defaults to the catalog's entities plus the named
    schemas.
    """
    if known_entities is None:
        known = set(collect_entity_endpoints(catalog)) | set(named_schemas)
    else:
        known = set(known_entities)

    candidates = (
        detect_schema_refs(named_schemas)
        + detect_naming_patterns(named_schemas, known)
        + detect_path_patterns(_unique_paths(catalog), known)
    )
    return sort_relationships(merge_candidates(candidates))


def infer_relationships(
    catalog: Mapping[str, Sequence[OperationDescriptor]],
    named_schemas: Optional[Mapping[str, Any]],
    *,
    spec_title: Optional[str] = None,
    spec_version: Optional[str] = None,
    generated_at: Optional[str] = None,
    config: Optional[EngineConfig] = None,
) -> RelationshipsExport:
    """Infer the relationship graph and build the validated export.

    One entity is created per tag (tags normalizing to the same name are
    merged), carrying that tag's endpoints. Relationship ends that are not
    tag entities are added without endpoints so every record points at an
    entity of the export.

    Args:
        catalog: Output of :func:`~specgraph.parser.catalog.build_catalog`.
        named_schemas: ``components.schemas`` of the document.
        spec_title: ``info.title``, copied into the metadata.
        spec_version: ``info.version``, copied into the metadata.
        generated_at: Timestamp override; defaults to the current UTC time.
        config: Engine settings; supplies the export version.

    Returns:
        The sorted, validated :class:`~specgraph.models.RelationshipsExport`.

    Raises:
        ExportValidationError: If *generated_at* is not an ISO-8601
            timestamp, or the engine produced a structure that violates the
            export contract.
    """
    config = config or EngineConfig()
    named = (
        {str(k): v for k, v in named_schemas.items()}
        if isinstance(named_schemas, Mapping)
        else {}
    )
    endpoints = collect_entity_endpoints(catalog, config.default_tag)
    relationships = detect_relationships(catalog, named, set(endpoints) | set(named))

    names = list(endpoints)
    for record in relationships:
        for name in (record.source_entity, record.target_entity):
            if name not in endpoints and name not in names:
                names.append(name)

    entities = {
        name: EntityDescriptor(
            name=name,
            endpoints=tuple(EndpointDefinition.from_operation(op) for op in endpoints.get(name, ())),
            relationships=tuple(r for r in relationships if r.source_entity == name),
        )
        for name in names
    }
    entities = sort_entities(entities)

    metadata = {
        "spec_title": spec_title,
        "spec_version": spec_version,
        "generated_at": generated_at or utc_timestamp(),
        "total_entities": len(entities),
        "total_relationships": len(relationships),
        "export_version": config.export_version,
    }
    logger.debug(
        "inferred %d relationships between %d entities", len(relationships), len(entities)
    )
    return create_relationships_export(metadata, entities, relationships)


def infer_from_document(
    document: Any,
    config: Optional[EngineConfig] = None,
    strict_refs: bool = False,
) -> RelationshipsExport:
    """Build the catalog of a loaded *document* and infer its relationship export."""
    config = config or EngineConfig()
    title, version = document_info(document)
    return infer_relationships(
        build_catalog(document, config, strict_refs=strict_refs),
        schema_table(document),
        spec_title=title,
        spec_version=version,
        config=config,
    )
