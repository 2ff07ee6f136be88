"""Presentation helpers over a merged relationship set.

A pair of entities is *mutual* when records exist in both directions
(``User hasMany Order`` and ``Order hasOne User``). The flag is always
derived from the records passed in; nothing here is stored on the export.
"""

from __future__ import annotations

from typing import Iterable

from specgraph.models import RelationshipRecord


def _pairs(relationships: Iterable[RelationshipRecord]) -> set[tuple[str, str]]:
    return {(r.source_entity, r.target_entity) for r in relationships}


def find_mutual_pairs(relationships: Iterable[RelationshipRecord]) -> list[tuple[str, str]]:
    """Return each mutual pair once, as ``(a, b)`` with ``a < b``, sorted.

    Self-references are not mutual pairs.
    """
    pairs = _pairs(relationships)
    return sorted(
        (source, target)
        for source, target in pairs
        if source < target and (target, source) in pairs
    )


def is_mutual(record: RelationshipRecord, relationships: Iterable[RelationshipRecord]) -> bool:
    """Return True if *relationships* holds the inverse of *record*."""
    if record.source_entity == record.target_entity:
        return False
    return (record.target_entity, record.source_entity) in _pairs(relationships)

