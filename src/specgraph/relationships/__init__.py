"""Relationship inference, validated export construction and graph helpers."""

from specgraph.relationships.detector import infer_relationships
from specgraph.relationships.export import (
    create_relationships_export,
    sort_entities,
    sort_relationships,
    validate_export_data,
)
from specgraph.relationships.graph import find_mutual_pairs, is_mutual

__all__ = [
    "create_relationships_export",
    "find_mutual_pairs",
    "infer_relationships",
    "is_mutual",
    "sort_entities",
    "sort_relationships",
    "validate_export_data",
]
