"""Tests for specgraph.resolution.types -- the type resolution priority chain."""

from __future__ import annotations

from typing import Any

import pytest

from specgraph.models import NamedReference, SchemaRole
from specgraph.resolution.canonical import fingerprint
from specgraph.resolution.types import (
    ParameterContext,
    TypeResolver,
    primitive_type_name,
    resolve_parameter_type,
    resolve_type,
)

NAMED: dict[str, Any] = {
    "Pet": {
        "type": "object",
        "properties": {
            "id": {"type": "integer"},
            "name": {"type": "string"},
            "status": {"type": "string", "enum": ["available", "sold"]},
            "kind": {"$ref": "#/components/schemas/PetKind"},
            "labels": {"type": "array", "items": {"type": "string", "enum": ["a", "b"]}},
        },
    },
    "PetKind": {"type": "string", "enum": ["dog", "cat"]},
    "Point": {"type": "object", "properties": {"x": {"type": "number"}, "y": {"type": "number"}}},
    "Location": {"type": "object", "properties": {"x": {"type": "number"}, "y": {"type": "number"}}},
    "Object": {"type": "object", "properties": {"key": {"type": "string"}}},
    "Empty": {"description": "nothing structural"},
}


@pytest.fixture
def resolver() -> TypeResolver:
    return TypeResolver(NAMED)


class TestNamedReferences:
    def test_known_reference(self, resolver: TypeResolver) -> None:
        assert resolver.resolve({"$ref": "#/components/schemas/Pet"}) == "Pet"

    def test_reserved_name_is_remapped(self, resolver: TypeResolver) -> None:
        assert resolver.resolve({"$ref": "#/components/schemas/Object"}) == "ObjectDto"

    def test_custom_reserved_names(self) -> None:
        resolver = TypeResolver(NAMED, reserved_names={"Pet": "PetModel"})
        assert resolver.resolve({"$ref": "#/components/schemas/Pet"}) == "PetModel"
        assert resolver.resolve({"$ref": "#/components/schemas/Object"}) == "Object"

    def test_unknown_reference_is_any(self, resolver: TypeResolver) -> None:
        assert resolver.resolve({"$ref": "#/components/schemas/Missing"}) == "any"

    def test_classified_ref_accepted(self, resolver: TypeResolver) -> None:
        ref = NamedReference(name="Point", ref="#/components/schemas/Point")
        assert resolver.resolve(ref) == "Point"


class TestArrays:
    def test_array_of_references(self, resolver: TypeResolver) -> None:
        node = {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}}
        assert resolver.resolve(node, SchemaRole.RESPONSE) == "Pet[]"

    def test_array_of_unknown_reference(self, resolver: TypeResolver) -> None:
        node = {"type": "array", "items": {"$ref": "#/components/schemas/Missing"}}
        assert resolver.resolve(node) == "any[]"

    def test_inline_items_matched_structurally(self, resolver: TypeResolver) -> None:
        node = {
            "type": "array",
            "items": {"type": "object", "properties": {"x": {"type": "number"}, "y": {"type": "number"}}},
        }
        # Point and Location share a shape; the first declared wins.
        assert resolver.resolve(node) == "Point[]"

    def test_inline_items_title(self, resolver: TypeResolver) -> None:
        node = {"type": "array", "items": {"type": "object", "title": "line item", "properties": {"sku": {"type": "string"}}}}
        assert resolver.resolve(node) == "LineItem[]"

    def test_scalar_items(self, resolver: TypeResolver) -> None:
        assert resolver.resolve({"type": "array", "items": {"type": "integer"}}) == "number[]"

    def test_nested_arrays(self, resolver: TypeResolver) -> None:
        node = {"type": "array", "items": {"type": "array", "items": {"type": "boolean"}}}
        assert resolver.resolve(node) == "boolean[][]"

    def test_missing_items(self, resolver: TypeResolver) -> None:
        assert resolver.resolve({"type": "array"}) == "any[]"

    def test_anonymous_object_items(self, resolver: TypeResolver) -> None:
        node = {"type": "array", "items": {"type": "object", "properties": {"q": {"type": "string"}}}}
        assert resolver.resolve(node) == "object[]"


class TestObjects:
    def test_title_wins(self, resolver: TypeResolver) -> None:
        node = {"type": "object", "title": "Point", "properties": {"z": {"type": "number"}}}
        assert resolver.resolve(node) == "Point"

    def test_structural_match(self, resolver: TypeResolver) -> None:
        node = {
            "type": "object",
            "description": "a location",
            "properties": {"y": {"type": "number", "minimum": 0}, "x": {"type": "number"}},
        }
        assert resolver.resolve(node) == "Point"

    def test_structural_match_remaps_reserved(self, resolver: TypeResolver) -> None:
        node = {"type": "object", "properties": {"key": {"type": "string"}}}
        assert resolver.resolve(node) == "ObjectDto"

    def test_unmatched_object(self, resolver: TypeResolver) -> None:
        assert resolver.resolve({"type": "object", "properties": {"q": {"type": "string"}}}) == "object"

    def test_unmatched_composition_body_is_unresolved(self, resolver: TypeResolver) -> None:
        node = {"oneOf": [{"type": "string"}, {"type": "integer"}]}
        assert resolver.resolve(node, SchemaRole.BODY) is None

    def test_unmatched_composition_response_is_any(self, resolver: TypeResolver) -> None:
        node = {"oneOf": [{"type": "string"}, {"type": "integer"}]}
        assert resolver.resolve(node, SchemaRole.RESPONSE) == "any"


class TestEmptyAndScalars:
    @pytest.mark.parametrize("role", [SchemaRole.BODY, SchemaRole.RESPONSE])
    def test_no_schema_is_void(self, resolver: TypeResolver, role: SchemaRole) -> None:
        assert resolver.resolve(None, role) == "void"

    def test_no_schema_as_property_is_any(self, resolver: TypeResolver) -> None:
        assert resolver.resolve(None, SchemaRole.PROPERTY) == "any"

    def test_scalar_body_is_any(self, resolver: TypeResolver) -> None:
        assert resolver.resolve({"type": "string"}, SchemaRole.BODY) == "any"

    def test_scalar_property(self, resolver: TypeResolver) -> None:
        assert resolver.resolve({"type": "integer"}, SchemaRole.PROPERTY) == "number"
        assert resolver.resolve({"type": "boolean"}, SchemaRole.PROPERTY) == "boolean"

    def test_scalar_matching_named_enum(self, resolver: TypeResolver) -> None:
        node = {"type": "string", "enum": ["dog", "cat"], "description": "kind"}
        assert resolver.resolve(node, SchemaRole.PROPERTY) == "PetKind"

    def test_empty_named_schema_never_matches(self, resolver: TypeResolver) -> None:
        assert resolver.match({"description": "something else"}) is None

    @pytest.mark.parametrize(
        "node",
        [None, {}, [], "x", 7, {"type": 5}, {"items": "nope"}, {"$ref": 3}, {"properties": None}],
    )
    @pytest.mark.parametrize("role", list(SchemaRole))
    def test_never_raises(self, resolver: TypeResolver, node: Any, role: SchemaRole) -> None:
        result = resolver.resolve(node, role)
        assert result is None or isinstance(result, str)


class TestStructuralSubstitutability:
    """Nodes with equal fingerprints resolve to the same named type."""

    def test_equal_fingerprints_resolve_alike(self) -> None:
        declared = {"type": "object", "properties": {"sku": {"type": "string"}, "qty": {"type": "integer"}}}
        variant = {
            "properties": {"qty": {"type": "integer", "maximum": 99}, "sku": {"type": "string", "example": "A-1"}},
            "type": "object",
            "x-order": 3,
        }
        assert fingerprint(declared) == fingerprint(variant)
        resolver = TypeResolver({"LineItem": declared})
        assert resolver.resolve(declared) == resolver.resolve(variant) == "LineItem"


class TestParameters:
    def test_primitive_mapping(self) -> None:
        assert primitive_type_name("integer") == "number"
        assert primitive_type_name("number") == "number"
        assert primitive_type_name("boolean") == "boolean"
        assert primitive_type_name("string") == "string"
        assert primitive_type_name(None) == "string"
        assert primitive_type_name("object") == "string"

    def test_inline_enum_on_entity_schema(self, resolver: TypeResolver) -> None:
        node = {"type": "string", "enum": ["available", "sold"]}
        ctx = ParameterContext(entity_name="Pet", parameter_name="status")
        assert resolver.resolve_parameter(node, ctx) == "PetStatus"

    def test_entity_name_given_as_plural_tag(self, resolver: TypeResolver) -> None:
        node = {"type": "string", "enum": ["available", "sold"]}
        ctx = ParameterContext(entity_name="pets", parameter_name="status")
        assert resolver.resolve_parameter(node, ctx) == "PetStatus"

    def test_referenced_enum_on_entity_schema(self, resolver: TypeResolver) -> None:
        node = {"type": "string", "enum": ["dog", "cat"]}
        ctx = ParameterContext(entity_name="Pet", parameter_name="kind")
        assert resolver.resolve_parameter(node, ctx) == "PetKind"

    def test_array_enum_on_entity_schema(self, resolver: TypeResolver) -> None:
        node = {"type": "array", "items": {"type": "string", "enum": ["a", "b"]}}
        ctx = ParameterContext(entity_name="Pet", parameter_name="labels")
        assert resolver.resolve_parameter(node, ctx) == "PetLabels[]"

    def test_enum_without_context(self, resolver: TypeResolver) -> None:
        assert resolver.resolve_parameter({"type": "string", "enum": ["x"]}) == "string"

    def test_enum_with_unknown_entity(self, resolver: TypeResolver) -> None:
        ctx = ParameterContext(entity_name="Store", parameter_name="status")
        assert resolver.resolve_parameter({"type": "string", "enum": ["x"]}, ctx) == "string"

    def test_enum_property_missing_on_entity(self, resolver: TypeResolver) -> None:
        ctx = ParameterContext(entity_name="Pet", parameter_name="color")
        assert resolver.resolve_parameter({"type": "string", "enum": ["x"]}, ctx) == "string"

    def test_non_enum_parameter_ignores_context(self, resolver: TypeResolver) -> None:
        ctx = ParameterContext(entity_name="Pet", parameter_name="status")
        assert resolver.resolve_parameter({"type": "integer"}, ctx) == "number"

    def test_reference_parameter(self, resolver: TypeResolver) -> None:
        assert resolver.resolve_parameter({"$ref": "#/components/schemas/PetKind"}) == "PetKind"
        assert resolver.resolve_parameter({"$ref": "#/components/schemas/Nope"}) == "string"

    def test_missing_schema(self, resolver: TypeResolver) -> None:
        assert resolver.resolve_parameter(None) == "string"


class TestFunctionalEntryPoints:
    def test_resolve_type(self) -> None:
        assert resolve_type({"$ref": "#/components/schemas/Pet"}, NAMED) == "Pet"
        assert resolve_type(None, None) == "void"

    def test_resolve_type_with_context_uses_parameter_rules(self) -> None:
        ctx = ParameterContext(entity_name="Pet", parameter_name="status")
        assert resolve_type({"type": "string", "enum": ["available"]}, NAMED, ctx) == "PetStatus"

    def test_resolve_parameter_type(self) -> None:
        assert resolve_parameter_type({"type": "boolean"}) == "boolean"

    def test_non_mapping_table(self) -> None:
        assert resolve_type({"$ref": "#/components/schemas/Pet"}, ["not", "a", "map"]) == "any"
