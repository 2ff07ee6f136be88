"""Resolve schema nodes to stable type names.

:class:`TypeResolver` holds the named-schema table (``components.schemas``)
together with a precomputed fingerprint index, and maps any schema node to a
type name using a fixed priority chain:

1. A named reference resolves to its schema name (``Object`` is remapped to
   ``ObjectDto``); a reference to an unknown name falls back to ``"any"``.
2. An array of named references resolves to ``<Name>[]``.
3. An array of inline items tries a structural match of the items against
   the named table (``<Name>[]``), then the items' ``title``
   (``<Title>[]``), then a structural match of the whole array (``<Name>``),
   then the scalar item type (``string[]``), and finally ``"any[]"``.
4. An inline object tries its ``title``, then a structural match, then the
   generic ``"object"`` marker. A pure composition with no object shape and
   no match is unresolved (``None``) in the body role.
5. No schema at all is ``"void"`` for bodies and responses; an unnamed
   scalar is ``"any"`` there and maps to ``number``/``boolean``/``string``
   for parameters and properties.

Nothing here raises on malformed input; the worst case is the most generic
applicable marker.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from specgraph.models import (
    ANY,
    ANY_ARRAY,
    OBJECT,
    VOID,
    InlineArray,
    InlineObject,
    NamedReference,
    Primitive,
    SchemaRef,
    SchemaRole,
)
from specgraph.resolution.canonical import fingerprint, is_structurally_empty
from specgraph.resolution.naming import normalize, singularize, to_pascal_case
from specgraph.resolution.schema_ref import classify_schema, has_object_shape

logger = logging.getLogger(__name__)

_SCHEMA_REF_TYPES = (NamedReference, InlineObject, InlineArray, Primitive)

_PRIMITIVE_NAMES: dict[str, str] = {
    "integer": "number",
    "number": "number",
    "boolean": "boolean",
    "string": "string",
}

_DEFAULT_RESERVED: dict[str, str] = {"Object": "ObjectDto"}

_EMPTY_ROLES = frozenset({SchemaRole.BODY, SchemaRole.RESPONSE})


class ParameterContext(BaseModel):
    """Where a parameter lives, for enum-type lookup on the entity's own schema."""

    model_config = ConfigDict(frozen=True)

    entity_name: str
    parameter_name: str


def primitive_type_name(kind: Optional[str]) -> str:
    """Map a JSON-schema scalar type to ``number``, ``boolean`` or ``string``."""
    return _PRIMITIVE_NAMES.get(kind or "", "string")


def _capitalize_first(value: str) -> str:
    return value[:1].upper() + value[1:]


class TypeResolver:
    """Resolve schema nodes against one named-schema table.

    The table is read once at construction; fingerprints of every named
    schema are precomputed so that structural matching is a dict lookup.
    When several named schemas share a fingerprint, the first declared wins.

    Args:
        named_schemas: ``components.schemas`` of the document. Anything that
            is not a mapping is treated as an empty table.
        reserved_names: Schema names to remap, defaults to
            ``{"Object": "ObjectDto"}``.
    """

    def __init__(
        self,
        named_schemas: Optional[Mapping[str, Any]] = None,
        reserved_names: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._named: dict[str, Any] = (
            {str(k): v for k, v in named_schemas.items()}
            if isinstance(named_schemas, Mapping)
            else {}
        )
        self._reserved = dict(reserved_names) if reserved_names is not None else dict(_DEFAULT_RESERVED)
        self._by_fingerprint: dict[str, str] = {}
        for name, node in self._named.items():
            if not isinstance(node, dict) or is_structurally_empty(node):
                continue
            self._by_fingerprint.setdefault(fingerprint(node), name)

    @property
    def named_schemas(self) -> dict[str, Any]:
        return self._named

    def type_name(self, schema_name: str) -> str:
        """Return the emitted type name for a named schema (``Object`` -> ``ObjectDto``)."""
        return self._reserved.get(schema_name, schema_name)

    def match(self, node: Any) -> Optional[str]:
        """Return the type name of the named schema structurally equal to *node*."""
        if not isinstance(node, dict) or is_structurally_empty(node):
            return None
        name = self._by_fingerprint.get(fingerprint(node))
        return self.type_name(name) if name is not None else None

    # ------------------------------------------------------------------ #
    # General resolution
    # ------------------------------------------------------------------ #

    def resolve(
        self,
        node: Union[SchemaRef, dict[str, Any], None],
        role: SchemaRole = SchemaRole.BODY,
    ) -> Optional[str]:
        """Resolve *node* to a type name.

        Args:
            node: A raw schema dict or an already classified ``SchemaRef``.
            role: Where the node appears; see :class:`~specgraph.models.SchemaRole`.

        Returns:
            A named type, ``"<Name>[]"``, ``"void"``, a generic marker, or
            ``None`` for an unresolved body composition.
        """
        ref = node if isinstance(node, _SCHEMA_REF_TYPES) else classify_schema(node)
        if ref is None:
            return VOID if role in _EMPTY_ROLES else ANY

        if isinstance(ref, NamedReference):
            return self._resolve_named(ref)
        if isinstance(ref, InlineArray):
            return self._resolve_array(ref)
        if isinstance(ref, InlineObject):
            return self._resolve_object(ref, role)
        return self._resolve_primitive(ref, role)

    def _resolve_named(self, ref: NamedReference) -> str:
        if ref.name in self._named:
            return self.type_name(ref.name)
        logger.debug("unresolvable schema reference %s, using %r", ref.ref, ANY)
        return ANY

    def _title_hint(self, ref: SchemaRef) -> Optional[str]:
        title = getattr(ref, "title", None)
        if not title:
            return None
        return to_pascal_case(title) or None

    def _resolve_array(self, ref: InlineArray) -> str:
        items = ref.items
        if isinstance(items, NamedReference):
            name = self._resolve_named(items)
            return ANY_ARRAY if name == ANY else f"{name}[]"

        if items is not None:
            matched = self.match(items.node)
            if matched:
                return f"{matched}[]"
            hint = self._title_hint(items)
            if hint:
                return f"{hint}[]"

        matched = self.match(ref.node)
        if matched:
            return matched

        if isinstance(items, InlineArray):
            return f"{self._resolve_array(items)}[]"
        if isinstance(items, Primitive) and items.kind != ANY:
            return f"{primitive_type_name(items.kind)}[]"
        if isinstance(items, InlineObject) and has_object_shape(items.node):
            return f"{OBJECT}[]"
        return ANY_ARRAY

    def _resolve_object(self, ref: InlineObject, role: SchemaRole) -> Optional[str]:
        hint = self._title_hint(ref)
        if hint:
            return hint
        matched = self.match(ref.node)
        if matched:
            return matched
        if has_object_shape(ref.node):
            return OBJECT
        return None if role is SchemaRole.BODY else ANY

    def _resolve_primitive(self, ref: Primitive, role: SchemaRole) -> str:
        matched = self.match(ref.node)
        if matched:
            return matched
        if role in _EMPTY_ROLES:
            return ANY
        if ref.kind == ANY:
            return ANY
        return primitive_type_name(ref.kind)

    # ------------------------------------------------------------------ #
    # Parameters
    # ------------------------------------------------------------------ #

    def resolve_parameter(
        self,
        node: Union[SchemaRef, dict[str, Any], None],
        context: Optional[ParameterContext] = None,
    ) -> str:
        """Resolve a parameter schema to a type name.

        An enum parameter with a *context* resolves to the enum type declared
        on the entity's own schema for the property of the same name, when
        there is one. References to named schemas resolve to their name.
        Everything else maps integer/number to ``number``, boolean to
        ``boolean`` and anything else to ``string``; arrays get a ``[]``
        suffix.
        """
        ref = node if isinstance(node, _SCHEMA_REF_TYPES) else classify_schema(node)

        if isinstance(ref, NamedReference):
            if ref.name in self._named:
                return self.type_name(ref.name)
            return "string"

        if isinstance(ref, Primitive):
            if ref.enum_values and context is not None:
                declared = self.entity_enum_type(context)
                if declared:
                    return declared
            return primitive_type_name(ref.kind)

        if isinstance(ref, InlineArray):
            return f"{self.resolve_parameter(ref.items, context)}[]"

        return "string"

    def _entity_schema(self, entity_name: str) -> Optional[str]:
        candidates = [entity_name, singularize(entity_name), to_pascal_case(entity_name)]
        for candidate in candidates:
            if candidate in self._named:
                return candidate
        lowered = {c.lower() for c in candidates}
        for name in self._named:
            if name.lower() in lowered:
                return name
        return None

    def entity_enum_type(self, context: ParameterContext) -> Optional[str]:
        """Find the enum type for ``context.parameter_name`` on the entity's schema.

        Returns the referenced schema name when the property is a ``$ref``,
        ``<Schema><Property>`` when it declares an inline enum (directly or
        on its array items), and ``None`` otherwise.
        """
        schema_name = self._entity_schema(context.entity_name)
        if schema_name is None:
            return None
        schema = self._named[schema_name]
        properties = schema.get("properties") if isinstance(schema, dict) else None
        if not isinstance(properties, dict):
            return None

        prop_name = context.parameter_name
        prop = properties.get(prop_name)
        if prop is None:
            wanted = normalize(prop_name)
            for name, candidate in properties.items():
                if normalize(name) == wanted:
                    prop_name, prop = name, candidate
                    break
        if not isinstance(prop, dict):
            return None

        prop_ref = classify_schema(prop)
        if isinstance(prop_ref, InlineArray):
            prop_ref = prop_ref.items
        if isinstance(prop_ref, NamedReference) and prop_ref.name in self._named:
            return self.type_name(prop_ref.name)
        if isinstance(prop_ref, Primitive) and prop_ref.enum_values:
            return f"{self.type_name(schema_name)}{_capitalize_first(normalize(prop_name))}"
        return None


# ------------------------------------------------------------------ #
# Functional entry points
# ------------------------------------------------------------------ #


def resolve_type(
    node: Union[SchemaRef, dict[str, Any], None],
    named_schemas: Optional[Mapping[str, Any]] = None,
    context: Optional[ParameterContext] = None,
    role: SchemaRole = SchemaRole.BODY,
) -> Optional[str]:
    """Resolve *node* against *named_schemas* in one call.

    Builds a throwaway :class:`TypeResolver`; prefer a shared instance when
    resolving many nodes against the same table. Passing a *context* (or the
    parameter role) uses the parameter rules.
    """
    resolver = TypeResolver(named_schemas)
    if context is not None or role is SchemaRole.PARAMETER:
        return resolver.resolve_parameter(node, context)
    return resolver.resolve(node, role)


def resolve_parameter_type(
    node: Union[SchemaRef, dict[str, Any], None],
    named_schemas: Optional[Mapping[str, Any]] = None,
    context: Optional[ParameterContext] = None,
) -> str:
    """Resolve a parameter schema in one call; see :meth:`TypeResolver.resolve_parameter`."""
    return TypeResolver(named_schemas).resolve_parameter(node, context)
