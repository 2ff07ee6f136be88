"""Parameter-signature synthesis.

Turns the raw ``parameters`` arrays of a path item and an operation into an
ordered tuple of :class:`~specgraph.models.ParameterDescriptor`. Signatures
always list required parameters before optional ones, keeping declaration
order within each group, so an emitter can render them directly in languages
that forbid a required argument after an optional one.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from specgraph.models import ParameterDescriptor, ParameterLocation
from specgraph.resolution.naming import sanitize_param_name
from specgraph.resolution.schema_ref import classify_schema
from specgraph.resolution.types import ParameterContext, TypeResolver

logger = logging.getLogger(__name__)


def merge_parameters(
    path_params: Any,
    op_params: Any,
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the same
    name and location (``in`` field). Path-level parameters come first, in
    declaration order, followed by the operation's own. Entries that are not
    dicts are dropped.

    Args:
        path_params: Parameters defined at the path level.
        op_params: Parameters defined at the operation level.

    Returns:
        A merged list of parameter dicts.
    """
    path_list = [p for p in path_params if isinstance(p, dict)] if isinstance(path_params, list) else []
    op_list = [p for p in op_params if isinstance(p, dict)] if isinstance(op_params, list) else []

    overridden = {(p.get("name", ""), p.get("in", "")) for p in op_list}
    merged = [p for p in path_list if (p.get("name", ""), p.get("in", "")) not in overridden]
    merged.extend(op_list)
    return merged


def is_optional_parameter(location: ParameterLocation, required: Any) -> bool:
    """Path parameters are never optional; the rest are unless ``required: true``."""
    if location is ParameterLocation.PATH:
        return False
    return required is not True


def parameter_schema(param: dict[str, Any]) -> Optional[dict[str, Any]]:
    """Return a parameter's schema, falling back to its first ``content`` entry."""
    schema = param.get("schema")
    if isinstance(schema, dict):
        return schema
    content = param.get("content")
    if isinstance(content, dict):
        for media in content.values():
            if isinstance(media, dict) and isinstance(media.get("schema"), dict):
                return media["schema"]
    return None


def _enum_values(schema: Optional[dict[str, Any]]) -> Optional[tuple[str, ...]]:
    if not isinstance(schema, dict):
        return None
    values = schema.get("enum")
    if not isinstance(values, list):
        items = schema.get("items")
        values = items.get("enum") if isinstance(items, dict) else None
    if not isinstance(values, list) or not values:
        return None
    return tuple(str(v) for v in values)


def build_parameter(
    param: dict[str, Any],
    resolver: TypeResolver,
    entity_name: Optional[str] = None,
) -> Optional[ParameterDescriptor]:
    """Build one descriptor, or ``None`` when the parameter is unusable.

    Parameters without a string ``name`` or with an unrecognised ``in``
    location are skipped.
    """
    name = param.get("name")
    if not isinstance(name, str) or not name:
        logger.debug("skipping parameter without a name: %r", param)
        return None
    try:
        location = ParameterLocation(param.get("in", "query"))
    except (ValueError, TypeError):
        logger.debug("skipping parameter %r with unknown location %r", name, param.get("in"))
        return None

    schema = parameter_schema(param)
    context = ParameterContext(entity_name=entity_name, parameter_name=name) if entity_name else None
    description = param.get("description")

    return ParameterDescriptor(
        source_name=name,
        sanitized_name=sanitize_param_name(name),
        location=location,
        inferred_type=resolver.resolve_parameter(schema, context),
        is_optional=is_optional_parameter(location, param.get("required")),
        description=description if isinstance(description, str) else None,
        enum_values=_enum_values(schema),
        schema_ref=classify_schema(schema),
    )


def order_signature(
    parameters: Iterable[ParameterDescriptor],
) -> tuple[ParameterDescriptor, ...]:
    """Stable-partition *parameters*: required first, optional last."""
    return tuple(sorted(parameters, key=lambda p: p.is_optional))


def build_parameters(
    raw_params: Iterable[dict[str, Any]],
    resolver: TypeResolver,
    entity_name: Optional[str] = None,
) -> tuple[ParameterDescriptor, ...]:
    """Build the ordered signature for already merged raw parameters."""
    descriptors = []
    for param in raw_params:
        descriptor = build_parameter(param, resolver, entity_name)
        if descriptor is not None:
            descriptors.append(descriptor)
    return order_signature(descriptors)
