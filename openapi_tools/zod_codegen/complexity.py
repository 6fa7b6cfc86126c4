"""Heuristic score deciding whether a compiled schema is worth hoisting."""

from __future__ import annotations

from typing import Any, Final

from .resolver import is_reference
from .visitor import PRIMITIVE_TYPES, get_schema_type, is_object_like

COMPOSITE_WEIGHTS: Final[dict[str, int]] = {
    "oneOf": 2,
    "anyOf": 3,
    "allOf": 2,
    "enum": 1,
    "array": 1,
    "record": 1,
    "empty-object": 1,
    "object": 2,
}


def _branches(keyword: str, members: list[Any], current: int) -> int:
    weight = COMPOSITE_WEIGHTS[keyword]
    if len(members) == 1:
        return weight + get_schema_complexity(members[0], current)
    return current + weight + sum(get_schema_complexity(member) for member in members)


def get_schema_complexity(schema: Any, current: int = 0) -> int:
    """Score a schema subtree; references count as 2 and are not followed."""
    if not isinstance(schema, dict):
        return current
    if is_reference(schema):
        return current + 2

    for keyword in ("oneOf", "anyOf", "allOf"):
        if schema.get(keyword):
            return _branches(keyword, schema[keyword], current)

    schema_type = get_schema_type(schema)
    if isinstance(schema_type, list):
        if len(schema_type) == 1:
            return get_schema_complexity({**schema, "type": schema_type[0]}, current)
        return _branches("oneOf", [{**schema, "type": member} for member in schema_type], current)

    if schema_type in PRIMITIVE_TYPES:
        if schema.get("enum") is not None:
            return (
                current
                + 1
                + COMPOSITE_WEIGHTS["enum"]
                + sum(get_schema_complexity(value) for value in schema["enum"])
            )
        return current + 1

    if schema_type == "array":
        return COMPOSITE_WEIGHTS["array"] + get_schema_complexity(schema.get("items"), current)

    if is_object_like(schema):
        additional = schema.get("additionalProperties")
        if additional not in (None, False):
            if additional is True:
                return COMPOSITE_WEIGHTS["record"] + current
            return COMPOSITE_WEIGHTS["record"] + get_schema_complexity(additional, current)

        if schema.get("properties") is not None:
            return (
                current
                + COMPOSITE_WEIGHTS["object"]
                + sum(get_schema_complexity(prop) for prop in schema["properties"].values())
            )

        return COMPOSITE_WEIGHTS["empty-object"] + current

    return current
