"""Shared traversal of the OpenAPI schema dialect.

Both compilers (validator expressions and static types) dispatch through
`SchemaVisitor`, so a schema is always classified the same way no matter
which backend emits it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Final, Generic, TypeVar

from openapi_tools.shared.errors import UnsupportedSchemaTypeError

from .resolver import SchemaResolver, is_reference

PRIMITIVE_TYPES: Final[frozenset[str]] = frozenset({"string", "number", "integer", "boolean", "null"})
COMPOSITION_KEYWORDS: Final[tuple[str, ...]] = ("oneOf", "anyOf", "allOf")

ResultT = TypeVar("ResultT")
StateT = TypeVar("StateT")


class SchemaKind(Enum):
    REFERENCE = "reference"
    TYPE_LIST = "type_list"
    NULL = "null"
    ONE_OF = "one_of"
    ANY_OF = "any_of"
    ALL_OF = "all_of"
    ENUM = "enum"
    PRIMITIVE = "primitive"
    ARRAY = "array"
    OBJECT = "object"
    UNKNOWN = "unknown"


def get_schema_type(schema: dict[str, Any]) -> str | list[str] | None:
    """Return the declared `type`, lower-cased when it is a single string."""
    value = schema.get("type")
    if isinstance(value, str):
        return value.lower()
    return value


def has_additional_properties(schema: dict[str, Any]) -> bool:
    return schema.get("additionalProperties") not in (None, False)


def is_object_like(schema: dict[str, Any]) -> bool:
    schema_type = get_schema_type(schema)
    if schema_type == "object" or "properties" in schema or has_additional_properties(schema):
        return True
    # `{required: [...]}` alone describes an object
    return schema_type is None and bool(schema.get("required"))


def classify_schema(schema: Any) -> SchemaKind:
    """Pick the single branch a schema compiles through.

    Raises:
        UnsupportedSchemaTypeError: For a `type` outside the dialect.
    """
    if is_reference(schema):
        return SchemaKind.REFERENCE

    schema_type = get_schema_type(schema)
    if isinstance(schema_type, list):
        return SchemaKind.TYPE_LIST
    if schema_type == "null":
        return SchemaKind.NULL
    if schema.get("oneOf"):
        return SchemaKind.ONE_OF
    if schema.get("anyOf"):
        return SchemaKind.ANY_OF
    if schema.get("allOf"):
        return SchemaKind.ALL_OF
    if schema_type in PRIMITIVE_TYPES:
        return SchemaKind.ENUM if schema.get("enum") is not None else SchemaKind.PRIMITIVE
    if schema_type == "array":
        return SchemaKind.ARRAY
    if is_object_like(schema):
        return SchemaKind.OBJECT
    if not schema_type:
        return SchemaKind.UNKNOWN
    raise UnsupportedSchemaTypeError(str(schema_type))


def resolve_required(
    schema: dict[str, Any],
    with_implicit_required_props: bool,
) -> tuple[bool, Any]:
    """Return `(is_partial, is_required(prop) callable)` for an object schema."""
    required = schema.get("required") or []
    is_partial = False if with_implicit_required_props else not required

    def is_required(prop: str) -> bool:
        if is_partial:
            return True
        if required:
            return prop in required
        return with_implicit_required_props

    return is_partial, is_required


def object_properties(schema: dict[str, Any]) -> dict[str, Any]:
    """Declared properties plus an `unknown` slot for required-but-undeclared names."""
    properties = dict(schema.get("properties") or {})
    for name in schema.get("required") or []:
        properties.setdefault(name, {})
    return properties


def _is_required_only_item(item: Any) -> bool:
    return (
        isinstance(item, dict)
        and not is_reference(item)
        and bool(item.get("required"))
        and not item.get("type")
        and "properties" not in item
        and not any(item.get(keyword) for keyword in COMPOSITION_KEYWORDS)
    )


class RequiredOnlyAllOf:
    """Split an `allOf` into regular members and members that only list `required`.

    The required-only members are merged into one synthetic object whose
    property schemas are borrowed from the sibling members.
    """

    __slots__ = ("members", "required", "properties")

    def __init__(self, schema: dict[str, Any]) -> None:
        self.members: list[Any] = []
        self.required: list[str] = []
        for item in schema.get("allOf") or []:
            if _is_required_only_item(item):
                self.required.extend(item["required"])
            else:
                self.members.append(item)
        self.properties: dict[str, Any] = {name: {} for name in self.required}

    def patch(self, member: Any, resolver: SchemaResolver | None) -> None:
        if is_reference(member):
            if resolver is None:
                return
            source = resolver.get_schema_by_ref(member["$ref"]).get("properties") or {}
            for name in self.required:
                self.properties[name] = source.get(name, {})
            return

        source = member.get("properties") or {}
        for name in self.required:
            if name in source:
                self.properties[name] = source[name]

    @property
    def composed_schema(self) -> dict[str, Any] | None:
        if not self.properties:
            return None
        return {"type": "object", "properties": self.properties, "required": self.required}


class SchemaVisitor(Generic[ResultT, StateT]):
    """Dispatches a schema node to the `visit_<kind>` method of a backend."""

    def dispatch(self, schema: Any, state: StateT) -> ResultT:
        kind = classify_schema(schema)
        handler = getattr(self, f"visit_{kind.value}")
        return handler(schema, state)

    def visit_reference(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_type_list(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_null(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_one_of(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_any_of(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_all_of(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_enum(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_primitive(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_array(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_object(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError

    def visit_unknown(self, schema: dict[str, Any], state: StateT) -> ResultT:
        raise NotImplementedError
