"""Compile OpenAPI schema nodes into TypeScript type text.

The static types mirror the zod expressions built by `zod.py`: both backends
classify schemas through the same visitor, so a property that is optional on
one side is optional on the other.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Final

from openapi_tools.shared.errors import MissingContextError
from openapi_tools.shared.naming import wrap_with_quotes_if_needed

from .options import TemplateContextOptions
from .resolver import SchemaResolver, autocorrect_ref, is_reference
from .visitor import (
    RequiredOnlyAllOf,
    SchemaVisitor,
    get_schema_type,
    object_properties,
    resolve_required,
)
from .zod import is_nullable

INDENT: Final[str] = "    "


@dataclass(slots=True)
class TsConversionContext:
    """State shared while materializing named types of one document.

    `visited_refs` holds the pointers whose expansion is in progress or
    done; meeting one of them again yields its bare type name.
    """

    resolver: SchemaResolver
    node_by_ref: dict[str, str] = field(default_factory=dict)
    visited_refs: set[str] = field(default_factory=set)


def _has_top_level(text: str, separators: tuple[str, ...]) -> bool:
    depth = 0
    quote = ""
    for index, char in enumerate(text):
        if quote:
            if char == quote and text[index - 1] != "\\":
                quote = ""
            continue
        if char in "\"'":
            quote = char
        elif char in "{[(<":
            depth += 1
        elif char in "}])>":
            depth -= 1
        elif depth == 0 and any(text.startswith(sep, index) for sep in separators):
            return True
    return False


def _group(text: str, separators: tuple[str, ...] = (" | ", " & ")) -> str:
    if _has_top_level(text, separators) or text.startswith("readonly "):
        return f"({text})"
    return text


def union(types: list[str]) -> str:
    return " | ".join(types)


def intersection(types: list[str]) -> str:
    return " & ".join(_group(member, (" | ",)) for member in types)


def array_of(item: str, readonly: bool = False) -> str:
    text = f"{_group(item)}[]"
    return f"readonly {text}" if readonly else text


def _indent(text: str) -> str:
    return "\n".join(f"{INDENT}{line}" if line else line for line in text.splitlines())


def object_literal(members: list[str]) -> str:
    if not members:
        return "{}"
    return "{\n" + "\n".join(_indent(member) for member in members) + "\n}"


def jsdoc_block(lines: list[str]) -> str:
    body = "\n".join(f" * {line}" if line else " *" for line in lines)
    return f"/**\n{body}\n */"


def generate_jsdoc_lines(schema: dict[str, Any]) -> list[str]:
    """Collect the JSDoc lines describing a schema's annotations and bounds."""
    lines: list[str] = []

    def add(key: str, render: Any) -> None:
        value = schema.get(key)
        if value is None:
            return
        rendered = render(value)
        if isinstance(rendered, list):
            lines.extend(rendered)
        elif rendered:
            lines.append(rendered)

    add("description", str)
    add("example", lambda value: f"@example {json.dumps(value)}")
    add(
        "examples",
        lambda values: [
            f"@example Example {index}: {json.dumps(example)}"
            for index, example in enumerate(values, start=1)
        ],
    )
    add("deprecated", lambda value: "@deprecated" if value else "")
    add("default", lambda value: f"@default {json.dumps(value)}")
    add("externalDocs", lambda value: f"@see {value['url']}" if isinstance(value, dict) and "url" in value else "")
    add("minimum", lambda value: f"@minimum {value}")
    add("maximum", lambda value: f"@maximum {value}")
    add("minLength", lambda value: f"@minLength {value}")
    add("maxLength", lambda value: f"@maxLength {value}")
    add("pattern", lambda value: f"@pattern {value}")
    add("enum", lambda values: "@enum " + ", ".join(str(value) for value in values))

    if len(lines) > 1 and schema.get("description"):
        lines.insert(1, "")
    return lines


def _ts_literal(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _without_nullable(schema: dict[str, Any], **changes: Any) -> dict[str, Any]:
    derived = {key: value for key, value in schema.items() if key != "nullable"}
    derived.update(changes)
    return derived


class TypescriptCompiler(SchemaVisitor[str, None]):
    """Static-type backend."""

    def __init__(
        self,
        ctx: TsConversionContext | None = None,
        options: TemplateContextOptions | None = None,
    ) -> None:
        self.ctx = ctx
        self.options = options or TemplateContextOptions()

    def compile(self, schema: Any, name: str | None = None, ref: str | None = None) -> str:
        """Return `type Name = ...;` when `name` is given, else an inline type."""
        if not isinstance(schema, dict):
            raise TypeError(f"Schema must be a mapping, got {type(schema).__name__}")

        if self.ctx is not None and ref is not None:
            self.ctx.visited_refs.add(autocorrect_ref(ref))

        body = self._inline(schema)
        if name is not None:
            return f"type {name} = {body};"
        return body

    def _inline(self, schema: Any) -> str:
        body = self.dispatch(schema, None)
        if is_reference(schema):
            return body
        if is_nullable(schema) and body != "null":
            body = union([body, "null"])
        if schema.get("default") is not None:
            body = union([body, "undefined"])
        return body

    # Dispatch targets

    def visit_reference(self, schema: dict[str, Any], state: None) -> str:
        if self.ctx is None:
            raise MissingContextError("A conversion context is required to compile $ref schemas")

        ref = autocorrect_ref(schema["$ref"])
        resolver = self.ctx.resolver
        name = resolver.resolve_ref(ref).normalized
        if ref in self.ctx.visited_refs and ref not in self.ctx.node_by_ref:
            return name

        target = resolver.get_schema_by_ref(ref)
        if ref not in self.ctx.node_by_ref:
            self.ctx.visited_refs.add(ref)
            self.ctx.node_by_ref[ref] = self._inline(target)

        return union([name, "null"]) if is_nullable(target) else name

    def visit_type_list(self, schema: dict[str, Any], state: None) -> str:
        types = schema["type"]
        if len(types) == 1:
            return self._inline(_without_nullable(schema, type=types[0], default=None))
        return union([self._inline(_without_nullable(schema, type=member, default=None)) for member in types])

    def visit_null(self, schema: dict[str, Any], state: None) -> str:
        return "null"

    def visit_one_of(self, schema: dict[str, Any], state: None) -> str:
        members = schema["oneOf"]
        if len(members) == 1:
            return self._inline(members[0])
        return union([self._inline(member) for member in members])

    def visit_any_of(self, schema: dict[str, Any], state: None) -> str:
        members = schema["anyOf"]
        if len(members) == 1:
            return self._inline(members[0])
        one_of = union([self._inline(member) for member in members])
        return union([one_of, array_of(one_of, self.options.all_readonly)])

    def visit_all_of(self, schema: dict[str, Any], state: None) -> str:
        members = schema["allOf"]
        if len(members) == 1:
            return self._inline(members[0])

        split = RequiredOnlyAllOf(schema)
        types: list[str] = []
        for member in split.members:
            types.append(self._inline(member))
            split.patch(member, self.ctx.resolver if self.ctx else None)

        composed = split.composed_schema
        if composed is not None:
            types.append(self._inline(composed))
        return intersection(types)

    def visit_enum(self, schema: dict[str, Any], state: None) -> str:
        values = [value for value in schema["enum"] if value is not None]
        if get_schema_type(schema) != "string" and any(isinstance(value, str) for value in values):
            return "never"
        if not values:
            return "null"
        return union([_ts_literal(value) for value in values])

    def visit_primitive(self, schema: dict[str, Any], state: None) -> str:
        schema_type = get_schema_type(schema)
        if schema_type == "string":
            return "File" if schema.get("format") == "binary" else "string"
        if schema_type in ("number", "integer"):
            return "number"
        return "boolean"

    def visit_array(self, schema: dict[str, Any], state: None) -> str:
        items = schema.get("items")
        item = self._inline(items) if isinstance(items, dict) else "any"
        return array_of(item, self.options.all_readonly)

    def _member(self, prop: str, prop_schema: Any, required: bool) -> str:
        prop_type = self._inline(prop_schema)
        has_default = (
            isinstance(prop_schema, dict)
            and not is_reference(prop_schema)
            and prop_schema.get("default") is not None
        )
        optional = "" if required and not has_default else "?"
        member = f"{wrap_with_quotes_if_needed(prop)}{optional}: {prop_type};"

        if self.options.with_docs and isinstance(prop_schema, dict) and not is_reference(prop_schema):
            lines = generate_jsdoc_lines(prop_schema)
            if lines:
                return f"{jsdoc_block(lines)}\n{member}"
        return member

    def visit_object(self, schema: dict[str, Any], state: None) -> str:
        additional = schema.get("additionalProperties")
        properties = object_properties(schema)

        if additional is True or isinstance(additional, dict):
            value = self._inline(additional) if additional and additional is not True else "any"
        else:
            value = None

        if not properties:
            if value is None:
                return "{}"
            record = f"Record<string, {value}>"
            return f"Readonly<{record}>" if self.options.all_readonly else record

        is_partial, is_required = resolve_required(schema, self.options.with_implicit_required_props)
        members = [self._member(prop, prop_schema, is_required(prop)) for prop, prop_schema in properties.items()]
        object_type = object_literal(members)
        if value is not None:
            object_type = intersection([object_type, object_literal([f"[key: string]: {value};"])])

        if self.options.all_readonly:
            object_type = f"Readonly<{object_type}>"
        if is_partial:
            object_type = f"Partial<{object_type}>"
        return object_type

    def visit_unknown(self, schema: dict[str, Any], state: None) -> str:
        return "unknown"


def get_typescript_from_openapi(
    schema: Any,
    ctx: TsConversionContext | None = None,
    name: str | None = None,
    ref: str | None = None,
    options: TemplateContextOptions | None = None,
) -> str:
    """Compile `schema` into TypeScript.

    Examples:
        >>> get_typescript_from_openapi({"type": "integer"})
        'number'
        >>> get_typescript_from_openapi({"type": "string"}, name="Name")
        'type Name = string;'
    """
    return TypescriptCompiler(ctx, options).compile(schema, name=name, ref=ref)
