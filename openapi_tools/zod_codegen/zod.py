"""Compile OpenAPI schema nodes into zod validator expressions.

The compiler walks a schema through `SchemaVisitor` and assigns one
expression per `CodeMeta` node. References render as the normalized name of
their target and register the target's expression in the conversion context,
which is how named schemas (and cycles between them) end up declared once.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Final

from openapi_tools.shared.errors import MissingContextError
from openapi_tools.shared.naming import (
    escape_control_characters,
    normalize_string,
    wrap_with_quotes_if_needed,
)

from .code_meta import CodeMeta, CodeMetaData, ConversionContext
from .complexity import get_schema_complexity
from .options import TemplateContextOptions
from .resolver import is_reference
from .visitor import (
    RequiredOnlyAllOf,
    SchemaVisitor,
    get_schema_type,
    is_object_like,
    object_properties,
    resolve_required,
)

logger = logging.getLogger(__name__)

STRING_FORMAT_CHAINS: Final[dict[str, str]] = {
    "email": "email()",
    "hostname": "url()",
    "uri": "url()",
    "uuid": "uuid()",
    "date-time": "datetime({ offset: true })",
}

_UNESCAPED_SLASH_RE: Final[re.Pattern[str]] = re.compile(r"(?<!\\)/")
_QUOTE: Final[str] = "\""


def _literal(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _without_nullable(schema: dict[str, Any], **changes: Any) -> dict[str, Any]:
    derived = {key: value for key, value in schema.items() if key != "nullable"}
    derived.update(changes)
    return derived


def is_nullable(schema: Any) -> bool:
    if not isinstance(schema, dict) or is_reference(schema):
        return False
    if schema.get("nullable") is True:
        return True
    enum = schema.get("enum")
    return isinstance(enum, list) and None in enum


@dataclass(slots=True)
class _Frame:
    code: CodeMeta
    meta: CodeMetaData


class ZodCompiler(SchemaVisitor[CodeMeta, _Frame]):
    """Validator-expression backend.

    One compiler may be reused for every schema of a run; all mutable state
    lives in the `ConversionContext` it was created with.
    """

    def __init__(
        self,
        ctx: ConversionContext | None = None,
        options: TemplateContextOptions | None = None,
    ) -> None:
        self.ctx = ctx
        self.options = options or TemplateContextOptions()

    def compile(self, schema: Any, meta: CodeMetaData | None = None) -> CodeMeta:
        """Compile one schema node, recursing into its children."""
        if not isinstance(schema, dict):
            raise TypeError(f"Schema must be a mapping, got {type(schema).__name__}")

        code = CodeMeta(schema, self.ctx, meta)
        child_meta = CodeMetaData(
            parent=code.inherit(meta.parent if meta else None),
            referenced_by=list(code.meta.referenced_by),
        )
        self.dispatch(schema, _Frame(code=code, meta=child_meta))

        if is_nullable(schema) and code.code not in (None, "z.null()"):
            code.assign(f"{code.code}.nullable()")
        return code

    def _child(self, schema: Any, frame: _Frame, meta: CodeMetaData | None = None) -> str:
        return str(self.compile(schema, meta or frame.meta))

    def _require_ctx(self) -> ConversionContext:
        if self.ctx is None:
            raise MissingContextError("A conversion context is required to compile $ref schemas")
        return self.ctx

    def _readonly(self, expression: str) -> str:
        return f"{expression}.readonly()" if self.options.all_readonly else expression

    def _deref(self, schema: Any) -> Any:
        if is_reference(schema) and self.ctx is not None:
            return self.ctx.resolver.get_schema_by_ref(schema["$ref"])
        return schema

    # Dispatch targets

    def visit_reference(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        ctx = self._require_ctx()
        resolver = ctx.resolver
        code = frame.code
        name = resolver.resolve_ref(schema["$ref"]).normalized

        # names of the references currently being expanded above this node
        refs_path = [
            resolver.resolve_ref(prev.ref).normalized
            for prev in code.meta.referenced_by[:-1]
            if prev.ref
        ]
        if name in refs_path:
            return code

        if name not in ctx.zod_schema_by_name:
            target = resolver.get_schema_by_ref(schema["$ref"])
            result = self._child(target, frame)
            ctx.zod_schema_by_name.setdefault(name, result)
        return code

    def visit_type_list(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        types = schema["type"]
        if len(types) == 1:
            return frame.code.assign(self._child(_without_nullable(schema, type=types[0]), frame))
        members = ", ".join(self._child(_without_nullable(schema, type=member), frame) for member in types)
        return frame.code.assign(f"z.union([{members}])")

    def visit_null(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        return frame.code.assign("z.null()")

    def _discriminated_property(self, schema: dict[str, Any], members: list[Any]) -> str | None:
        discriminator = schema.get("discriminator")
        if not isinstance(discriminator, dict) or not discriminator.get("propertyName"):
            return None
        prop = discriminator["propertyName"]

        for member in members:
            if is_reference(member) and self.ctx is None:
                return None
            actual = self._deref(member)
            if not isinstance(actual, dict) or not is_object_like(actual):
                return None
            if prop not in (actual.get("required") or []):
                return None
            tag = (actual.get("properties") or {}).get(prop)
            if not isinstance(tag, dict):
                return None
            enum = tag.get("enum")
            if not ("const" in tag or (isinstance(enum, list) and len(enum) == 1)):
                return None
        return prop

    def _union(self, schema: dict[str, Any], keyword: str, frame: _Frame) -> CodeMeta:
        members = schema[keyword]
        if len(members) == 1:
            return frame.code.assign(self._child(members[0], frame))

        compiled = ", ".join(self._child(member, frame) for member in members)
        prop = self._discriminated_property(schema, members)
        if prop is not None:
            return frame.code.assign(f"z.discriminatedUnion({_literal(prop)}, [{compiled}])")
        return frame.code.assign(f"z.union([{compiled}])")

    def visit_one_of(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        return self._union(schema, "oneOf", frame)

    def visit_any_of(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        return self._union(schema, "anyOf", frame)

    def visit_all_of(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        members = schema["allOf"]
        if len(members) == 1:
            return frame.code.assign(self._child(members[0], frame))

        split = RequiredOnlyAllOf(schema)
        types: list[str] = []
        for member in split.members:
            types.append(self._child(member, frame))
            split.patch(member, self.ctx.resolver if self.ctx else None)

        composed = split.composed_schema
        if composed is not None:
            types.append(self._child(composed, frame))

        first, *rest = types
        return frame.code.assign(first + "".join(f".and({member})" for member in rest))

    def visit_enum(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        values = [value for value in schema["enum"] if value is not None]
        if not values:
            return frame.code.assign("z.null()")

        if get_schema_type(schema) == "string":
            if len(values) == 1:
                return frame.code.assign(f"z.literal({_literal(values[0])})")
            literals = ", ".join(_literal(value) for value in values)
            return frame.code.assign(f"z.enum([{literals}])")

        if any(isinstance(value, str) for value in values):
            return frame.code.assign("z.never()")

        if len(values) == 1:
            return frame.code.assign(f"z.literal({_literal(values[0])})")
        literals = ", ".join(f"z.literal({_literal(value)})" for value in values)
        return frame.code.assign(f"z.union([{literals}])")

    def visit_primitive(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        schema_type = get_schema_type(schema)
        if schema_type == "integer":
            return frame.code.assign("z.number()")
        if schema_type == "string":
            if schema.get("format") == "binary":
                return frame.code.assign("z.instanceof(File)")
            return frame.code.assign("z.string()")
        return frame.code.assign(f"z.{schema_type}()")

    def visit_array(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        items = schema.get("items")
        if not isinstance(items, dict):
            return frame.code.assign(self._readonly("z.array(z.any())"))

        item_meta = CodeMetaData(
            is_required=True,
            parent=frame.meta.parent,
            referenced_by=frame.meta.referenced_by,
        )
        item = self._child(items, frame, item_meta) + get_zod_chain(self._deref(items), item_meta, self.options)
        return frame.code.assign(self._readonly(f"z.array({item})"))

    def visit_object(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        additional = schema.get("additionalProperties")
        properties = object_properties(schema)

        if not properties and (additional is True or isinstance(additional, dict)):
            value = self._child(additional, frame) if additional else "z.any()"
            return frame.code.assign(self._readonly(f"z.record({value})"))

        is_partial, is_required = resolve_required(schema, self.options.with_implicit_required_props)

        members: list[str] = []
        for prop, prop_schema in properties.items():
            prop_meta = CodeMetaData(
                is_required=is_required(prop),
                name=prop,
                parent=frame.meta.parent,
                referenced_by=frame.meta.referenced_by,
            )
            prop_code = self._child(prop_schema, frame, prop_meta) + get_zod_chain(
                self._deref(prop_schema), prop_meta, self.options
            )
            members.append(f"{wrap_with_quotes_if_needed(prop)}: {prop_code}")

        shape = "{ " + ", ".join(members) + " }" if members else "{}"
        expression = f"z.object({shape})"
        if is_partial:
            expression += ".partial()"

        if isinstance(additional, dict) and additional:
            expression += f".catchall({self._child(additional, frame)})"
        elif additional is not False:
            expression += ".strict()" if self.options.strict_objects else ".passthrough()"

        return frame.code.assign(self._readonly(expression))

    def visit_unknown(self, schema: dict[str, Any], frame: _Frame) -> CodeMeta:
        return frame.code.assign("z.unknown()")

    # Hoisting

    def hoist(self, code: CodeMeta, fallback_name: str | None = None) -> str:
        """Decide whether a compiled expression is inlined or bound to a variable.

        Expressions scoring below the complexity threshold are returned as-is.
        Others are registered under a name derived from `fallback_name`,
        reusing the existing variable when the identical expression was already
        hoisted. A threshold of -1 inlines everything.
        """
        ctx = self._require_ctx()
        result = str(code)
        threshold = self.options.complexity_threshold

        if threshold == -1:
            return ctx.zod_schema_by_name.get(result, result) if code.ref else result

        if (result.startswith("z.") or code.ref is None) and fallback_name:
            if code.complexity < threshold:
                return result

            existing = ctx.schema_by_name.get(result)
            if existing is not None:
                return existing

            safe_name = normalize_string(fallback_name)
            name = safe_name
            suffix = 1
            while name in ctx.zod_schema_by_name or ctx.resolver.is_reserved_name(name):
                if ctx.zod_schema_by_name.get(name) == result:
                    return name
                suffix += 1
                name = f"{safe_name}__{suffix}"

            logger.debug("Hoisting %s as %s", fallback_name, name)
            ctx.zod_schema_by_name[name] = result
            ctx.schema_by_name[result] = name
            return name

        if code.ref is None:
            return result

        target = ctx.zod_schema_by_name.get(result)
        if target is None:
            return result

        complexity = get_schema_complexity(ctx.resolver.get_schema_by_ref(code.ref))
        if complexity < threshold:
            return target
        return result


def get_zod_schema(
    schema: Any,
    ctx: ConversionContext | None = None,
    meta: CodeMetaData | None = None,
    options: TemplateContextOptions | None = None,
) -> CodeMeta:
    """Compile `schema` into a `CodeMeta` whose string form is a zod expression.

    Examples:
        >>> str(get_zod_schema({"type": "string", "enum": ["a", "b"]}))
        'z.enum(["a", "b"])'
    """
    return ZodCompiler(ctx, options).compile(schema, meta)


def _format_pattern(pattern: str) -> str:
    if len(pattern) > 1 and pattern.startswith("/") and pattern.endswith("/"):
        pattern = pattern[1:-1]
    pattern = escape_control_characters(pattern)
    return "/" + _UNESCAPED_SLASH_RE.sub(r"\\/", pattern) + "/"


def _string_chains(schema: dict[str, Any]) -> list[str]:
    chains: list[str] = []
    if schema.get("enum") is None:
        if schema.get("minLength") is not None:
            chains.append(f"min({schema['minLength']})")
        if schema.get("maxLength") is not None:
            chains.append(f"max({schema['maxLength']})")

    if schema.get("pattern"):
        chains.append(f"regex({_format_pattern(schema['pattern'])})")

    chain = STRING_FORMAT_CHAINS.get(schema.get("format") or "")
    if chain:
        chains.append(chain)
    return chains


def _number_chains(schema: dict[str, Any]) -> list[str]:
    chains: list[str] = []
    if get_schema_type(schema) == "integer" and schema.get("enum") is None:
        chains.append("int()")

    exclusive_min = schema.get("exclusiveMinimum")
    if schema.get("minimum") is not None:
        chains.append(f"{'gt' if exclusive_min is True else 'gte'}({schema['minimum']})")
    elif isinstance(exclusive_min, (int, float)) and not isinstance(exclusive_min, bool):
        chains.append(f"gt({exclusive_min})")

    exclusive_max = schema.get("exclusiveMaximum")
    if schema.get("maximum") is not None:
        chains.append(f"{'lt' if exclusive_max is True else 'lte'}({schema['maximum']})")
    elif isinstance(exclusive_max, (int, float)) and not isinstance(exclusive_max, bool):
        chains.append(f"lt({exclusive_max})")

    if schema.get("multipleOf"):
        chains.append(f"multipleOf({schema['multipleOf']})")
    return chains


def _array_chains(schema: dict[str, Any]) -> list[str]:
    chains: list[str] = []
    if schema.get("minItems"):
        chains.append(f"min({schema['minItems']})")
    if schema.get("maxItems"):
        chains.append(f"max({schema['maxItems']})")
    return chains


def _default_chain(schema: dict[str, Any]) -> str:
    value = schema.get("default")
    if value is None:
        return ""
    if get_schema_type(schema) in ("number", "integer") and isinstance(value, str):
        return f"default({value.strip(_QUOTE)})"
    return f"default({json.dumps(value, ensure_ascii=False, separators=(',', ':'))})"


def get_zod_chain(
    schema: Any,
    meta: CodeMetaData | None = None,
    options: TemplateContextOptions | None = None,
) -> str:
    """Return the refinement suffix (`.int().gte(1).optional()` ...) for a schema.

    `schema` is the dereferenced node; the presence chain depends only on
    `meta.is_required`.
    """
    options = options or TemplateContextOptions()
    if not isinstance(schema, dict):
        schema = {}

    chains: list[str] = []
    schema_type = get_schema_type(schema)
    if schema_type == "string":
        chains.extend(_string_chains(schema))
    elif schema_type in ("number", "integer"):
        chains.extend(_number_chains(schema))
    elif schema_type == "array":
        chains.extend(_array_chains(schema))

    description = schema.get("description")
    if options.with_description and isinstance(description, str) and description:
        chains.append(f"describe({_literal(description)})")

    if not (meta and meta.is_required):
        chains.append("optional()")

    if options.with_default_values:
        default = _default_chain(schema)
        if default:
            chains.append(default)

    return "." + ".".join(chains) if chains else ""
