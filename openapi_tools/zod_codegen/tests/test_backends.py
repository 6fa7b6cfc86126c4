"""Both compilers must agree on how every fixture is classified."""

import pytest

from openapi_tools.zod_codegen.code_meta import CodeMetaData, ConversionContext
from openapi_tools.zod_codegen.resolver import SchemaResolver
from openapi_tools.zod_codegen.typescript import get_typescript_from_openapi
from openapi_tools.zod_codegen.zod import ZodCompiler, get_zod_chain, get_zod_schema

FIXTURES = [
    ({"type": "string"}, "z.string()", "string"),
    ({"type": "number"}, "z.number()", "number"),
    ({"type": "integer"}, "z.number().int()", "number"),
    ({"type": "boolean"}, "z.boolean()", "boolean"),
    ({"type": "null"}, "z.null()", "null"),
    ({}, "z.unknown()", "unknown"),
    ({"type": "string", "nullable": True}, "z.string().nullable()", "string | null"),
    ({"type": "array", "items": {"type": "integer"}}, "z.array(z.number().int())", "number[]"),
    (
        {"type": "object", "required": ["a"], "properties": {"a": {"type": "string"}, "b": {"type": "number"}}},
        "z.object({ a: z.string(), b: z.number().optional() }).passthrough()",
        "{\n    a: string;\n    b?: number;\n}",
    ),
    (
        {"type": "object", "properties": {"a": {"type": "string"}}},
        "z.object({ a: z.string() }).partial().passthrough()",
        "Partial<{\n    a: string;\n}>",
    ),
]


@pytest.mark.parametrize("schema,expression,type_text", FIXTURES)
def test_leaf_round_trip(schema, expression, type_text):
    meta = CodeMetaData(is_required=True)
    assert str(get_zod_schema(schema, meta=meta)) + get_zod_chain(schema, meta) == expression
    assert get_typescript_from_openapi(schema) == type_text


def test_distinct_expressions_never_share_a_hoisted_name():
    ctx = ConversionContext(resolver=SchemaResolver({}))
    compiler = ZodCompiler(ctx)
    required = CodeMetaData(is_required=True)

    names = {}
    for index in range(4):
        schema = {
            "type": "object",
            "required": ["a"],
            "properties": {"a": {"type": "string", "maxLength": index + 1}, "b": {"type": "string"}},
        }
        code = compiler.compile(schema, required)
        names[str(code)] = compiler.hoist(code, "Body")

    assert list(names.values()) == ["Body", "Body__2", "Body__3", "Body__4"]
    assert {ctx.zod_schema_by_name[name] for name in names.values()} == set(names)
