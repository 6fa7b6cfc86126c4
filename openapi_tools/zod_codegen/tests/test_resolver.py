import pytest

from openapi_tools.shared.errors import SchemaNotFoundError
from openapi_tools.zod_codegen.resolver import (
    SchemaResolver,
    as_component_schema,
    autocorrect_ref,
    is_reference,
)


def make_document(schemas):
    return {"openapi": "3.0.0", "paths": {}, "components": {"schemas": schemas}}


class TestHelpers:
    def test_is_reference(self):
        assert is_reference({"$ref": "#/components/schemas/Pet"})
        assert not is_reference({"type": "string"})
        assert not is_reference("#/components/schemas/Pet")

    def test_as_component_schema(self):
        assert as_component_schema("Pet") == "#/components/schemas/Pet"

    @pytest.mark.parametrize(
        "ref,expected",
        [
            ("#components/schemas/Pet", "#/components/schemas/Pet"),
            ("#/components/schemas/Pet", "#/components/schemas/Pet"),
        ],
    )
    def test_autocorrect_ref(self, ref, expected):
        assert autocorrect_ref(ref) == expected


class TestSchemaResolver:
    def test_get_schema_by_ref(self):
        pet = {"type": "object"}
        resolver = SchemaResolver(make_document({"Pet": pet}))
        assert resolver.get_schema_by_ref("#/components/schemas/Pet") is pet

    def test_get_schema_by_ref_autocorrects_missing_slash(self):
        pet = {"type": "object"}
        resolver = SchemaResolver(make_document({"Pet": pet}))
        assert resolver.get_schema_by_ref("#components/schemas/Pet") is pet

    def test_get_schema_by_ref_decodes_escaped_segments(self):
        node = {"type": "string"}
        resolver = SchemaResolver(make_document({"a/b": node, "c~d": node}))
        assert resolver.get_schema_by_ref("#/components/schemas/a~1b") is node
        assert resolver.get_schema_by_ref("#/components/schemas/c~0d") is node

    def test_get_schema_by_ref_outside_components(self):
        param = {"name": "limit", "in": "query"}
        resolver = SchemaResolver({"components": {"parameters": {"Limit": param}}})
        assert resolver.get_schema_by_ref("#/components/parameters/Limit") is param

    def test_missing_ref_raises(self):
        resolver = SchemaResolver(make_document({"Pet": {"type": "object"}}))
        with pytest.raises(SchemaNotFoundError) as exc_info:
            resolver.get_schema_by_ref("#/components/schemas/Missing")
        assert exc_info.value.ref == "#/components/schemas/Missing"
        assert "#/components/schemas/Missing" in str(exc_info.value)

    def test_resolve_ref_is_memoized(self):
        resolver = SchemaResolver(make_document({"Pet": {"type": "object"}}))
        first = resolver.resolve_ref("#/components/schemas/Pet")
        assert resolver.resolve_ref("#components/schemas/Pet") is first
        assert first.name == "Pet"
        assert first.normalized == "Pet"

    def test_names_are_normalized(self):
        resolver = SchemaResolver(make_document({"Pet-Info": {}, "1Owner": {}, "a/b": {}}))
        assert resolver.resolve_ref("#/components/schemas/Pet-Info").normalized == "Pet_Info"
        assert resolver.resolve_ref("#/components/schemas/1Owner").normalized == "_1Owner"
        assert resolver.resolve_ref("#/components/schemas/a~1b").normalized == "a_b"

    def test_colliding_names_get_suffixes_in_declaration_order(self):
        resolver = SchemaResolver(make_document({"Pet-Info": {}, "Pet_Info": {}, "Pet Info": {}}))
        assert resolver.resolve_ref("#/components/schemas/Pet_Info").normalized == "Pet_Info__2"
        assert resolver.resolve_ref("#/components/schemas/Pet Info").normalized == "Pet_Info__3"
        assert resolver.resolve_ref("#/components/schemas/Pet-Info").normalized == "Pet_Info"

    def test_resolve_schema_name(self):
        resolver = SchemaResolver(make_document({"Pet-Info": {}}))
        info = resolver.resolve_schema_name("Pet_Info")
        assert info is not None
        assert info.ref == "#/components/schemas/Pet-Info"
        assert resolver.resolve_schema_name("Unknown") is None

    def test_is_reserved_name(self):
        resolver = SchemaResolver(make_document({"Pet": {}}))
        assert resolver.is_reserved_name("Pet")
        assert not resolver.is_reserved_name("Owner")

    def test_document_without_components(self):
        resolver = SchemaResolver({"openapi": "3.0.0", "paths": {}})
        assert resolver.document == {"openapi": "3.0.0", "paths": {}}
        assert not resolver.is_reserved_name("Pet")
