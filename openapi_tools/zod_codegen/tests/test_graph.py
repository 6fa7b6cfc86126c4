from openapi_tools.zod_codegen.graph import DependencyGraph, get_openapi_dependency_graph
from openapi_tools.zod_codegen.resolver import SchemaResolver, as_component_schema

USER = as_component_schema("User")
MIDDLE = as_component_schema("Middle")


def build_graph(schemas):
    resolver = SchemaResolver({"components": {"schemas": schemas}})
    return get_openapi_dependency_graph(
        [as_component_schema(name) for name in schemas],
        resolver.get_schema_by_ref,
    )


def test_cyclic_schemas_reach_themselves():
    graph = build_graph(
        {
            "User": {
                "type": "object",
                "properties": {"name": {"type": "string"}, "middle": {"$ref": MIDDLE}},
            },
            "Middle": {"type": "object", "properties": {"user": {"$ref": USER}}},
        }
    )

    assert graph.direct == {USER: [MIDDLE], MIDDLE: [USER]}
    assert graph.deep[USER] == [MIDDLE, USER]
    assert graph.deep[MIDDLE] == [USER, MIDDLE]
    assert graph.is_circular(USER)
    assert graph.is_circular(MIDDLE)


def test_acyclic_schemas():
    pet = as_component_schema("Pet")
    category = as_component_schema("Category")
    tag = as_component_schema("Tag")
    graph = build_graph(
        {
            "Pet": {
                "type": "object",
                "properties": {
                    "category": {"$ref": category},
                    "tags": {"type": "array", "items": {"$ref": tag}},
                },
            },
            "Category": {"type": "object", "properties": {"tag": {"$ref": tag}}},
            "Tag": {"type": "string"},
        }
    )

    assert graph.direct[pet] == [category, tag]
    assert graph.deep[pet] == [category, tag]
    assert graph.deep[category] == [tag]
    assert tag not in graph.deep
    assert not graph.is_circular(pet)
    assert not graph.is_circular(tag)


def test_edges_through_compositions_and_additional_properties():
    a = as_component_schema("A")
    b = as_component_schema("B")
    c = as_component_schema("C")
    graph = build_graph(
        {
            "A": {"oneOf": [{"$ref": b}, {"allOf": [{"$ref": c}]}]},
            "B": {"type": "object", "additionalProperties": {"$ref": c}},
            "C": {"type": "integer"},
        }
    )

    assert graph.direct[a] == [b, c]
    assert graph.direct[b] == [c]
    assert graph.deep[a] == [b, c]


def test_self_reference():
    node = as_component_schema("Node")
    graph = build_graph(
        {"Node": {"type": "object", "properties": {"children": {"type": "array", "items": {"$ref": node}}}}}
    )
    assert graph.deep[node] == [node]
    assert graph.is_circular(node)


def test_empty_graph():
    graph = DependencyGraph()
    assert not graph.is_circular(USER)


def test_self_reference_through_nullable_type_list():
    node = as_component_schema("Node")
    graph = build_graph(
        {
            "Node": {
                "type": "object",
                "properties": {
                    "children": {"type": ["array", "null"], "items": {"$ref": node}},
                },
            }
        }
    )

    assert graph.direct[node] == [node]
    assert graph.deep[node] == [node]
    assert graph.is_circular(node)


def test_type_list_members_contribute_edges():
    wrapper = as_component_schema("Wrapper")
    zed = as_component_schema("Zed")
    graph = build_graph(
        {
            "Wrapper": {
                "type": "object",
                "properties": {"items": {"type": ["array", "null"], "items": {"$ref": zed}}},
            },
            "Zed": {"type": "object"},
        }
    )

    assert graph.direct[wrapper] == [zed]
    assert graph.deep[wrapper] == [zed]
    assert not graph.is_circular(wrapper)


def test_composition_ignores_sibling_properties_like_the_compilers():
    a = as_component_schema("A")
    b = as_component_schema("B")
    c = as_component_schema("C")
    graph = build_graph(
        {
            "A": {"allOf": [{"$ref": b}], "properties": {"c": {"$ref": c}}},
            "B": {"type": "object"},
            "C": {"type": "object"},
        }
    )

    assert graph.direct[a] == [b]
    assert c not in graph.deep[a]


def test_unsupported_type_is_a_leaf():
    upload = as_component_schema("Upload")
    graph = build_graph({"Upload": {"type": "file"}, "Pet": {"type": "object", "properties": {"doc": {"$ref": upload}}}})

    assert graph.direct == {as_component_schema("Pet"): [upload]}
    assert upload not in graph.deep
