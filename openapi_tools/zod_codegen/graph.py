"""Schema-to-schema dependency graphs built from `$ref` edges."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Final, Iterable

from openapi_tools.shared.errors import UnsupportedSchemaTypeError

from .resolver import autocorrect_ref
from .visitor import SchemaKind, classify_schema

GetSchemaByRef = Callable[[str], Any]

_COMPOSITION_KINDS: Final[dict[SchemaKind, str]] = {
    SchemaKind.ONE_OF: "oneOf",
    SchemaKind.ANY_OF: "anyOf",
    SchemaKind.ALL_OF: "allOf",
}


def _add(refs: list[str], ref: str) -> None:
    if ref not in refs:
        refs.append(ref)


@dataclass(slots=True)
class DependencyGraph:
    """Direct and transitive `$ref` edges keyed by pointer.

    Edge lists keep first-seen order so that every consumer (topological
    sort, grouping) is deterministic.
    """

    direct: dict[str, list[str]] = field(default_factory=dict)
    deep: dict[str, list[str]] = field(default_factory=dict)

    def is_circular(self, ref: str) -> bool:
        return ref in self.deep.get(ref, ())


def get_openapi_dependency_graph(
    schema_refs: Iterable[str],
    get_schema_by_ref: GetSchemaByRef,
) -> DependencyGraph:
    """Build the direct and deep dependency graphs from a set of root pointers."""
    roots = list(schema_refs)
    visited_refs: set[str] = set()
    direct: dict[str, list[str]] = {}

    def visit(schema: Any, from_ref: str) -> None:
        if not isinstance(schema, dict):
            return

        try:
            kind = classify_schema(schema)
        except UnsupportedSchemaTypeError:
            # no edges; the compilers report the type if it is ever emitted
            return

        if kind is SchemaKind.REFERENCE:
            ref = autocorrect_ref(schema["$ref"])
            _add(direct.setdefault(from_ref, []), ref)
            if ref in visited_refs:
                return
            visited_refs.add(ref)
            visit(get_schema_by_ref(ref), ref)
        elif kind is SchemaKind.TYPE_LIST:
            for member in schema["type"]:
                visit({**schema, "type": member}, from_ref)
        elif kind in _COMPOSITION_KINDS:
            for member in schema[_COMPOSITION_KINDS[kind]]:
                visit(member, from_ref)
        elif kind is SchemaKind.ARRAY:
            visit(schema.get("items"), from_ref)
        elif kind is SchemaKind.OBJECT:
            additional = schema.get("additionalProperties")
            for prop in (schema.get("properties") or {}).values():
                visit(prop, from_ref)
            if isinstance(additional, dict):
                visit(additional, from_ref)

    for ref in roots:
        visited_refs.add(ref)
        visit(get_schema_by_ref(ref), ref)

    deep: dict[str, list[str]] = {}
    visited_pairs: set[tuple[str, str]] = set()
    for ref in roots:
        deps = direct.get(ref)
        if not deps:
            continue
        closure = deep.setdefault(ref, [])

        stack = list(reversed(deps))
        while stack:
            dep = stack.pop()
            _add(closure, dep)
            if dep == ref or dep not in direct:
                continue
            for transitive in reversed(direct[dep]):
                if (ref, transitive) in visited_pairs:
                    continue
                visited_pairs.add((ref, transitive))
                stack.append(transitive)

    return DependencyGraph(direct=direct, deep=deep)
