"""Reference resolution for `$ref` pointers inside one OpenAPI document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final
from urllib.parse import unquote

from openapi_tools.shared.errors import SchemaNotFoundError
from openapi_tools.shared.naming import normalize_string

COMPONENT_SCHEMAS_PREFIX: Final[str] = "#/components/schemas/"


def is_reference(schema: Any) -> bool:
    return isinstance(schema, dict) and "$ref" in schema


def as_component_schema(name: str) -> str:
    return f"{COMPONENT_SCHEMAS_PREFIX}{name}"


def autocorrect_ref(ref: str) -> str:
    """`#components/schemas/X` -> `#/components/schemas/X`."""
    return ref if ref[1:2] == "/" else "#/" + ref[1:]


def _decode_segment(segment: str) -> str:
    return unquote(segment).replace("~1", "/").replace("~0", "~")


@dataclass(frozen=True, slots=True)
class RefInfo:
    """A resolved pointer with its declared and identifier-safe names."""

    ref: str
    name: str
    normalized: str


class SchemaResolver:
    """Dereferences pointers and hands out stable, collision-free names.

    One resolver belongs to exactly one document and one conversion run.
    Every name under `components.schemas` is registered up front, in
    declaration order, so that two declared names normalizing to the same
    identifier are disambiguated deterministically (`Pet_Info`, `Pet_Info__2`).
    """

    __slots__ = ("_document", "_by_ref", "_by_normalized")

    def __init__(self, document: dict[str, Any]) -> None:
        self._document = document
        self._by_ref: dict[str, RefInfo] = {}
        self._by_normalized: dict[str, RefInfo] = {}

        schemas = (document.get("components") or {}).get("schemas") or {}
        for name in schemas:
            self._register(as_component_schema(name))

    @property
    def document(self) -> dict[str, Any]:
        return self._document

    def _register(self, ref: str) -> RefInfo:
        info = self._by_ref.get(ref)
        if info is not None:
            return info

        name = _decode_segment(ref.split("/")[-1])
        base = normalize_string(name)
        normalized = base
        suffix = 1
        while normalized in self._by_normalized:
            suffix += 1
            normalized = f"{base}__{suffix}"

        info = RefInfo(ref=ref, name=name, normalized=normalized)
        self._by_ref[ref] = info
        self._by_normalized[normalized] = info
        return info

    def get_schema_by_ref(self, ref: str) -> dict[str, Any]:
        """Return the node a pointer designates.

        Raises:
            SchemaNotFoundError: If any segment of the pointer is missing.
        """
        correct_ref = autocorrect_ref(ref)
        node: Any = self._document
        for segment in correct_ref.split("/")[1:]:
            if not isinstance(node, dict):
                raise SchemaNotFoundError(ref)
            key = _decode_segment(segment)
            if key not in node:
                raise SchemaNotFoundError(ref)
            node = node[key]

        if node is None:
            raise SchemaNotFoundError(ref)

        self._register(correct_ref)
        return node

    def resolve_ref(self, ref: str) -> RefInfo:
        """Return the naming info of a pointer, dereferencing it on first use."""
        info = self._by_ref.get(autocorrect_ref(ref))
        if info is None:
            self.get_schema_by_ref(ref)
            info = self._by_ref[autocorrect_ref(ref)]
        return info

    def resolve_schema_name(self, normalized: str) -> RefInfo | None:
        return self._by_normalized.get(normalized)

    def is_reserved_name(self, name: str) -> bool:
        return name in self._by_normalized
