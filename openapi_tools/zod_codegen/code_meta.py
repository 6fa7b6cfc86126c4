"""Compiled schema fragments and the per-run conversion state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .complexity import get_schema_complexity
from .resolver import SchemaResolver, is_reference


@dataclass(slots=True)
class ConversionContext:
    """Mutable state shared by every compilation of one document.

    Attributes:
        resolver: Pointer resolution for the document being compiled.
        zod_schema_by_name: Declared or hoisted name -> validator expression.
        schema_by_name: Validator expression -> hoisted name, for dedup.
    """

    resolver: SchemaResolver
    zod_schema_by_name: dict[str, str] = field(default_factory=dict)
    schema_by_name: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class CodeMetaData:
    is_required: bool | None = None
    name: str | None = None
    parent: CodeMeta | None = None
    referenced_by: list[CodeMeta] = field(default_factory=list)


class CodeMeta:
    """One compiled schema fragment.

    A reference node renders as the normalized name of its target; any
    other node renders as the expression assigned to it.
    """

    __slots__ = ("schema", "ctx", "meta", "ref", "children", "_code")

    def __init__(
        self,
        schema: Any,
        ctx: ConversionContext | None = None,
        meta: CodeMetaData | None = None,
    ) -> None:
        inherited = meta or CodeMetaData()
        self.schema = schema
        self.ctx = ctx
        self.ref: str | None = schema["$ref"] if is_reference(schema) else None
        self.children: list[CodeMeta] = []
        self._code: str | None = None
        self.meta = CodeMetaData(
            is_required=inherited.is_required,
            name=inherited.name,
            parent=inherited.parent,
            referenced_by=list(inherited.referenced_by),
        )
        if self.ref is not None:
            self.meta.referenced_by.append(self)

    @property
    def code(self) -> str | None:
        return self._code

    @property
    def code_string(self) -> str:
        if self._code is not None:
            return self._code
        if self.ref is None:
            return ""
        if self.ctx is not None:
            return self.ctx.resolver.resolve_ref(self.ref).normalized
        return self.ref.split("/")[-1]

    @property
    def complexity(self) -> int:
        return get_schema_complexity(self.schema)

    def assign(self, code: str) -> CodeMeta:
        self._code = code
        return self

    def inherit(self, parent: CodeMeta | None) -> CodeMeta:
        if parent is not None:
            parent.children.append(self)
        return self

    def __str__(self) -> str:
        return self.code_string

    def __repr__(self) -> str:
        return f"CodeMeta({self.code_string!r})"
