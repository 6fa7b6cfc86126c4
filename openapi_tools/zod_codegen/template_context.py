"""Assemble everything the client templates need for one document."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Final, Iterable

from openapi_tools.shared.naming import normalize_string

from .code_meta import ConversionContext
from .endpoints import (
    EndpointDefinition,
    EndpointDefinitionListResult,
    EndpointIssues,
    get_endpoint_definition_list,
)
from .graph import DependencyGraph
from .options import TemplateContextOptions
from .resolver import as_component_schema
from .topological_sort import topological_sort
from .typescript import TsConversionContext, get_typescript_from_openapi
from .zod import ZodCompiler

logger = logging.getLogger(__name__)

DEFAULT_GROUP_NAME: Final[str] = "Default"
COMMON_GROUP_NAME: Final[str] = "common"

_IDENTIFIER_RE: Final[re.Pattern[str]] = re.compile(r"(?<![\w$.])[A-Za-z_$][\w$]*")


@dataclass(slots=True)
class EndpointGroup:
    """Endpoints sharing a tag or method, with the declarations they need."""

    endpoints: list[EndpointDefinition] = field(default_factory=list)
    schemas: dict[str, str] = field(default_factory=dict)
    types: dict[str, str] = field(default_factory=dict)
    imports: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class TemplateContext:
    """Name -> expression and name -> type maps plus ordered endpoints."""

    schemas: dict[str, str] = field(default_factory=dict)
    types: dict[str, str] = field(default_factory=dict)
    circular_type_by_name: set[str] = field(default_factory=set)
    endpoints: list[EndpointDefinition] = field(default_factory=list)
    endpoints_groups: dict[str, EndpointGroup] = field(default_factory=dict)
    common_schema_names: list[str] = field(default_factory=list)
    issues: EndpointIssues = field(default_factory=EndpointIssues)
    options: dict[str, Any] = field(default_factory=dict)


def _sorted_by(names: Iterable[str], order: list[str]) -> list[str]:
    rank = {name: index for index, name in enumerate(order)}
    return sorted(names, key=lambda name: rank.get(name, len(rank)))


class TemplateContextBuilder:
    """Orchestrates the compilers over a whole document."""

    def __init__(self, document: dict[str, Any], options: TemplateContextOptions | None = None) -> None:
        self.document = document
        self.options = options or TemplateContextOptions()
        self.group_strategy = self.options.checked_group_strategy()
        self.data = TemplateContext(options=self.options.to_template_options())

        self.result: EndpointDefinitionListResult = get_endpoint_definition_list(document, self.options)
        self.schema_names: list[str] = list(((document.get("components") or {}).get("schemas") or {}))
        self.order: list[str] = []

    @property
    def ctx(self) -> ConversionContext:
        return self.result.ctx

    @property
    def graph(self) -> DependencyGraph:
        return self.result.graph

    def _name_of(self, ref: str) -> str:
        return self.result.resolver.resolve_ref(ref).normalized

    def _is_circular_name(self, name: str) -> bool:
        info = self.result.resolver.resolve_schema_name(name)
        return info is not None and self.graph.is_circular(info.ref)

    def export_all_schemas(self) -> None:
        compiler = ZodCompiler(self.ctx, self.options)
        for name in self.schema_names:
            compiler.compile({"$ref": as_component_schema(name)})

    def collect_schemas(self) -> None:
        for name, code in self.result.zod_schema_by_name.items():
            if self._is_circular_name(name):
                self.data.circular_type_by_name.add(name)
                self.data.schemas[name] = f"z.lazy(() => {code})"
            else:
                self.data.schemas[name] = code

    def _add_type(self, ref: str, ts_ctx: TsConversionContext, *, as_root: bool) -> None:
        name = self._name_of(ref)
        if name in self.data.types:
            return
        self.data.types[name] = get_typescript_from_openapi(
            self.result.resolver.get_schema_by_ref(ref),
            ts_ctx,
            name=name,
            ref=ref if as_root else None,
            options=self.options,
        )

    def collect_types(self) -> None:
        for ref, deps in self.graph.deep.items():
            if not self.graph.is_circular(ref) or self._name_of(ref) in self.data.types:
                continue
            ts_ctx = TsConversionContext(resolver=self.result.resolver)
            self._add_type(ref, ts_ctx, as_root=True)
            for dep in deps:
                if not self.graph.is_circular(dep):
                    self._add_type(dep, ts_ctx, as_root=False)

        if self.options.should_export_all_types:
            for name in self.schema_names:
                ref = as_component_schema(name)
                self._add_type(ref, TsConversionContext(resolver=self.result.resolver), as_root=True)

    def sort_declarations(self) -> None:
        component_refs = [as_component_schema(name) for name in self.schema_names]
        direct = {ref: self.graph.direct.get(ref, []) for ref in component_refs}
        self.order = [self._name_of(ref) for ref in topological_sort(direct)]

        self.data.schemas = {name: self.data.schemas[name] for name in _sorted_by(self.data.schemas, self.order)}
        self.data.types = {name: self.data.types[name] for name in _sorted_by(self.data.types, self.order)}

    def _referenced_names(self, expression: str) -> list[str]:
        names: list[str] = []
        for match in _IDENTIFIER_RE.finditer(expression):
            name = match.group(0)
            if name in self.data.schemas and name not in names:
                names.append(name)
        return names

    def _with_dependencies(self, names: list[str]) -> list[str]:
        """Close a list of declaration names over what their expressions use."""
        closed: list[str] = []
        pending = list(names)
        while pending:
            name = pending.pop(0)
            if name in closed:
                continue
            closed.append(name)

            info = self.result.resolver.resolve_schema_name(name)
            if info is not None and info.ref in self.graph.deep:
                pending.extend(self._name_of(dep) for dep in self.graph.deep[info.ref])
            else:
                pending.extend(self._referenced_names(self.result.zod_schema_by_name.get(name, "")))
        return [name for name in closed if name in self.data.schemas]

    def _group_name(self, endpoint: EndpointDefinition) -> str:
        if self.group_strategy in ("tag", "tag-file"):
            base = endpoint.tags[0] if endpoint.tags else DEFAULT_GROUP_NAME
        else:
            base = endpoint.method
        return normalize_string(base)

    def group_endpoints(self) -> None:
        self.data.endpoints = sorted(self.result.endpoints, key=lambda endpoint: endpoint.path)
        if self.group_strategy == "none":
            return

        dependencies_by_group: dict[str, list[str]] = {}
        for endpoint in self.result.endpoints:
            group_name = self._group_name(endpoint)
            group = self.data.endpoints_groups.setdefault(group_name, EndpointGroup())
            group.endpoints.append(endpoint)

            expressions = [endpoint.response]
            expressions.extend(param.schema for param in endpoint.parameters)
            expressions.extend(error.schema for error in endpoint.errors)
            dependencies = dependencies_by_group.setdefault(group_name, [])
            for expression in expressions:
                for name in self._referenced_names(expression):
                    if name not in dependencies:
                        dependencies.append(name)

        for group_name, group in self.data.endpoints_groups.items():
            names = _sorted_by(self._with_dependencies(dependencies_by_group[group_name]), self.order)
            dependencies_by_group[group_name] = names
            group.schemas = {name: self.data.schemas[name] for name in names}
            group.types = {name: self.data.types[name] for name in names if name in self.data.types}

        if self.group_strategy.endswith("-file"):
            self._split_common(dependencies_by_group)

    def _split_common(self, dependencies_by_group: dict[str, list[str]]) -> None:
        usage: dict[str, int] = {}
        for names in dependencies_by_group.values():
            for name in names:
                usage[name] = usage.get(name, 0) + 1

        common: set[str] = set()
        for group in self.data.endpoints_groups.values():
            group_schemas: dict[str, str] = {}
            group_types: dict[str, str] = {}
            for name, schema in group.schemas.items():
                if usage.get(name, 0) > 1:
                    group.imports[name] = COMMON_GROUP_NAME
                    common.add(name)
                    continue
                group_schemas[name] = schema
                if name in group.types:
                    group_types[name] = group.types[name]
            group.schemas = group_schemas
            group.types = group_types

        self.data.common_schema_names = _sorted_by(common, self.order)
        logger.debug("Shared schemas across groups: %s", ", ".join(self.data.common_schema_names))

    def build(self) -> TemplateContext:
        if self.options.should_export_all_schemas:
            self.export_all_schemas()
        self.collect_schemas()
        self.collect_types()
        self.sort_declarations()
        self.group_endpoints()
        self.data.issues = self.result.issues
        return self.data


def get_template_context(
    document: dict[str, Any],
    options: TemplateContextOptions | None = None,
) -> TemplateContext:
    """Compile `document` into the data bag consumed by the templates.

    Raises:
        GroupStrategyError: If `options.group_strategy` is unknown.
        SchemaNotFoundError: If a `$ref` cannot be resolved.
    """
    return TemplateContextBuilder(document, options).build()
