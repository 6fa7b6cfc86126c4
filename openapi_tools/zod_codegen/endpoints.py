"""Extract one endpoint definition per OpenAPI operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Final

from openapi_tools.shared.errors import UnsupportedMediaTypeError
from openapi_tools.shared.naming import (
    path_param_to_variable_name,
    path_to_variable_name,
    replace_hyphenated_path,
)

from .code_meta import CodeMetaData, ConversionContext
from .graph import DependencyGraph, get_openapi_dependency_graph
from .options import TemplateContextOptions
from .predicates import Predicate, is_json_media_type, is_not_success_status, is_success_status
from .resolver import SchemaResolver, as_component_schema, is_reference
from .zod import ZodCompiler, get_zod_chain

logger = logging.getLogger(__name__)

VOID_SCHEMA: Final[str] = "z.void()"

HTTP_METHODS: Final[frozenset[str]] = frozenset({
    "get", "put", "post", "delete", "options", "head", "patch", "trace"
})

PARAMETER_TYPES: Final[dict[str, str]] = {
    "path": "Path",
    "query": "Query",
    "header": "Header",
}

ALLOWED_PARAM_MEDIA_TYPES: Final[frozenset[str]] = frozenset({
    "application/octet-stream",
    "multipart/form-data",
    "application/x-www-form-urlencoded",
    "*/*",
})

REQUEST_FORMATS: Final[dict[str, str]] = {
    "application/octet-stream": "binary",
    "application/x-www-form-urlencoded": "form-url",
    "multipart/form-data": "form-data",
}


def is_allowed_param_media_type(media_type: str) -> bool:
    return (
        ("application/" in media_type and "json" in media_type)
        or media_type in ALLOWED_PARAM_MEDIA_TYPES
        or "text/" in media_type
    )


def get_request_format(media_type: str) -> str:
    if media_type in REQUEST_FORMATS:
        return REQUEST_FORMATS[media_type]
    return "json" if "json" in media_type else "text"


@dataclass(frozen=True, slots=True)
class EndpointParameter:
    name: str
    type: str
    schema: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class EndpointError:
    status: int | str
    schema: str
    description: str | None = None


@dataclass(frozen=True, slots=True)
class EndpointDefinition:
    """A compiled operation, ready for the client template."""

    method: str
    path: str
    alias: str
    response: str
    description: str | None = None
    request_format: str = "json"
    parameters: tuple[EndpointParameter, ...] = ()
    errors: tuple[EndpointError, ...] = ()
    tags: tuple[str, ...] = ()


@dataclass(slots=True)
class EndpointIssues:
    """Operations whose `default` response was dropped under spec-compliant behavior."""

    ignored_fallback_response: list[str] = field(default_factory=list)
    ignored_generic_error: list[str] = field(default_factory=list)


@dataclass(slots=True)
class EndpointDefinitionListResult:
    ctx: ConversionContext
    graph: DependencyGraph
    endpoints: list[EndpointDefinition]
    issues: EndpointIssues

    @property
    def resolver(self) -> SchemaResolver:
        return self.ctx.resolver

    @property
    def zod_schema_by_name(self) -> dict[str, str]:
        return self.ctx.zod_schema_by_name


class EndpointExtractor:
    """Walks `paths` and compiles every kept operation."""

    def __init__(self, document: dict[str, Any], options: TemplateContextOptions | None = None) -> None:
        self.document = document
        self.options = options or TemplateContextOptions()
        self.ctx = ConversionContext(resolver=SchemaResolver(document))
        self.compiler = ZodCompiler(self.ctx, self.options)
        self.issues = EndpointIssues()

        self.is_main_response_status = Predicate.from_option(
            self.options.is_main_response_status, "status", is_success_status
        )
        self.is_error_status = Predicate.from_option(
            self.options.is_error_status, "status", is_not_success_status
        )
        self.is_media_type_allowed = Predicate.from_option(
            self.options.is_media_type_allowed, "mediaType", is_json_media_type
        )

    def _deref(self, node: Any) -> Any:
        if is_reference(node):
            return self.ctx.resolver.get_schema_by_ref(node["$ref"])
        return node

    def get_alias(self, path: str, method: str, operation: dict[str, Any]) -> str:
        if callable(self.options.with_alias):
            return self.options.with_alias(path, method, operation)
        return operation.get("operationId") or method + path_to_variable_name(path)

    def _merged_parameters(self, path_item: dict[str, Any], operation: dict[str, Any]) -> list[dict[str, Any]]:
        merged: dict[tuple[str, str], dict[str, Any]] = {}
        for param in [*(path_item.get("parameters") or []), *(operation.get("parameters") or [])]:
            actual = self._deref(param)
            merged[(actual.get("in", ""), actual.get("name", ""))] = actual
        return list(merged.values())

    def _body_parameter(self, operation: dict[str, Any], alias: str) -> tuple[EndpointParameter, str] | None:
        request_body = self._deref(operation.get("requestBody"))
        if not isinstance(request_body, dict):
            return None

        content = request_body.get("content") or {}
        media_type = next((mt for mt in content if is_allowed_param_media_type(mt)), None)
        body_schema = (content.get(media_type) or {}).get("schema") if media_type else None
        if not body_schema:
            return None

        code = self.compiler.compile(body_schema, CodeMetaData(is_required=request_body.get("required", True)))
        schema = self.compiler.hoist(code, f"{alias}_Body") + get_zod_chain(
            self._deref(body_schema), code.meta, self.options
        )
        parameter = EndpointParameter(
            name="body",
            type="Body",
            schema=schema,
            description=request_body.get("description"),
        )
        return parameter, get_request_format(media_type)

    def _parameter(self, param: dict[str, Any]) -> EndpointParameter:
        name = param.get("name", "")
        location = param.get("in")

        if param.get("content"):
            media_types = list(param["content"])
            media_type = next((mt for mt in media_types if is_allowed_param_media_type(mt)), None)
            if media_type is None:
                raise UnsupportedMediaTypeError(name, media_types)
            media_object = param["content"][media_type] or {}
            # a $ref placed on the media type object instead of its schema
            param_schema = media_object.get("schema", media_object)
        else:
            param_schema = param.get("schema")

        param_schema = self._deref(param_schema) if param_schema else {}
        if self.options.with_description and isinstance(param_schema, dict):
            param_schema = {**param_schema, "description": (param.get("description") or "").replace("\n", "")}

        meta = CodeMetaData(is_required=True if location == "path" else bool(param.get("required", False)))
        code = self.compiler.compile(param_schema, meta)
        code.assign(str(code) + get_zod_chain(param_schema, code.meta, self.options))

        return EndpointParameter(
            name=path_param_to_variable_name(name) if location == "path" else name,
            type=PARAMETER_TYPES[location],
            schema=self.compiler.hoist(code, name),
            description=param.get("description"),
        )

    def _response_schema(self, response: dict[str, Any]) -> str:
        content = response.get("content") or {}
        media_type = next((mt for mt in content if self.is_media_type_allowed(mt)), None)
        if media_type is None:
            return VOID_SCHEMA

        maybe_schema = (content.get(media_type) or {}).get("schema")
        if not maybe_schema:
            return VOID_SCHEMA

        code = self.compiler.compile(maybe_schema, CodeMetaData(is_required=True))
        base = self.compiler.hoist(code) if code.ref else str(code)
        return base + get_zod_chain(self._deref(maybe_schema), code.meta, self.options)

    def extract_operation(
        self,
        path: str,
        method: str,
        path_item: dict[str, Any],
        operation: dict[str, Any],
    ) -> EndpointDefinition:
        alias = self.get_alias(path, method, operation)
        description = operation.get("description")
        request_format = "json"
        parameters: list[EndpointParameter] = []
        errors: list[EndpointError] = []
        response: str | None = None

        body = self._body_parameter(operation, alias)
        if body is not None:
            body_parameter, request_format = body
            parameters.append(body_parameter)

        for param in self._merged_parameters(path_item, operation):
            if param.get("in") in PARAMETER_TYPES:
                parameters.append(self._parameter(param))

        responses = operation.get("responses") or {}
        for status_code, response_item in responses.items():
            if str(status_code) == "default":
                continue
            try:
                status = int(status_code)
            except ValueError:
                logger.debug("Skipping non-numeric status %r on %s", status_code, alias)
                continue

            response_item = self._deref(response_item) or {}
            schema = self._response_schema(response_item)
            if self.is_main_response_status(status) and response is None:
                response = schema
                if (
                    not description
                    and response_item.get("description")
                    and self.options.use_main_response_description_as_endpoint_definition_fallback
                ):
                    description = response_item["description"]
            elif self.is_error_status(status):
                errors.append(
                    EndpointError(status=status, schema=schema, description=response_item.get("description"))
                )

        if "default" in responses:
            default_item = self._deref(responses["default"]) or {}
            schema = self._response_schema(default_item)
            if self.options.default_status_behavior == "auto-correct":
                if response is None:
                    response = schema
                else:
                    errors.append(
                        EndpointError(status="default", schema=schema, description=default_item.get("description"))
                    )
            elif response is None:
                self.issues.ignored_generic_error.append(alias)
            else:
                self.issues.ignored_fallback_response.append(alias)

        return EndpointDefinition(
            method=method,
            path=replace_hyphenated_path(path),
            alias=alias,
            response=response or VOID_SCHEMA,
            description=description,
            request_format=request_format,
            parameters=tuple(parameters),
            errors=tuple(errors),
            tags=tuple(operation.get("tags") or ()),
        )

    def extract(self) -> list[EndpointDefinition]:
        endpoints: list[EndpointDefinition] = []
        for path, path_item in (self.document.get("paths") or {}).items():
            path_item = self._deref(path_item) or {}
            for method, operation in path_item.items():
                if method not in HTTP_METHODS or not isinstance(operation, dict):
                    continue
                if operation.get("deprecated") and not self.options.with_deprecated_endpoints:
                    logger.debug("Skipping deprecated operation %s %s", method.upper(), path)
                    continue
                endpoints.append(self.extract_operation(path, method, path_item, operation))
        return endpoints

    def log_issues(self) -> None:
        if self.options.will_suppress_warnings:
            return
        if self.issues.ignored_fallback_response:
            logger.warning(
                "The following endpoints have a `default` response next to their main response; it was ignored "
                "as the OpenAPI spec recommends, but could be added as an error response by setting "
                "`default_status_behavior` to `auto-correct`: %s",
                ", ".join(self.issues.ignored_fallback_response),
            )
        if self.issues.ignored_generic_error:
            logger.warning(
                "The following endpoints have no status code other than `default`; it was ignored as the "
                "OpenAPI spec recommends, but could be used as their response by setting "
                "`default_status_behavior` to `auto-correct`: %s",
                ", ".join(self.issues.ignored_generic_error),
            )


def get_endpoint_definition_list(
    document: dict[str, Any],
    options: TemplateContextOptions | None = None,
) -> EndpointDefinitionListResult:
    """Compile every operation of `document` into endpoint definitions.

    Raises:
        SchemaNotFoundError: If a `$ref` cannot be resolved.
        UnsupportedMediaTypeError: If a parameter `content` map has no
            allowed media type.
    """
    extractor = EndpointExtractor(document, options)
    schema_names = (document.get("components") or {}).get("schemas") or {}
    graph = get_openapi_dependency_graph(
        [as_component_schema(name) for name in schema_names],
        extractor.ctx.resolver.get_schema_by_ref,
    )

    endpoints = extractor.extract()
    extractor.log_issues()
    return EndpointDefinitionListResult(
        ctx=extractor.ctx,
        graph=graph,
        endpoints=endpoints,
        issues=extractor.issues,
    )
