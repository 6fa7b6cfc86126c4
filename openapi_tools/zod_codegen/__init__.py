"""Compile OpenAPI documents into zod validators and TypeScript types."""

from .code_meta import CodeMeta, CodeMetaData, ConversionContext
from .complexity import get_schema_complexity
from .endpoints import (
    EndpointDefinition,
    EndpointDefinitionListResult,
    EndpointError,
    EndpointParameter,
    get_endpoint_definition_list,
)
from .graph import DependencyGraph, get_openapi_dependency_graph
from .options import TemplateContextOptions
from .predicates import Predicate, evaluate_expression
from .render import GeneratorContext, generate_zod_client
from .resolver import RefInfo, SchemaResolver
from .template_context import TemplateContext, get_template_context
from .topological_sort import topological_sort
from .typescript import TsConversionContext, TypescriptCompiler, get_typescript_from_openapi
from .zod import ZodCompiler, get_zod_chain, get_zod_schema

__all__ = [
    # Resolution and graphs
    "DependencyGraph",
    "RefInfo",
    "SchemaResolver",
    "get_openapi_dependency_graph",
    "topological_sort",
    # Compilers
    "CodeMeta",
    "CodeMetaData",
    "ConversionContext",
    "TsConversionContext",
    "TypescriptCompiler",
    "ZodCompiler",
    "get_schema_complexity",
    "get_typescript_from_openapi",
    "get_zod_chain",
    "get_zod_schema",
    # Endpoints and context
    "EndpointDefinition",
    "EndpointDefinitionListResult",
    "EndpointError",
    "EndpointParameter",
    "Predicate",
    "TemplateContext",
    "TemplateContextOptions",
    "evaluate_expression",
    "get_endpoint_definition_list",
    "get_template_context",
    # Rendering
    "GeneratorContext",
    "generate_zod_client",
]
