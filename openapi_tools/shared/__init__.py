"""Shared utilities for the OpenAPI code generators."""

from .schema_loader import (
    DocumentCache,
    fetch_document,
    is_url,
    load_document,
)
from .naming import (
    capitalize,
    escape_control_characters,
    normalize_string,
    path_param_to_variable_name,
    path_to_variable_name,
    replace_hyphenated_path,
    wrap_with_quotes_if_needed,
)
from .errors import (
    ConfigurationError,
    GroupStrategyError,
    MissingContextError,
    SchemaError,
    SchemaNotFoundError,
    UnsupportedMediaTypeError,
    UnsupportedSchemaTypeError,
)

__all__ = [
    # Document loading
    "DocumentCache",
    "fetch_document",
    "is_url",
    "load_document",
    # Naming utilities
    "capitalize",
    "escape_control_characters",
    "normalize_string",
    "path_param_to_variable_name",
    "path_to_variable_name",
    "replace_hyphenated_path",
    "wrap_with_quotes_if_needed",
    # Errors
    "ConfigurationError",
    "GroupStrategyError",
    "MissingContextError",
    "SchemaError",
    "SchemaNotFoundError",
    "UnsupportedMediaTypeError",
    "UnsupportedSchemaTypeError",
]
