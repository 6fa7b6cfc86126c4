"""Custom exceptions for the OpenAPI code generators."""

from __future__ import annotations

from typing import Sequence


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaNotFoundError(SchemaError):
    """Raised when a $ref pointer does not resolve inside the document."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__("Referenced schema could not be resolved", ref)


class UnsupportedMediaTypeError(SchemaError):
    """Raised when a parameter `content` map offers no allowed media type."""

    def __init__(
        self,
        param_name: str,
        media_types: Sequence[str],
        schema_path: str | None = None,
    ) -> None:
        self.param_name = param_name
        self.media_types = list(media_types)
        super().__init__(
            f"Unsupported media type for param {param_name}: {', '.join(self.media_types)}",
            schema_path,
        )


class UnsupportedSchemaTypeError(SchemaError):
    """Raised when a schema declares a `type` outside the OpenAPI dialect."""

    def __init__(self, type_name: str, schema_path: str | None = None) -> None:
        self.type_name = type_name
        super().__init__(f"Unsupported schema type: {type_name}", schema_path)


class ConfigurationError(ValueError):
    """Raised for invalid generator options."""


class GroupStrategyError(ConfigurationError):
    """Raised when an unknown `group_strategy` is consumed."""

    def __init__(self, strategy: str) -> None:
        self.strategy = strategy
        super().__init__(f"Unknown group strategy '{strategy}'")


class MissingContextError(RuntimeError):
    """Raised when a $ref is compiled without the conversion context it needs."""
