"""OpenAPI to zod/TypeScript client code generation."""

__version__ = "0.1.0"
