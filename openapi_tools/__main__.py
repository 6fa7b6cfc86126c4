#!/usr/bin/env python3
"""
Generate a zodios client (zod schemas + TypeScript types) from an OpenAPI document.

Usage:
    python -m openapi_tools <document> [options]

Examples:
    python -m openapi_tools openapi.yaml -o src/api.ts
    python -m openapi_tools https://example.com/openapi.json -o src/api.ts --with-alias
    python -m openapi_tools openapi.yaml -o src/api --group-strategy tag-file
    python -m openapi_tools openapi.yaml --config codegen.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from openapi_tools.shared import (
    ConfigurationError,
    DocumentCache,
    SchemaError,
    fetch_document,
    is_url,
)
from openapi_tools.zod_codegen.options import DEFAULT_STATUS_BEHAVIORS, GROUP_STRATEGIES, TemplateContextOptions
from openapi_tools.zod_codegen.render import generate_zod_client, write_output


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openapi_tools",
        description=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("document", help="Path or URL of the OpenAPI document (JSON or YAML)")
    parser.add_argument("-o", "--output", type=Path, help="Output file (or directory for *-file group strategies)")
    parser.add_argument("--config", type=Path, help="YAML/JSON file with generation options")
    parser.add_argument("--base-url", dest="base_url", help="Base URL of the generated client")
    parser.add_argument("--api-client-name", dest="api_client_name", help="Name of the exported client")
    parser.add_argument("--with-alias", dest="with_alias", action="store_true", default=None,
                        help="Emit operation aliases")
    parser.add_argument("--export-schemas", dest="should_export_all_schemas", action="store_true", default=None,
                        help="Emit every component schema, even unused ones")
    parser.add_argument("--export-types", dest="should_export_all_types", action="store_true", default=None,
                        help="Emit a TypeScript type for every component schema")
    parser.add_argument("--implicit-required", dest="with_implicit_required_props", action="store_true",
                        default=None, help="Treat properties as required when no `required` list is given")
    parser.add_argument("--with-deprecated", dest="with_deprecated_endpoints", action="store_true", default=None,
                        help="Keep deprecated operations")
    parser.add_argument("--group-strategy", dest="group_strategy", choices=GROUP_STRATEGIES,
                        help="How endpoints are grouped")
    parser.add_argument("--complexity-threshold", dest="complexity_threshold", type=int,
                        help="Hoist schemas scoring at least this much (-1 inlines everything)")
    parser.add_argument("--default-status", dest="default_status_behavior", choices=DEFAULT_STATUS_BEHAVIORS,
                        help="How `default` responses are handled")
    parser.add_argument("--main-response-status", dest="is_main_response_status",
                        help="Expression over `status` selecting the main response")
    parser.add_argument("--error-status", dest="is_error_status",
                        help="Expression over `status` selecting error responses")
    parser.add_argument("--media-type-expr", dest="is_media_type_allowed",
                        help="Expression over `mediaType` selecting response media types")
    parser.add_argument("--all-readonly", dest="all_readonly", action="store_true", default=None,
                        help="Make every object and array readonly")
    parser.add_argument("--no-default-values", dest="with_default_values", action="store_false", default=None,
                        help="Do not emit .default(...) chains")
    parser.add_argument("--with-description", dest="with_description", action="store_true", default=None,
                        help="Emit .describe(...) chains")
    parser.add_argument("--with-docs", dest="with_docs", action="store_true", default=None,
                        help="Emit JSDoc comments on type members")
    parser.add_argument("--strict-objects", dest="strict_objects", action="store_true", default=None,
                        help="Reject unknown object keys")
    parser.add_argument("--quiet", dest="will_suppress_warnings", action="store_true", default=None,
                        help="Do not log advisory warnings")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


OPTION_DESTS: tuple[str, ...] = (
    "base_url",
    "api_client_name",
    "with_alias",
    "should_export_all_schemas",
    "should_export_all_types",
    "with_implicit_required_props",
    "with_deprecated_endpoints",
    "group_strategy",
    "complexity_threshold",
    "default_status_behavior",
    "is_main_response_status",
    "is_error_status",
    "is_media_type_allowed",
    "all_readonly",
    "with_default_values",
    "with_description",
    "with_docs",
    "strict_objects",
    "will_suppress_warnings",
)


def resolve_options(args: argparse.Namespace, cache: DocumentCache | None = None) -> TemplateContextOptions:
    """Options from --config, overridden by explicit flags."""
    if cache is None:
        cache = DocumentCache()
    config: dict[str, Any] = cache.get(args.config) if args.config else {}
    options = TemplateContextOptions.from_mapping(config)
    return options.merged(**{dest: getattr(args, dest) for dest in OPTION_DESTS})


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cache = DocumentCache()
    try:
        options = resolve_options(args, cache)
        document = fetch_document(args.document) if is_url(args.document) else cache.get(Path(args.document))
        output = generate_zod_client(document, options)
    except (SchemaError, ConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output is None:
        if isinstance(output, dict):
            print("Error: --output is required for the *-file group strategies", file=sys.stderr)
            return 1
        sys.stdout.write(output)
        return 0

    for path in write_output(output, args.output):
        print(f"Generated {args.document} -> {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
