"""Render a template context into zodios client source files."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from jinja2 import Environment, FileSystemLoader, Template

from openapi_tools.shared.errors import GroupStrategyError

from .options import TemplateContextOptions
from .template_context import COMMON_GROUP_NAME, TemplateContext, get_template_context

logger = logging.getLogger(__name__)

TEMPLATES_DIR: Final[Path] = Path(__file__).parent / "templates"

TEMPLATE_BY_STRATEGY: Final[dict[str, str]] = {
    "none": "default.ts.jinja",
    "tag": "grouped.ts.jinja",
    "method": "grouped.ts.jinja",
    "tag-file": "default.ts.jinja",
    "method-file": "default.ts.jinja",
}

INDEX_KEY: Final[str] = "__index"
COMMON_KEY: Final[str] = "__common"


def js_template(value: str) -> str:
    """Escape text for a JavaScript template literal."""
    return str(value).replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def js_string(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def js_status(value: int | str) -> str:
    return str(value) if isinstance(value, int) else js_string(value)


@dataclass
class GeneratorContext:
    """Jinja environment with every client template pre-compiled."""
    template_env: Environment = field(init=False)
    _templates: dict[str, Template] = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            auto_reload=False,
            keep_trailing_newline=True,
        )
        self.template_env.filters["js_template"] = js_template
        self.template_env.filters["js_string"] = js_string
        self.template_env.filters["js_status"] = js_status
        self._templates = {
            name: self.template_env.get_template(name)
            for name in (
                "default.ts.jinja",
                "grouped.ts.jinja",
                "grouped_index.ts.jinja",
                "grouped_common.ts.jinja",
            )
        }

    def template(self, name: str) -> Template:
        return self._templates[name]

    def template_for(self, group_strategy: str) -> Template:
        name = TEMPLATE_BY_STRATEGY.get(group_strategy)
        if name is None:
            raise GroupStrategyError(group_strategy)
        return self._templates[name]


def _typed_names(data: TemplateContext) -> set[str]:
    if data.options.get("should_export_all_types"):
        return set(data.circular_type_by_name) | set(data.types)
    return set(data.circular_type_by_name)


def render_client(generator: GeneratorContext, data: TemplateContext) -> str | dict[str, str]:
    """Render `data` to one source text, or to one text per group file."""
    strategy = data.options.get("group_strategy", "none")
    template = generator.template_for(strategy)
    typed_names = _typed_names(data)

    if not strategy.endswith("-file"):
        return template.render(
            schemas=data.schemas,
            types=data.types,
            typed_names=typed_names,
            endpoints=data.endpoints,
            groups=data.endpoints_groups,
            imports=[],
            api_name=data.options.get("api_client_name", "api"),
            options=data.options,
        )

    files: dict[str, str] = {}
    for group_name, group in data.endpoints_groups.items():
        files[group_name] = template.render(
            schemas=group.schemas,
            types=group.types,
            typed_names=typed_names,
            endpoints=group.endpoints,
            imports=sorted(group.imports),
            api_name=f"{group_name}Api",
            options=data.options,
        )

    files[INDEX_KEY] = generator.template("grouped_index.ts.jinja").render(groups=data.endpoints_groups)
    if data.common_schema_names:
        files[COMMON_KEY] = generator.template("grouped_common.ts.jinja").render(
            schemas={name: data.schemas[name] for name in data.common_schema_names},
            types={name: data.types[name] for name in data.common_schema_names if name in data.types},
            typed_names=typed_names,
        )
    return files


def _file_name(key: str) -> str:
    if key == INDEX_KEY:
        return "index.ts"
    if key == COMMON_KEY:
        return f"{COMMON_GROUP_NAME}.ts"
    return f"{key}.ts"


def write_output(output: str | dict[str, str], out_path: Path) -> list[Path]:
    """Write rendered output; a file map goes into `out_path` as a directory."""
    if isinstance(output, str):
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(output, encoding="utf-8")
        return [out_path]

    out_path.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for key, text in output.items():
        target = out_path / _file_name(key)
        target.write_text(text, encoding="utf-8")
        written.append(target)
    return written


def generate_zod_client(
    document: dict[str, Any],
    options: TemplateContextOptions | None = None,
    out_path: str | Path | None = None,
    generator: GeneratorContext | None = None,
) -> str | dict[str, str]:
    """Generate the zodios client for an OpenAPI document.

    Returns the source text, or a `{file stem: text}` map for the file-split
    group strategies (with `__index` and `__common` entries). The output is
    also written when `out_path` is given.
    """
    options = options or TemplateContextOptions()
    data = get_template_context(document, options)
    output = render_client(generator or GeneratorContext(), data)

    if out_path is not None:
        for path in write_output(output, Path(out_path)):
            logger.info("Wrote %s", path)
    return output
