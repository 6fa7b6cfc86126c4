"""Generation options and their loading from configuration mappings."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Final, Mapping, Optional, Union

from openapi_tools.shared.errors import ConfigurationError, GroupStrategyError

from .predicates import Predicate

GROUP_STRATEGIES: Final[tuple[str, ...]] = ("none", "tag", "method", "tag-file", "method-file")
DEFAULT_STATUS_BEHAVIORS: Final[tuple[str, ...]] = ("spec-compliant", "auto-correct")

_CAMEL_BOUNDARY_RE: Final[re.Pattern[str]] = re.compile(r"(?<!^)(?=[A-Z])")

AliasFactory = Callable[[str, str, dict[str, Any]], str]
PredicateOption = Optional[Union[Predicate, str, Callable[[Any], bool]]]


def to_snake_case(key: str) -> str:
    """Convert a camelCase option key to its attribute name.

    Examples:
        >>> to_snake_case("complexityThreshold")
        'complexity_threshold'
        >>> to_snake_case("with_docs")
        'with_docs'
    """
    return _CAMEL_BOUNDARY_RE.sub("_", key).lower()


@dataclass(frozen=True, slots=True)
class TemplateContextOptions:
    """Everything that tunes one generation run."""

    base_url: str = ""
    with_alias: bool | AliasFactory = False
    api_client_name: str = "api"
    is_main_response_status: PredicateOption = None
    is_error_status: PredicateOption = None
    is_media_type_allowed: PredicateOption = None
    use_main_response_description_as_endpoint_definition_fallback: bool = False
    should_export_all_schemas: bool = False
    should_export_all_types: bool = False
    with_implicit_required_props: bool = False
    with_deprecated_endpoints: bool = False
    group_strategy: str = "none"
    complexity_threshold: int = 4
    default_status_behavior: str = "spec-compliant"
    all_readonly: bool = False
    with_default_values: bool = True
    with_description: bool = False
    with_docs: bool = False
    strict_objects: bool = False
    will_suppress_warnings: bool = False

    def __post_init__(self) -> None:
        if self.default_status_behavior not in DEFAULT_STATUS_BEHAVIORS:
            raise ConfigurationError(
                f"Unknown default status behavior '{self.default_status_behavior}'"
                f" (expected one of: {', '.join(DEFAULT_STATUS_BEHAVIORS)})"
            )
        if isinstance(self.complexity_threshold, bool) or not isinstance(self.complexity_threshold, int):
            raise ConfigurationError(
                f"complexityThreshold must be an integer, got {self.complexity_threshold!r}"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> TemplateContextOptions:
        """Build options from a config mapping with camelCase or snake_case keys.

        Raises:
            ConfigurationError: On an unknown key or an invalid value.
        """
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in (data or {}).items():
            name = to_snake_case(key)
            if name not in known:
                raise ConfigurationError(f"Unknown option '{key}'")
            values[name] = value
        return cls(**values)

    def merged(self, **overrides: Any) -> TemplateContextOptions:
        """Return a copy with the non-None overrides applied."""
        return replace(self, **{key: value for key, value in overrides.items() if value is not None})

    def checked_group_strategy(self) -> str:
        """Return the group strategy, raising `GroupStrategyError` when unknown."""
        if self.group_strategy not in GROUP_STRATEGIES:
            raise GroupStrategyError(self.group_strategy)
        return self.group_strategy

    def to_template_options(self) -> dict[str, Any]:
        """The subset of options echoed into the template context."""
        return {
            "base_url": self.base_url,
            "with_alias": bool(self.with_alias),
            "api_client_name": self.api_client_name,
            "group_strategy": self.group_strategy,
            "complexity_threshold": self.complexity_threshold,
            "default_status_behavior": self.default_status_behavior,
            "all_readonly": self.all_readonly,
            "strict_objects": self.strict_objects,
            "should_export_all_types": self.should_export_all_types,
        }
