"""Naming utilities for code generation."""

from __future__ import annotations

import re
import unicodedata
from functools import lru_cache

_WHITESPACE_RE = re.compile(r"\s+")
_HYPHENS_RE = re.compile(r"-+")
_NON_WORD_RE = re.compile(r"[^\w\-]+", re.ASCII)
_WORD_RE = re.compile(r"^\w+$", re.ASCII)
_KEBAB_RE = re.compile(r"-(\w)", re.ASCII)
_PATH_PARAM_BRACKETS_RE = re.compile(r"\{(\w+)\}", re.ASCII)
_HYPHENATED_PATH_PARAM_RE = re.compile(r"\{(\b\w+(?:-\w+)*\b)\}", re.ASCII)
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f\ufffe\uffff]")


@lru_cache(maxsize=1024)
def normalize_string(text: str) -> str:
    """Turn an arbitrary schema or operation name into a safe identifier.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> normalize_string("Pet-Info")
        'Pet_Info'
        >>> normalize_string("1Pet")
        '_1Pet'
        >>> normalize_string("Something.jsonld")
        'Something_jsonld'
    """
    if text[:1].isdigit():
        text = "_" + text
    value = unicodedata.normalize("NFKD", text).strip()
    value = _WHITESPACE_RE.sub("_", value)
    value = _HYPHENS_RE.sub("_", value)
    return _NON_WORD_RE.sub("_", value)


def wrap_with_quotes_if_needed(value: str) -> str:
    """Quote an object key unless it is already a plain identifier."""
    if _WORD_RE.match(value):
        return value
    return f'"{value}"'


def capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


@lru_cache(maxsize=512)
def path_to_variable_name(path: str) -> str:
    """Turn a path template into a PascalCase identifier.

    Examples:
        >>> path_to_variable_name("/media-objects/{id}")
        'MediaObjectsId'
        >>> path_to_variable_name("/robots.txt")
        'Robots_txt'
    """
    value = capitalize(_KEBAB_RE.sub(lambda m: m.group(1).upper(), path).replace("/", ""))
    value = _PATH_PARAM_BRACKETS_RE.sub(lambda m: capitalize(m.group(1)), value)
    return _NON_WORD_RE.sub("_", value)


@lru_cache(maxsize=512)
def path_param_to_variable_name(name: str) -> str:
    """Camel-case a hyphenated path parameter name, keeping underscores.

    Examples:
        >>> path_param_to_variable_name("pet-id")
        'petId'
        >>> path_param_to_variable_name("owner_id")
        'owner_id'
    """
    value = re.sub(r"-([a-z])", lambda m: m.group(1).upper(), name)
    return value.replace("-", "_")


@lru_cache(maxsize=512)
def replace_hyphenated_path(path: str) -> str:
    """Convert `{param}` path templates to the `:param` form.

    Examples:
        >>> replace_hyphenated_path("/pet/{petId}")
        '/pet/:petId'
        >>> replace_hyphenated_path("/owners/{owner-id}/pets")
        '/owners/:ownerId/pets'
    """
    return _HYPHENATED_PATH_PARAM_RE.sub(lambda m: ":" + path_param_to_variable_name(m.group(1)), path)


def escape_control_characters(value: str) -> str:
    """Escape control characters so a pattern survives inside a JS regex literal."""
    value = value.replace("\t", "\\t").replace("\n", "\\n").replace("\r", "\\r")
    return _CONTROL_CHARS_RE.sub(lambda m: f"\\u{ord(m.group(0)):04x}", value)
