"""OpenAPI document loading utilities with caching support."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests
import yaml
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import SchemaError

YAML_SUFFIXES = frozenset({".yaml", ".yml"})


@dataclass(frozen=True, slots=True)
class CacheKey:
    """Immutable cache key for document files."""

    path: Path
    mtime: float
    size: int

    @classmethod
    def from_path(cls, path: Path) -> CacheKey:
        """Create a cache key from a file path."""
        stat = path.stat()
        return cls(
            path=path.resolve(),
            mtime=stat.st_mtime,
            size=stat.st_size,
        )


@dataclass
class CachedDocument:
    """A cached document with metadata."""

    data: dict[str, Any]
    key: CacheKey
    content_hash: str


class DocumentCache:
    """Document cache with automatic invalidation.

    Caches parsed OpenAPI documents and automatically invalidates when
    the underlying file changes (based on mtime and size).
    """

    __slots__ = ("_cache", "_max_size")

    def __init__(self, max_size: int = 16) -> None:
        self._cache: dict[Path, CachedDocument] = {}
        self._max_size = max_size

    def get(self, path: Path) -> dict[str, Any]:
        """Get a document from cache, loading it if necessary.

        Raises:
            SchemaError: If the document is missing or invalid.
        """
        resolved = path.resolve()
        try:
            current_key = CacheKey.from_path(resolved)
        except OSError as e:
            raise SchemaError(f"Failed to read document: {e}", str(path)) from e

        cached = self._cache.get(resolved)
        if cached is not None and cached.key == current_key:
            return cached.data

        data = load_document(resolved)
        content_hash = hashlib.sha256(resolved.read_bytes()).hexdigest()[:16]

        if len(self._cache) >= self._max_size:
            oldest = next(iter(self._cache))
            del self._cache[oldest]

        self._cache[resolved] = CachedDocument(
            data=data,
            key=current_key,
            content_hash=content_hash,
        )
        return data

    def invalidate(self, path: Path | None = None) -> None:
        """Invalidate cached documents.

        Args:
            path: Specific path to invalidate, or None to clear all.
        """
        if path is None:
            self._cache.clear()
        else:
            self._cache.pop(path.resolve(), None)

    def __len__(self) -> int:
        return len(self._cache)


def _parse(raw: str, *, as_yaml: bool, source: str) -> dict[str, Any]:
    try:
        data = yaml.safe_load(raw) if as_yaml else json.loads(raw)
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML: {e}", source) from e
    except json.JSONDecodeError as e:
        raise SchemaError(f"Invalid JSON: {e}", source) from e

    if not isinstance(data, dict):
        raise SchemaError("Document root must be a mapping", source)
    return data


def load_document(path: Path) -> dict[str, Any]:
    """Load an OpenAPI document (or an options file) from YAML or JSON.

    Raises:
        SchemaError: If the file cannot be read or parsed.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaError(f"Failed to read document: {e}", str(path)) from e

    return _parse(raw, as_yaml=path.suffix.lower() in YAML_SUFFIXES, source=str(path))


def _make_session() -> requests.Session:
    session = requests.Session()
    retries = Retry(total=3, backoff_factor=0.5, status_forcelist=(500, 502, 503, 504))
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def fetch_document(url: str, timeout: float = 10.0) -> dict[str, Any]:
    """Fetch a remote JSON/YAML document by URL.

    Retries transient server errors through a urllib3 Retry policy.

    Raises:
        SchemaError: If the request fails or the payload is not a mapping.
    """
    try:
        resp = _make_session().get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise SchemaError(f"Failed to fetch document: {e}", url) from e

    try:
        data = resp.json()
    except ValueError:
        return _parse(resp.text, as_yaml=True, source=url)

    if not isinstance(data, dict):
        raise SchemaError("Document root must be a mapping", url)
    return data


def is_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))
