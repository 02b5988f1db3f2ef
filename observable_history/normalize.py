"""Location normalization utilities.

This module centralizes the canonical-form rules used for equality checks:

- ``query`` is empty or carries exactly one leading ``?``.
- ``fragment`` is empty or carries exactly one leading ``#``.
- The full location string is always ``path + query + fragment``.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import urljoin

from .entry import Entry

LOCATION_FIELDS = ("path", "query", "fragment", "state")

FIELD_ALIASES = {
    "path": "path",
    "pathname": "path",
    "query": "query",
    "search": "query",
    "fragment": "fragment",
    "hash": "fragment",
    "state": "state",
}

_PREFIXES = {"query": "?", "fragment": "#"}
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


class MalformedLocationError(ValueError):
    """A raw location could not be parsed into path/query/fragment."""


def normalize_affixed(raw: Any, prefix: str = "?") -> str:
    chunk = "" if raw is None else str(raw).strip()
    if not chunk or chunk == prefix:
        return ""
    if chunk.startswith(prefix):
        return chunk
    return prefix + chunk


def normalize_field(field: str, value: Any) -> Any:
    """Canonical value for a single location field."""
    if field == "path":
        path = "" if value is None else str(value).strip()
        validate_path(path)
        return path
    if field in _PREFIXES:
        return normalize_affixed(value, _PREFIXES[field])
    return value


def validate_path(path: str) -> None:
    if _CONTROL_CHARS.search(path):
        raise MalformedLocationError(f"control character in path: {path!r}")
    if _BAD_ESCAPE.search(path):
        raise MalformedLocationError(f"malformed percent-escape in path: {path!r}")


def parse_path(text: str) -> dict[str, str]:
    """Split ``text`` into path, query and fragment (non-normalized)."""
    if not isinstance(text, str):
        raise MalformedLocationError(f"location string expected, got {type(text).__name__}")
    rest = text.strip()
    fragment = ""
    query = ""
    hash_idx = rest.find("#")
    if hash_idx >= 0:
        fragment = rest[hash_idx:]
        rest = rest[:hash_idx]
    search_idx = rest.find("?")
    if search_idx >= 0:
        query = rest[search_idx:]
        rest = rest[:search_idx]
    return {"path": rest, "query": query, "fragment": fragment}


def _fields_of(candidate: Any) -> dict[str, Any]:
    if isinstance(candidate, str):
        return dict(parse_path(candidate))
    if isinstance(candidate, Entry):
        return candidate.to_dict()
    if isinstance(candidate, Mapping):
        fields: dict[str, Any] = {}
        for key, value in candidate.items():
            name = FIELD_ALIASES.get(key)
            if name is None:
                raise MalformedLocationError(f"unknown location field: {key!r}")
            fields[name] = value
        return fields
    raise MalformedLocationError(f"cannot build a location from {type(candidate).__name__}")


def canonical_location(
    candidate: Any,
    *,
    skip_empty: bool = False,
    base: Entry | Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Canonical (possibly partial) location fields for ``candidate``.

    ``skip_empty`` drops every falsy field so a merge keeps the existing value
    instead of clearing it. With ``base`` a relative path is resolved against
    the base path and an empty path inherits it.
    """
    fields = _fields_of(candidate)
    if skip_empty:
        fields = {k: v for k, v in fields.items() if v}

    if base is not None and "path" in fields:
        base_path = base.path if isinstance(base, Entry) else str(base.get("path", ""))
        path = str(fields["path"] or "").strip()
        if not path:
            fields["path"] = base_path
        elif not path.startswith("/") and base_path:
            fields["path"] = urljoin(base_path, path)

    return {name: normalize_field(name, value) for name, value in fields.items()}


def compose_path(location: Entry | Mapping[str, Any] | Any) -> str:
    """Canonical full-location string: path + query + fragment."""
    if isinstance(location, Mapping):
        path = location.get("path", "")
        query = location.get("query", "")
        fragment = location.get("fragment", "")
    else:
        path = location.path
        query = location.query
        fragment = location.fragment
    return f"{path or ''}{normalize_affixed(query, '?')}{normalize_affixed(fragment, '#')}"
