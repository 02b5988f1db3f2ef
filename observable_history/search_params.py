"""Ordered multi-map over a query string.

``SearchParams`` is the plain, non-reactive building block. The reactive
wrapper bound to a location lives in ``observable_history.state``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, fields, replace
from typing import Any
from urllib.parse import parse_qsl, quote, quote_plus

Encoder = Callable[[str], str]


def percent_encode(value: str) -> str:
    # Separators used for joined arrays stay readable.
    return quote(value, safe=",/:@!$'()*")


def form_encode(value: str) -> str:
    return quote_plus(value)


def raw_encode(value: str) -> str:
    return value


ENCODERS: dict[str, Encoder] = {
    "percent": percent_encode,
    "form": form_encode,
    "raw": raw_encode,
}


def resolve_encoder(encoder: str | Encoder) -> Encoder:
    if callable(encoder):
        return encoder
    try:
        return ENCODERS[str(encoder)]
    except KeyError:
        raise ValueError(f"unknown encoder: {encoder!r}") from None


_OPTION_KEYS = {
    "skipEmptyValues": "skip_empty_values",
    "skipEmpty": "skip_empty_values",
    "skip_empty_values": "skip_empty_values",
    "joinArrays": "join_arrays",
    "join_arrays": "join_arrays",
    "joinArraysWith": "join_arrays_with",
    "join_arrays_with": "join_arrays_with",
    "encoder": "encoder",
}


@dataclass(frozen=True, slots=True)
class SearchParamsOptions:
    skip_empty_values: bool = True
    join_arrays: bool = True
    join_arrays_with: str = ","
    encoder: Encoder = percent_encode

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> SearchParamsOptions:
        return cls().merged(mapping)

    def merged(self, overrides: Mapping[str, Any] | SearchParamsOptions | None) -> SearchParamsOptions:
        if overrides is None:
            return self
        if isinstance(overrides, SearchParamsOptions):
            overrides = {f.name: getattr(overrides, f.name) for f in fields(overrides)}
        values: dict[str, Any] = {}
        for key, value in overrides.items():
            name = _OPTION_KEYS.get(key)
            if name is None:
                raise ValueError(f"unknown search params option: {key!r}")
            if name == "encoder":
                value = resolve_encoder(value)
            elif name == "join_arrays_with":
                value = str(value)
            else:
                value = bool(value)
            values[name] = value
        return replace(self, **values)


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _parse(search: str) -> list[tuple[str, str]]:
    s = search.strip()
    if s.startswith("?"):
        s = s[1:]
    return parse_qsl(s, keep_blank_values=True)


def _pairs_of(init: Any) -> list[tuple[str, str]]:
    if init is None:
        return []
    if isinstance(init, str):
        return _parse(init)
    if isinstance(init, SearchParams):
        return list(init.items())
    if isinstance(init, Mapping):
        pairs: list[tuple[str, str]] = []
        for name, value in init.items():
            if isinstance(value, (list, tuple)):
                pairs.extend((str(name), _stringify(v)) for v in value)
            else:
                pairs.append((str(name), _stringify(value)))
        return pairs
    return [(str(name), _stringify(value)) for name, value in init]


def _grouped(source: Any) -> Iterable[tuple[str, Any]]:
    """Source for merge/copy_with as (name, value-or-list) items."""
    if isinstance(source, Mapping):
        return list(source.items())
    groups: dict[str, list[str]] = {}
    for name, value in _pairs_of(source):
        groups.setdefault(name, []).append(value)
    return list(groups.items())


class SearchParams:
    """Ordered multi-map from parameter name to string values.

    ``to_string()`` applies the configured encoder to names as well as
    values, so a name holding ``&``, ``=`` or spaces still parses back to
    the same pairs.
    """

    def __init__(self, init: Any = None, options: SearchParamsOptions | Mapping[str, Any] | None = None) -> None:
        if isinstance(options, SearchParamsOptions):
            self._options = options
        else:
            self._options = SearchParamsOptions().merged(options)
        self._pairs: list[tuple[str, str]] = _pairs_of(init)

    @property
    def options(self) -> SearchParamsOptions:
        return self._options

    # ---- reads ----
    def get(self, name: str) -> str | None:
        for key, value in self._pairs:
            if key == name:
                return value
        return None

    def get_all(self, name: str) -> list[str]:
        values = [value for key, value in self._pairs if key == name]
        sep = self._options.join_arrays_with
        if self._options.join_arrays and sep:
            return [piece for value in values for piece in value.split(sep)]
        return values

    def get_as_array(self, name: str, splitter: str | re.Pattern[str] | None = None) -> list[str]:
        data = self.get(name)
        if not data:
            return []
        if isinstance(splitter, re.Pattern):
            return splitter.split(data)
        return data.split(splitter or self._options.join_arrays_with)

    def has(self, name: str) -> bool:
        return any(key == name for key, _ in self._pairs)

    def keys(self) -> list[str]:
        return [key for key, _ in self._pairs]

    def values(self) -> list[str]:
        return [value for _, value in self._pairs]

    def items(self) -> list[tuple[str, str]]:
        return list(self._pairs)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(list(self._pairs))

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SearchParams):
            return NotImplemented
        return self._pairs == other._pairs

    def __repr__(self) -> str:
        return f"SearchParams({self.to_string()!r})"

    # ---- mutations ----
    def set(self, name: str, value: Any) -> None:
        value = _stringify(value)
        out: list[tuple[str, str]] = []
        found = False
        for key, current in self._pairs:
            if key != name:
                out.append((key, current))
            elif not found:
                out.append((key, value))
                found = True
        if not found:
            out.append((name, value))
        self._pairs = out

    def append(self, name: str, value: Any) -> None:
        value = _stringify(value)
        if self._options.join_arrays:
            for i, (key, current) in enumerate(self._pairs):
                if key == name:
                    joined = f"{current}{self._options.join_arrays_with}{value}" if current else value
                    self._pairs[i] = (key, joined)
                    return
        self._pairs.append((name, value))

    def delete(self, name: str) -> None:
        self._pairs = [(key, value) for key, value in self._pairs if key != name]

    def sort(self) -> None:
        # Stable: equal names keep their relative order.
        self._pairs.sort(key=lambda pair: pair[0])

    def toggle(self, name: str, value: Any = None) -> None:
        if value:
            self.set(name, value)
        else:
            self.delete(name)

    def copy_with(self, source: Any, options: SearchParamsOptions | Mapping[str, Any] | None = None) -> SearchParams:
        """Independent copy with ``source`` merged in.

        For every name in ``source`` existing values are dropped and the new
        ones re-added: lists are joined into one value when ``join_arrays`` is
        set, otherwise appended one by one. Empty values are skipped when
        ``skip_empty_values`` is set and kept as ``name=`` otherwise.
        """
        opts = self._options.merged(options)
        copy = SearchParams(self, opts)
        if not source:
            return copy
        for name, value in _grouped(source):
            name = str(name)
            copy.delete(name)
            if isinstance(value, (list, tuple)):
                values = [_stringify(v) for v in value]
                if opts.skip_empty_values:
                    values = [v for v in values if v]
                    if not values:
                        continue
                if opts.join_arrays:
                    copy._pairs.append((name, opts.join_arrays_with.join(values)))
                else:
                    copy._pairs.extend((name, v) for v in values)
            else:
                text = _stringify(value)
                if opts.skip_empty_values and not text:
                    continue
                copy._pairs.append((name, text))
        return copy

    def merge(self, source: Any, options: SearchParamsOptions | Mapping[str, Any] | None = None) -> None:
        self._pairs = self.copy_with(source, options)._pairs

    def delete_all(self) -> None:
        self._pairs = []

    def replace(self, source: Any = None) -> None:
        self.delete_all()
        if source:
            self.merge(source)

    # ---- output ----
    def to_string(self, *, with_prefix: bool = False, encoder: str | Encoder | None = None) -> str:
        enc = self._options.encoder if encoder is None else resolve_encoder(encoder)
        search = "&".join(f"{enc(key)}={enc(value)}" for key, value in self._pairs)
        return f"?{search}" if with_prefix and search else search

    def __str__(self) -> str:
        return self.to_string()
