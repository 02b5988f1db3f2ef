from __future__ import annotations

import functools
import re
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from PySide6.QtCore import Property, QObject, Signal

from observable_history.normalize import normalize_affixed
from observable_history.search_params import Encoder, SearchParams, SearchParamsOptions
from observable_history.state.base import ObservableState


def _mutation(method: Callable[..., Any]) -> Callable[..., Any]:
    """Commit the new canonical string only when the mutation changed it."""

    @functools.wraps(method)
    def wrapper(self: ObservableSearchParams, *args: Any, **kwargs: Any) -> Any:
        before = self._params.to_string()
        result = method(self, *args, **kwargs)
        after = self._params.to_string()
        if after != before:
            self._commit(after)
        return result

    return wrapper


class ObservableSearchParams(ObservableState):
    """Query parameters bound to a location's query string.

    ``to_string()`` returns the cached canonical string, which starts as the
    query the view was built from and is only replaced by a mutation that
    changed the serialized params.
    """

    searchChanged = Signal(str)

    def __init__(
        self,
        init: Any = "",
        options: SearchParamsOptions | Mapping[str, Any] | None = None,
        on_sync: Callable[[str], None] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._params = SearchParams(init, options)
        if isinstance(init, str):
            self._search = normalize_affixed(init, "?")[1:]
        else:
            self._search = self._params.to_string()
        self._on_sync = on_sync

    def _get_search(self) -> str:
        return str(self._search)

    search = Property(str, _get_search, notify=searchChanged)  # type: ignore[arg-type]

    def _commit(self, search: str) -> None:
        # Same canonical form the location stores for its query.
        search = normalize_affixed(search, "?")[1:]
        self._search = search
        if self._detached:
            return
        if self._on_sync is not None:
            self._on_sync(search)
        self.searchChanged.emit(search)
        self._run_reactions((), search)

    @property
    def options(self) -> SearchParamsOptions:
        return self._params.options

    # ---- reads ----
    def get(self, name: str) -> str | None:
        return self._params.get(name)

    def get_all(self, name: str) -> list[str]:
        return self._params.get_all(name)

    def get_as_array(self, name: str, splitter: str | re.Pattern[str] | None = None) -> list[str]:
        return self._params.get_as_array(name, splitter)

    def has(self, name: str) -> bool:
        return self._params.has(name)

    def keys(self) -> list[str]:
        return self._params.keys()

    def values(self) -> list[str]:
        return self._params.values()

    def items(self) -> list[tuple[str, str]]:
        return self._params.items()

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    def __contains__(self, name: object) -> bool:
        return name in self._params

    def copy_with(self, source: Any, options: SearchParamsOptions | Mapping[str, Any] | None = None) -> SearchParams:
        return self._params.copy_with(source, options)

    def to_string(self, *, with_prefix: bool = False, encoder: str | Encoder | None = None) -> str:
        if encoder is not None:
            return self._params.to_string(with_prefix=with_prefix, encoder=encoder)
        return f"?{self._search}" if with_prefix and self._search else self._search

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"ObservableSearchParams({self._search!r})"

    # ---- mutations ----
    @_mutation
    def set(self, name: str, value: Any) -> None:
        self._params.set(name, value)

    @_mutation
    def append(self, name: str, value: Any) -> None:
        self._params.append(name, value)

    @_mutation
    def delete(self, name: str) -> None:
        self._params.delete(name)

    @_mutation
    def sort(self) -> None:
        self._params.sort()

    @_mutation
    def toggle(self, name: str, value: Any = None) -> None:
        self._params.toggle(name, value)

    @_mutation
    def merge(self, source: Any, options: SearchParamsOptions | Mapping[str, Any] | None = None) -> None:
        self._params.merge(source, options)

    @_mutation
    def replace(self, source: Any = None) -> None:
        self._params.replace(source)

    @_mutation
    def delete_all(self) -> None:
        self._params.delete_all()
