"""Bidirectional sync between a navigation backend, a ``LocationState`` and
an ``ObservableSearchParams`` view.

Propagation rules:
- Backend event -> ``action`` + location fields. Never pushes back: the push
  reaction compares with the backend's current entry, which is already equal.
- Location field write -> one push when the canonical path differs from the
  backend's current entry.
- Search-params mutation -> location ``query`` write -> push. The view that
  produced the write is kept; only queries written from elsewhere rebuild it.
- ``merge()`` -> backend push/replace directly.
"""

from __future__ import annotations

from collections.abc import Mapping
from functools import partial
from typing import Any

from PySide6.QtCore import Property, QObject, Signal

from .entry import Action, Entry
from .logger import get_logger
from .normalize import canonical_location, compose_path, normalize_field
from .search_params import SearchParams, SearchParamsOptions
from .state import LocationState, ObservableSearchParams

_logger = get_logger("sync")

_PATH_FIELDS = ("path", "query", "fragment")


def resolve_options(options: SearchParamsOptions | Mapping[str, Any] | None) -> SearchParamsOptions:
    if isinstance(options, SearchParamsOptions):
        return options
    return SearchParamsOptions().merged(options)


class HistorySync(QObject):
    actionChanged = Signal(str)
    searchParamsChanged = Signal(object)

    def __init__(
        self,
        history: Any,
        options: SearchParamsOptions | Mapping[str, Any] | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._history = history
        self._options = resolve_options(options)

        entry = history.current_entry()
        self._action = Action(entry.action)
        self._location = LocationState(entry)
        self._search_params = self._create_search_params(entry.query)
        self._destroyed = False

        self._disposers = [
            # normalize values for direct updates of location fields
            self._location.intercept_write("path", partial(normalize_field, "path")),
            self._location.intercept_write("query", partial(normalize_field, "query")),
            self._location.intercept_write("fragment", partial(normalize_field, "fragment")),
            self._location.on_change(self._sync_search_params, fields=("query",)),
            self._location.on_change(self._push_location, fields=_PATH_FIELDS),
            history.subscribe(self._on_navigate),
        ]

    # ---- state ----
    @property
    def history(self) -> Any:
        return self._history

    @property
    def options(self) -> SearchParamsOptions:
        return self._options

    @property
    def location(self) -> LocationState:
        return self._location

    @property
    def search_params(self) -> ObservableSearchParams:
        return self._search_params

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def _get_action(self) -> str:
        return self._action.value

    action = Property(str, _get_action, notify=actionChanged)  # type: ignore[arg-type]

    def _set_action(self, action: Action) -> None:
        a = Action(action)
        if a == self._action:
            return
        self._action = a
        self.actionChanged.emit(a.value)

    # ---- search params ----
    def _create_search_params(self, search: str) -> ObservableSearchParams:
        return ObservableSearchParams(search, self._options, on_sync=self._on_search_params_changed)

    def _on_search_params_changed(self, search: str) -> None:
        self._location.query = search

    def _sync_search_params(self, _snapshot: Entry) -> None:
        query = self._location.query
        if self._search_params.to_string(with_prefix=True) == query:
            return
        previous = self._search_params
        self._search_params = self._create_search_params(query)
        # Stray references to the old view must not write the location.
        previous.detach()
        _logger.debug("search params rebuilt from %r", query)
        self.searchParamsChanged.emit(self._search_params)

    def set_search_params(self, value: Any) -> None:
        if isinstance(value, Mapping):
            search = SearchParams(options=self._options).copy_with(value).to_string()
        elif isinstance(value, (SearchParams, ObservableSearchParams)):
            search = value.to_string()
        else:
            search = "" if value is None else str(value)
        self._location.query = search

    # ---- location ----
    def _push_location(self, snapshot: Entry) -> None:
        path = compose_path(snapshot)
        current = compose_path(self._history.current_entry())
        if path == current:
            return
        _logger.debug("push %s (was %s)", path, current)
        self._history.push(Entry(path=snapshot.path, query=snapshot.query, fragment=snapshot.fragment))

    def _on_navigate(self, entry: Entry, action: Action) -> None:
        self._set_action(action)
        if compose_path(entry) == self._location.to_path() and entry.state == self._location.state:
            return
        self._location.assign(
            {"path": entry.path, "query": entry.query, "fragment": entry.fragment, "state": entry.state}
        )

    def set_location(self, candidate: Any) -> bool:
        """Whole-location assignment; returns False when nothing changed.

        A string is a full location (an empty path keeps the current one); a
        mapping only updates the fields it names.
        """
        current = self._location.snapshot()
        fields = canonical_location(candidate, base=current)
        target = {**current.to_dict(), **fields}
        if compose_path(target) == compose_path(current):
            _logger.debug("location assignment suppressed: %s", compose_path(current))
            return False
        self._location.assign(fields)
        return True

    def get_path(self) -> str:
        return self._location.to_path()

    def merge(self, partial_location: Any, replace: bool = False) -> None:
        current = self._location.snapshot()
        fields = canonical_location(partial_location, skip_empty=True, base=current)
        target = {**current.to_dict(), **fields}
        entry = Entry(path=target["path"], query=target["query"], fragment=target["fragment"], state=target["state"])
        if replace:
            self._history.replace(entry)
        else:
            self._history.push(entry)

    # ---- teardown ----
    def destroy(self) -> Any:
        if self._destroyed:
            return self._history
        for dispose in self._disposers:
            dispose()
        self._disposers.clear()
        self._location.detach()
        self._search_params.detach()
        self._destroyed = True
        _logger.debug("sync destroyed")
        return self._history
