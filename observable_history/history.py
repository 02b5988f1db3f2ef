from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .entry import Action
from .logger import get_logger
from .memory_history import MemoryHistory
from .normalize import compose_path
from .search_params import SearchParamsOptions
from .settings_manager import SettingsManager
from .state import LocationState, ObservableSearchParams
from .sync import HistorySync

_logger = get_logger("history")


class ObservableHistory:
    """Navigation history with a reactive ``location`` and ``search_params``.

    Wraps a navigation backend: attributes not defined here (``push``,
    ``replace``, ``go_back``, ``entry_count``...) are forwarded to it.
    After ``destroy()`` the object behaves like the plain backend: ``location``
    is the backend's current entry and ``search_params`` is None.
    """

    def __init__(
        self,
        history: Any = None,
        options: SearchParamsOptions | Mapping[str, Any] | None = None,
        *,
        settings: SettingsManager | None = None,
    ) -> None:
        self._history = history if history is not None else MemoryHistory()
        if options is None and settings is not None:
            options = settings.search_params_options()
        self._sync = HistorySync(self._history, options)

    @property
    def sync(self) -> HistorySync:
        return self._sync

    @property
    def is_destroyed(self) -> bool:
        return self._sync.is_destroyed

    @property
    def action(self) -> str:
        if self._sync.is_destroyed:
            return Action(self._history.current_entry().action).value
        return self._sync.action

    @property
    def location(self) -> LocationState | Any:
        if self._sync.is_destroyed:
            return self._history.current_entry()
        return self._sync.location

    @location.setter
    def location(self, value: Any) -> None:
        if self._sync.is_destroyed:
            _logger.debug("location assignment ignored after destroy: %r", value)
            return
        self._sync.set_location(value)

    @property
    def search_params(self) -> ObservableSearchParams | None:
        if self._sync.is_destroyed:
            return None
        return self._sync.search_params

    @search_params.setter
    def search_params(self, value: Any) -> None:
        if self._sync.is_destroyed:
            _logger.debug("search params assignment ignored after destroy: %r", value)
            return
        self._sync.set_search_params(value)

    def get_path(self) -> str:
        if self._sync.is_destroyed:
            return compose_path(self._history.current_entry())
        return self._sync.get_path()

    def merge(self, location: Any, replace: bool = False) -> None:
        self._sync.merge(location, replace)

    def destroy(self) -> Any:
        return self._sync.destroy()

    def __getattr__(self, name: str) -> Any:
        # Only reached for names not defined on the facade.
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._history, name)

    def __repr__(self) -> str:
        return f"ObservableHistory({self.get_path()!r}, action={self.action!s})"


def create_observable_history(
    history: Any = None,
    options: SearchParamsOptions | Mapping[str, Any] | None = None,
    *,
    settings: SettingsManager | None = None,
) -> ObservableHistory:
    return ObservableHistory(history, options, settings=settings)
