from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from PySide6.QtCore import Property, QObject, Signal

from observable_history.entry import Entry
from observable_history.logger import get_logger
from observable_history.normalize import FIELD_ALIASES, LOCATION_FIELDS, compose_path
from observable_history.state.base import Disposer, ObservableState, ReactionLoopError

_logger = get_logger("state")

# Returned by a write interceptor to drop the write.
REJECT = object()

MAX_REACTION_PASSES = 100


def _field_name(field: str) -> str:
    try:
        return FIELD_ALIASES[field]
    except KeyError:
        raise ValueError(f"unknown location field: {field!r}") from None


class LocationState(ObservableState):
    """Composite location: path, query, fragment and state.

    Design:
    - Fields are mutated in place, never replaced by a new object, so
      subscriptions on single fields stay attached.
    - Writes pass through interceptors first; a write whose (rewritten) value
      equals the stored one is dropped without any notification.
    - Writes inside ``batch()`` are flushed as one notification pass.
    """

    pathChanged = Signal(str)
    queryChanged = Signal(str)
    fragmentChanged = Signal(str)
    stateChanged = Signal(object)
    locationChanged = Signal(object)

    def __init__(self, entry: Entry | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        entry = entry or Entry()
        self._values: dict[str, Any] = {
            "path": entry.path,
            "query": entry.query,
            "fragment": entry.fragment,
            "state": entry.state,
        }
        self._interceptors: dict[str, list[Callable[[Any], Any]]] = {name: [] for name in LOCATION_FIELDS}
        self._batch_depth = 0
        self._dirty: set[str] = set()

    # ---- bindable properties ----
    def _get_path(self) -> str:
        return str(self._values["path"])

    def _set_path(self, value: str) -> None:
        self.write("path", value)

    path = Property(str, _get_path, _set_path, notify=pathChanged)  # type: ignore[arg-type]

    def _get_query(self) -> str:
        return str(self._values["query"])

    def _set_query(self, value: str) -> None:
        self.write("query", value)

    query = Property(str, _get_query, _set_query, notify=queryChanged)  # type: ignore[arg-type]

    def _get_fragment(self) -> str:
        return str(self._values["fragment"])

    def _set_fragment(self, value: str) -> None:
        self.write("fragment", value)

    fragment = Property(str, _get_fragment, _set_fragment, notify=fragmentChanged)  # type: ignore[arg-type]

    def _get_state(self) -> Any:
        return self._values["state"]

    def _set_state(self, value: Any) -> None:
        self.write("state", value)

    state = Property(object, _get_state, _set_state, notify=stateChanged)  # type: ignore[arg-type]

    # Browser-style aliases.
    pathname = property(_get_path, _set_path)
    search = property(_get_query, _set_query)
    hash = property(_get_fragment, _set_fragment)

    # ---- writes ----
    def intercept_write(self, field: str, transform: Callable[[Any], Any]) -> Disposer:
        """Rewrite (or ``REJECT``) values written to ``field`` before they are stored."""
        interceptors = self._interceptors[_field_name(field)]
        interceptors.append(transform)

        def dispose() -> None:
            if transform in interceptors:
                interceptors.remove(transform)

        return dispose

    def _intercepted(self, name: str, value: Any) -> Any:
        for transform in list(self._interceptors[name]):
            value = transform(value)
            if value is REJECT:
                break
        return value

    def _store(self, name: str, value: Any) -> bool:
        if value is REJECT or self._values[name] == value:
            return False
        self._values[name] = value
        if self._detached:
            return True
        self._dirty.add(name)
        if self._batch_depth == 0:
            self._flush()
        return True

    def write(self, field: str, value: Any) -> bool:
        """Store ``value`` into ``field``; returns False when the write was suppressed."""
        name = _field_name(field)
        return self._store(name, self._intercepted(name, value))

    def assign(self, fields: Mapping[str, Any]) -> None:
        # Run every interceptor before storing anything.
        staged: list[tuple[str, Any]] = []
        for field, value in fields.items():
            name = _field_name(field)
            staged.append((name, self._intercepted(name, value)))
        with self.batch():
            for name, value in staged:
                self._store(name, value)

    @contextlib.contextmanager
    def batch(self) -> Iterator[LocationState]:
        """Group writes into one flush.

        If the outermost batch body raises, the fields it wrote are restored
        and nothing is flushed.
        """
        outermost = self._batch_depth == 0
        start = dict(self._values) if outermost else None
        self._batch_depth += 1
        try:
            yield self
        except Exception:
            if start is not None:
                self._values.update(start)
                self._dirty.clear()
            raise
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0 and self._dirty:
            self._flush()

    def _flush(self) -> None:
        passes = 0
        # Writes made by reactions are collected into the next pass.
        self._batch_depth += 1
        try:
            while self._dirty and not self._detached:
                passes += 1
                if passes > MAX_REACTION_PASSES:
                    self._dirty.clear()
                    raise ReactionLoopError(f"location reactions did not settle after {MAX_REACTION_PASSES} passes")
                changed = frozenset(self._dirty)
                self._dirty.clear()
                for name in LOCATION_FIELDS:
                    if name in changed:
                        getattr(self, f"{name}Changed").emit(self._values[name])
                snapshot = self.snapshot()
                self.locationChanged.emit(snapshot)
                self._run_reactions(changed, snapshot)
        finally:
            self._batch_depth -= 1

    # ---- reads ----
    def snapshot(self) -> Entry:
        return Entry(
            path=self._values["path"],
            query=self._values["query"],
            fragment=self._values["fragment"],
            state=self._values["state"],
        )

    def to_path(self) -> str:
        return compose_path(self.snapshot())

    def detach(self) -> None:
        super().detach()
        for interceptors in self._interceptors.values():
            interceptors.clear()
        self._dirty.clear()
        _logger.debug("location detached at %s", self.to_path())

    def __repr__(self) -> str:
        return f"LocationState({self.to_path()!r}, state={self._values['state']!r})"
