"""In-memory navigation log.

Implements the backend contract the sync engine consumes: current entry,
push/replace, back/forward traversal and synchronous change listeners.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from .entry import Action, Entry
from .logger import get_logger
from .normalize import canonical_location, compose_path

_logger = get_logger("history")

Listener = Callable[[Entry, Action], None]


class MemoryHistory:
    def __init__(self, initial_entries: Iterable[Any] | None = None, initial_index: int | None = None) -> None:
        self._entries: list[Entry] = []
        for candidate in initial_entries or ["/"]:
            self._entries.append(self._create_entry(candidate, None, Action.POP, base=None))
        last = len(self._entries) - 1
        self._index = last if initial_index is None else max(0, min(last, int(initial_index)))
        self._action = Action.POP
        self._listeners: list[Listener] = []

    def _create_entry(self, to: Any, state: Any, action: Action, base: Entry | None) -> Entry:
        fields = canonical_location(to, base=base)
        path = fields.get("path") or (base.path if base is not None else "/")
        if state is None:
            state = fields.get("state")
        return Entry(
            path=path,
            query=fields.get("query", ""),
            fragment=fields.get("fragment", ""),
            state=state,
            action=action,
        )

    # ---- reads ----
    @property
    def action(self) -> Action:
        return self._action

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    @property
    def length(self) -> int:
        return len(self._entries)

    def entry_count(self) -> int:
        return len(self._entries)

    def current_entry(self) -> Entry:
        return self._entries[self._index].with_action(self._action)

    @property
    def location(self) -> Entry:
        return self.current_entry()

    def can_go(self, n: int) -> bool:
        return 0 <= self._index + int(n) < len(self._entries)

    def create_href(self, to: Any) -> str:
        return compose_path(self._create_entry(to, None, Action.PUSH, base=self.current_entry()))

    # ---- navigation ----
    def push(self, to: Any, state: Any = None) -> None:
        entry = self._create_entry(to, state, Action.PUSH, base=self.current_entry())
        del self._entries[self._index + 1 :]
        self._entries.append(entry)
        self._index = len(self._entries) - 1
        self._action = Action.PUSH
        _logger.debug("push %s (entries=%d)", compose_path(entry), len(self._entries))
        self._notify()

    def replace(self, to: Any, state: Any = None) -> None:
        entry = self._create_entry(to, state, Action.REPLACE, base=self.current_entry())
        self._entries[self._index] = entry
        self._action = Action.REPLACE
        _logger.debug("replace %s", compose_path(entry))
        self._notify()

    def go(self, n: int) -> None:
        self._index = max(0, min(len(self._entries) - 1, self._index + int(n)))
        self._action = Action.POP
        _logger.debug("pop to index %d", self._index)
        self._notify()

    def go_back(self) -> None:
        self.go(-1)

    def go_forward(self) -> None:
        self.go(1)

    # ---- listeners ----
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    listen = subscribe

    def _notify(self) -> None:
        entry = self.current_entry()
        for listener in list(self._listeners):
            listener(entry, self._action)
