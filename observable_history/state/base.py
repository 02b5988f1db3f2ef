from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from PySide6.QtCore import QObject

Disposer = Callable[[], None]


class ReactionLoopError(RuntimeError):
    """Reactions kept writing state without settling."""


@dataclass(eq=False)
class _Reaction:
    callback: Callable[[Any], None]
    fields: frozenset[str] | None

    def matches(self, changed: Iterable[str]) -> bool:
        return self.fields is None or not self.fields.isdisjoint(changed)


class ObservableState(QObject):
    """Base for state objects observed by sync reactions.

    Qt signals are for bindings only: an exception raised in a slot is not
    propagated to ``emit()``. Reactions registered with ``on_change`` are plain
    calls, so their errors abort the write that triggered them.
    """

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._reactions: list[_Reaction] = []
        self._detached = False

    @property
    def is_detached(self) -> bool:
        return self._detached

    def on_change(self, callback: Callable[[Any], None], fields: Iterable[str] | None = None) -> Disposer:
        reaction = _Reaction(callback, frozenset(fields) if fields is not None else None)
        self._reactions.append(reaction)

        def dispose() -> None:
            if reaction in self._reactions:
                self._reactions.remove(reaction)

        return dispose

    def _run_reactions(self, changed: Iterable[str], payload: Any) -> None:
        changed = frozenset(changed)
        for reaction in list(self._reactions):
            if reaction.matches(changed):
                reaction.callback(payload)

    def detach(self) -> None:
        """Stop all notifications; the object keeps its last values."""
        self._detached = True
        self._reactions.clear()


def is_observable(obj: object) -> bool:
    return isinstance(obj, ObservableState) and not obj.is_detached
