from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class Action(str, Enum):
    """Navigation method that produced the current entry."""

    PUSH = "PUSH"
    REPLACE = "REPLACE"
    POP = "POP"


@dataclass(frozen=True, slots=True)
class Entry:
    """One point in the navigation log.

    ``query`` is empty or starts with ``?``; ``fragment`` is empty or starts
    with ``#``. Neither is ever the bare prefix character.
    """

    path: str = "/"
    query: str = ""
    fragment: str = ""
    state: Any = None
    action: Action = Action.POP

    # Browser-style aliases.
    @property
    def pathname(self) -> str:
        return self.path

    @property
    def search(self) -> str:
        return self.query

    @property
    def hash(self) -> str:
        return self.fragment

    def with_action(self, action: Action) -> Entry:
        return replace(self, action=action)

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "query": self.query, "fragment": self.fragment, "state": self.state}
