from __future__ import annotations

from functools import partial

import pytest

from observable_history.entry import Entry
from observable_history.normalize import MalformedLocationError, normalize_affixed, normalize_field
from observable_history.state import (
    MAX_REACTION_PASSES,
    REJECT,
    LocationState,
    ReactionLoopError,
    is_observable,
)


def _location() -> LocationState:
    return LocationState(Entry(path="/a", query="?x=1", fragment="", state=None))


def test_fields_and_aliases() -> None:
    loc = _location()
    assert loc.path == loc.pathname == "/a"
    assert loc.query == loc.search == "?x=1"
    assert loc.fragment == loc.hash == ""
    assert loc.to_path() == "/a?x=1"
    assert is_observable(loc)


def test_write_emits_field_and_location_signals() -> None:
    loc = _location()
    paths: list[str] = []
    snapshots: list[Entry] = []
    loc.pathChanged.connect(paths.append)
    loc.locationChanged.connect(snapshots.append)

    loc.pathname = "/b"

    assert paths == ["/b"]
    assert [s.path for s in snapshots] == ["/b"]


def test_equal_write_is_suppressed() -> None:
    loc = _location()
    calls: list[Entry] = []
    loc.on_change(calls.append)

    assert loc.write("path", "/a") is False
    loc.state = None

    assert calls == []


def test_interceptor_normalizes_before_equality_check() -> None:
    loc = LocationState(Entry(path="/", query=""))
    loc.intercept_write("query", lambda v: normalize_affixed(v, "?"))
    calls: list[Entry] = []
    loc.on_change(calls.append)

    loc.query = "?"
    assert calls == []

    loc.search = "test"
    assert loc.query == "?test"
    assert len(calls) == 1


def test_interceptor_can_reject_and_be_disposed() -> None:
    loc = _location()
    dispose = loc.intercept_write("fragment", lambda v: REJECT)

    loc.fragment = "#nope"
    assert loc.fragment == ""

    dispose()
    dispose()
    loc.fragment = "#yes"
    assert loc.fragment == "#yes"


def test_batch_flushes_once() -> None:
    loc = _location()
    changes: list[Entry] = []
    loc.on_change(changes.append)

    with loc.batch():
        loc.path = "/b"
        loc.query = "?y=2"
        with loc.batch():
            loc.fragment = "#f"
        assert changes == []

    assert len(changes) == 1
    assert changes[0].path == "/b"
    assert changes[0].query == "?y=2"
    assert changes[0].fragment == "#f"


def test_reactions_filter_by_field() -> None:
    loc = _location()
    query_changes: list[Entry] = []
    loc.on_change(query_changes.append, fields=("query",))

    loc.path = "/b"
    loc.state = {"k": 1}
    assert query_changes == []

    loc.query = "?z=1"
    assert len(query_changes) == 1


def test_reaction_writes_run_in_next_pass() -> None:
    loc = _location()
    seen: list[Entry] = []
    loc.locationChanged.connect(seen.append)

    def follow_path(snapshot: Entry) -> None:
        loc.state = {"for": snapshot.path}

    loc.on_change(follow_path, fields=("path",))
    loc.path = "/b"

    assert loc.state == {"for": "/b"}
    assert len(seen) == 2


def test_runaway_reactions_raise() -> None:
    loc = _location()
    counter = {"n": 0}

    def bump(_snapshot: Entry) -> None:
        counter["n"] += 1
        loc.state = counter["n"]

    loc.on_change(bump)

    with pytest.raises(ReactionLoopError):
        loc.path = "/loop"
    assert counter["n"] == MAX_REACTION_PASSES


def test_reaction_errors_propagate() -> None:
    loc = _location()

    def boom(_snapshot: Entry) -> None:
        raise RuntimeError("boom")

    loc.on_change(boom)
    with pytest.raises(RuntimeError, match="boom"):
        loc.path = "/b"


def test_unknown_field_is_rejected() -> None:
    loc = _location()
    with pytest.raises(ValueError):
        loc.write("port", 80)


def test_detach_stops_notifications() -> None:
    loc = _location()
    calls: list[Entry] = []
    signals: list[str] = []
    loc.on_change(calls.append)
    loc.pathChanged.connect(signals.append)

    loc.detach()
    loc.path = "/after"

    assert not is_observable(loc)
    assert loc.path == "/after"
    assert calls == []
    assert signals == []


def _validated_location() -> LocationState:
    loc = _location()
    loc.intercept_write("path", partial(normalize_field, "path"))
    loc.intercept_write("query", partial(normalize_field, "query"))
    return loc


def test_failed_batch_restores_fields() -> None:
    loc = _validated_location()
    changes: list[Entry] = []
    loc.on_change(changes.append)

    with pytest.raises(MalformedLocationError):
        with loc.batch():
            loc.search = "y=2"
            loc.pathname = "/bad%"

    assert loc.to_path() == "/a?x=1"
    assert changes == []

    # nothing stale is flushed by the next unrelated write
    loc.fragment = "#f"
    assert len(changes) == 1
    assert changes[0].query == "?x=1"
    assert loc.to_path() == "/a?x=1#f"


def test_assign_validates_every_field_before_storing() -> None:
    loc = _validated_location()
    changes: list[Entry] = []
    loc.on_change(changes.append)

    with pytest.raises(MalformedLocationError):
        loc.assign({"query": "?y=2", "path": "/bad%zz"})

    assert loc.to_path() == "/a?x=1"
    assert changes == []
