"""Reactive state objects.

- ``LocationState``: field-addressable composite location (path/query/fragment/state).
- ``ObservableSearchParams``: multi-map view of the location query.

Both are QObjects whose properties notify Qt bindings; the sync engine
subscribes through ``on_change``.
"""

from observable_history.state.base import ObservableState, ReactionLoopError, is_observable
from observable_history.state.location_state import MAX_REACTION_PASSES, REJECT, LocationState
from observable_history.state.search_params_state import ObservableSearchParams

__all__ = [
    "MAX_REACTION_PASSES",
    "REJECT",
    "LocationState",
    "ObservableSearchParams",
    "ObservableState",
    "ReactionLoopError",
    "is_observable",
]
