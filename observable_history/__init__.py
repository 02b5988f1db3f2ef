"""Observable navigation history.

Keeps a navigation log, a field-addressable location and a query-parameter
view in agreement.
"""

from observable_history.entry import Action, Entry
from observable_history.history import ObservableHistory, create_observable_history
from observable_history.memory_history import MemoryHistory
from observable_history.normalize import (
    MalformedLocationError,
    canonical_location,
    compose_path,
    normalize_affixed,
    parse_path,
)
from observable_history.search_params import SearchParams, SearchParamsOptions
from observable_history.settings_manager import SettingsManager
from observable_history.state import (
    LocationState,
    ObservableSearchParams,
    ReactionLoopError,
    is_observable,
)
from observable_history.sync import HistorySync

__all__ = [
    "Action",
    "Entry",
    "HistorySync",
    "LocationState",
    "MalformedLocationError",
    "MemoryHistory",
    "ObservableHistory",
    "ObservableSearchParams",
    "ReactionLoopError",
    "SearchParams",
    "SearchParamsOptions",
    "SettingsManager",
    "canonical_location",
    "compose_path",
    "create_observable_history",
    "is_observable",
    "normalize_affixed",
    "parse_path",
]
