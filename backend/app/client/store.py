"""
Application state container for API consumers.

State is an immutable ``AppState`` snapshot. Reducers are pure functions
returning a new snapshot; ``StateStore`` applies them and persists selected
keys after every change.
"""
import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from app.services.activity_status import needs_reoptimization as _needs_reoptimization
from app.services.budget_service import BudgetTotals, summarize_budget

logger = logging.getLogger(__name__)

PERSISTED_KEYS = ("trips", "expenses", "language", "user")


@dataclass(frozen=True)
class AppState:
    """Everything the client keeps between screens."""
    user: Optional[Dict[str, Any]] = None
    trips: Tuple[Dict[str, Any], ...] = ()
    current_trip: Optional[Dict[str, Any]] = None
    current_itinerary: Optional[Dict[str, Any]] = None
    expenses: Tuple[Dict[str, Any], ...] = ()
    suggestions: Tuple[Dict[str, Any], ...] = ()
    language: str = "en"
    is_loading: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


# Reducers

def set_user(state: AppState, user: Optional[Dict[str, Any]]) -> AppState:
    return replace(state, user=user)


def set_trips(state: AppState, trips) -> AppState:
    return replace(state, trips=tuple(trips))


def add_trip(state: AppState, trip: Dict[str, Any]) -> AppState:
    return replace(state, trips=state.trips + (trip,))


def update_trip(state: AppState, trip_id, updates: Dict[str, Any]) -> AppState:
    trips = tuple({**t, **updates} if t.get("id") == trip_id else t for t in state.trips)
    current = state.current_trip
    if current is not None and current.get("id") == trip_id:
        current = {**current, **updates}
    return replace(state, trips=trips, current_trip=current)


def delete_trip(state: AppState, trip_id) -> AppState:
    trips = tuple(t for t in state.trips if t.get("id") != trip_id)
    current = state.current_trip
    if current is not None and current.get("id") == trip_id:
        current = None
    return replace(state, trips=trips, current_trip=current)


def set_current_trip(state: AppState, trip: Optional[Dict[str, Any]]) -> AppState:
    return replace(state, current_trip=trip)


def set_itinerary(state: AppState, itinerary: Optional[Dict[str, Any]]) -> AppState:
    return replace(state, current_itinerary=itinerary)


def update_activity_status(state: AppState, activity_id, status: str) -> AppState:
    """Change one activity's status without touching the rest of the itinerary."""
    itinerary = state.current_itinerary
    if itinerary is None:
        return state

    days = [
        {
            **day,
            "activities": [
                {**a, "status": status} if a.get("id") == activity_id else a
                for a in day.get("activities", [])
            ],
        }
        for day in itinerary.get("days", [])
    ]
    return replace(state, current_itinerary={**itinerary, "days": days})


def set_expenses(state: AppState, expenses) -> AppState:
    return replace(state, expenses=tuple(expenses))


def add_expense(state: AppState, expense: Dict[str, Any]) -> AppState:
    return replace(state, expenses=state.expenses + (expense,))


def set_language(state: AppState, language: str) -> AppState:
    return replace(state, language=language)


def set_loading(state: AppState, is_loading: bool) -> AppState:
    return replace(state, is_loading=is_loading)


def set_suggestions(state: AppState, suggestions) -> AppState:
    return replace(state, suggestions=tuple(suggestions))


def decline_suggestion(state: AppState, suggestion_id) -> AppState:
    """Drop one suggestion from the current batch."""
    return replace(state, suggestions=tuple(s for s in state.suggestions if s.get("id") != suggestion_id))


def accept_suggestion(state: AppState, suggestion_id) -> AppState:
    """Accepting ends the session: the whole batch is discarded."""
    if not any(s.get("id") == suggestion_id for s in state.suggestions):
        return state
    return replace(state, suggestions=())


def logout(state: AppState) -> AppState:
    """Clear the session but keep the language preference."""
    return AppState(language=state.language)


# Selectors

def all_activities(state: AppState):
    if state.current_itinerary is None:
        return []
    return [a for day in state.current_itinerary.get("days", []) for a in day.get("activities", [])]


def skipped_activities(state: AppState):
    return [a for a in all_activities(state) if a.get("status") == "skipped"]


def needs_reoptimization(state: AppState) -> bool:
    return _needs_reoptimization(all_activities(state))


def budget_summary(state: AppState, trip_id=None) -> BudgetTotals:
    """Budget totals for the current trip (or ``trip_id``) from cached expenses."""
    if trip_id is None:
        trip = state.current_trip
        target = trip.get("id") if trip else None
    else:
        candidates = state.trips + ((state.current_trip,) if state.current_trip else ())
        trip = next((t for t in candidates if t.get("id") == trip_id), None)
        target = trip_id
    expenses = [
        e for e in state.expenses
        if target is None or e.get("tripId", e.get("trip_id")) == target
    ]
    total_budget = (trip or {}).get("totalBudget", (trip or {}).get("total_budget", 0))
    return summarize_budget(total_budget, expenses)


class JsonFileStorage:
    """Key-value storage in a single JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def get_item(self, key: str) -> Optional[Any]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(data, f, default=str)

    def remove_item(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(data, f, default=str)


class StateStore:
    """Holds the current snapshot and persists it after every dispatch."""

    def __init__(self, storage: Optional[JsonFileStorage] = None, state: Optional[AppState] = None):
        self.storage = storage
        self.state = state or AppState()
        self._listeners = []

    @classmethod
    def load(cls, storage: JsonFileStorage) -> "StateStore":
        """Restore persisted keys from storage."""
        trips = storage.get_item("trips") or []
        expenses = storage.get_item("expenses") or []
        state = AppState(
            user=storage.get_item("user"),
            trips=tuple(trips),
            expenses=tuple(expenses),
            language=storage.get_item("language") or "en",
        )
        return cls(storage=storage, state=state)

    def subscribe(self, listener: Callable[[AppState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def dispatch(self, reducer: Callable[..., AppState], *args, **kwargs) -> AppState:
        self.state = reducer(self.state, *args, **kwargs)
        self.persist()
        for listener in list(self._listeners):
            listener(self.state)
        return self.state

    def persist(self) -> None:
        """Write each persisted key in turn; keys are not written atomically together."""
        if self.storage is None:
            return
        for key in PERSISTED_KEYS:
            value = getattr(self.state, key)
            if isinstance(value, tuple):
                value = list(value)
            if value is None:
                self.storage.remove_item(key)
            else:
                self.storage.set_item(key, value)
