from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = ['STATE_CHANGED', 'PERIOD_CHANGED', 'BUDGET_ALERT', 'Event', 'EventBus', 'check_budget_handler']


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []

        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in handlers]

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, ()):
            self._subscribers[name].remove(handler)


STATE_CHANGED = "STATE_CHANGED"
PERIOD_CHANGED = "PERIOD_CHANGED"
BUDGET_ALERT = "BUDGET_ALERT"


def check_budget_handler(event: Event, payload: dict) -> dict:
    category = payload.get("category", "")
    planned = payload.get("planned", 0)
    actual = payload.get("actual", 0)

    if planned > 0 and actual > planned:
        return {
            "alert": f"Over budget in {category}: {actual:,.2f} of {planned:,.2f} spent",
            "category": category,
            "over_by": actual - planned,
        }
    return {}
