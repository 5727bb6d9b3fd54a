# server/core/events.py
"""
Event Bus - in-process pub/sub between services and the real-time channel

Services emit events without knowing who listens. Delivery is best-effort
and at-most-once: a failing handler is logged and skipped, nothing is
retried or replayed.
"""

import inspect
import itertools
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class EventPriority(Enum):
    """Lower value runs first"""
    HIGH = 1
    NORMAL = 5
    LOW = 10


@dataclass
class Event:
    event_type: str
    payload: Dict[str, Any]
    source: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)


# (priority value, subscription order, handler)
_Subscription = Tuple[int, int, Callable]


class EventBus:
    """
    Pub/sub owned by one application instance

    Handlers may be plain functions or coroutines. For one event type they
    run by priority, then in subscription order. The last `max_history_size`
    events are kept for inspection.
    """

    def __init__(self, max_history_size: int = 1000):
        self._subscriptions: Dict[str, List[_Subscription]] = {}
        self._history: Deque[Event] = deque(maxlen=max_history_size)
        self._order = itertools.count()

    def subscribe(
        self,
        event_type: str,
        handler: Callable,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> None:
        subscriptions = self._subscriptions.setdefault(event_type, [])
        subscriptions.append((priority.value, next(self._order), handler))
        subscriptions.sort(key=lambda s: s[:2])
        logger.debug(f"{_name(handler)} subscribed to {event_type} ({priority.name})")

    def unsubscribe(self, event_type: str, handler: Callable) -> bool:
        subscriptions = self._subscriptions.get(event_type)
        if not subscriptions:
            return False
        remaining = [s for s in subscriptions if s[2] != handler]
        self._subscriptions[event_type] = remaining
        return len(remaining) != len(subscriptions)

    async def publish(self, event: Event) -> None:
        self._history.append(event)
        for _, _, handler in list(self._subscriptions.get(event.event_type, ())):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"{_name(handler)} failed on {event.event_type} (id={event.event_id})")

    async def emit(self, event_type: str, payload: Dict[str, Any], source: Optional[str] = None) -> Event:
        event = Event(event_type=event_type, payload=payload, source=source)
        await self.publish(event)
        return event

    def get_history(self, event_type: Optional[str] = None, limit: int = 100) -> List[Event]:
        events = [e for e in self._history if event_type is None or e.event_type == event_type]
        return events[-limit:]

    def get_subscriptions(self) -> Dict[str, int]:
        return {event_type: len(subs) for event_type, subs in self._subscriptions.items()}

    def clear(self) -> None:
        self._subscriptions.clear()
        self._history.clear()


def _name(handler: Callable) -> str:
    return getattr(handler, "__qualname__", repr(handler))
