"""Event bus: synchronous pub/sub with a bounded event history.

The engines publish every state change here; renderers, loggers and tests
subscribe. Delivery is synchronous and each handler runs in isolation, so
a failing subscriber can never break the simulation or starve the
subscribers after it.
"""

import json
import logging
import time
from collections import deque
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from starcombat.models.combat import CombatEvent

logger = logging.getLogger(__name__)

WILDCARD = "*"

Handler = Callable[[CombatEvent], Any]
EventKey = Union[str, Enum]


def _key(event_type: EventKey) -> str:
    """Event types may be given as EventType members or raw strings."""
    if isinstance(event_type, Enum):
        return event_type.value
    return event_type


def _preview(data: Any, limit: int = 100) -> str:
    try:
        text = json.dumps(data, default=str)
    except (TypeError, ValueError):
        text = repr(data)
    return text[:limit]


class EventBus:
    """Typed pub/sub with replayable history."""

    def __init__(self, max_log_size: int = 1000, debug: bool = False):
        """
        Args:
            max_log_size: Maximum events to retain (oldest evicted first)
            debug: Log every published event at INFO level
        """
        if max_log_size < 1:
            raise ValueError("max_log_size must be >= 1")
        self.max_log_size = max_log_size
        self.debug = debug
        self.subscribers: dict[str, list[Handler]] = {}
        self.event_log: deque[CombatEvent] = deque(maxlen=max_log_size)
        self.event_counter = 0

    # ===== Subscriptions =====

    def subscribe(self, event_type: EventKey, handler: Handler) -> Callable[[], None]:
        """
        Register a handler for one event type, or ``"*"`` for every event.

        Returns:
            A function that removes this subscription
        """
        key = _key(event_type)
        self.subscribers.setdefault(key, []).append(handler)
        return lambda: self.unsubscribe(key, handler)

    def subscribe_many(self, subscriptions: Mapping[EventKey, Handler]) -> Callable[[], None]:
        """Subscribe several handlers at once. Returns an unsubscribe-all function."""
        unsubscribers = [
            self.subscribe(event_type, handler)
            for event_type, handler in subscriptions.items()
        ]

        def unsubscribe_all() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return unsubscribe_all

    def unsubscribe(self, event_type: EventKey, handler: Handler) -> None:
        """Remove one registration of a handler. Unknown handlers are ignored."""
        handlers = self.subscribers.get(_key(event_type))
        if handlers and handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, event_type: EventKey) -> int:
        """Number of handlers registered for an event type."""
        return len(self.subscribers.get(_key(event_type), []))

    # ===== Publishing =====

    def publish(self, event_type: EventKey, data: Any = None) -> CombatEvent:
        """
        Record an event and deliver it to subscribers.

        Handlers for the exact type run first, in subscription order, then
        wildcard handlers. Exceptions raised by a handler are logged and
        swallowed.

        Returns:
            The created event
        """
        key = _key(event_type)
        event = CombatEvent(
            id=self.event_counter,
            type=key,
            data={} if data is None else data,
            timestamp=time.time(),
        )
        self.event_counter += 1
        self.event_log.append(event)

        if self.debug:
            logger.info("[EventBus] %s: %s", key, _preview(event.data))

        # Copy so handlers may unsubscribe while being notified
        for handler in list(self.subscribers.get(key, [])):
            self._deliver(handler, event, key)
        if key != WILDCARD:
            for handler in list(self.subscribers.get(WILDCARD, [])):
                self._deliver(handler, event, WILDCARD)

        return event

    def _deliver(self, handler: Handler, event: CombatEvent, bucket: str) -> None:
        try:
            handler(event)
        except Exception as e:
            if bucket == WILDCARD:
                logger.error(f"[EventBus] Wildcard handler error for {event.type}: {e}", exc_info=True)
            else:
                logger.error(f"[EventBus] Handler error for {event.type}: {e}", exc_info=True)

    # ===== History =====

    def replay(self, from_id: int = 0, filter_type: Optional[EventKey] = None) -> list[CombatEvent]:
        """Logged events with ``id >= from_id``, oldest first, optionally of one type."""
        events = [e for e in self.event_log if e.id >= from_id]
        if filter_type is not None:
            wanted = _key(filter_type)
            events = [e for e in events if e.type == wanted]
        return events

    def get_events_by_type(self, event_type: EventKey) -> list[CombatEvent]:
        """All logged events of one type."""
        wanted = _key(event_type)
        return [e for e in self.event_log if e.type == wanted]

    def get_recent_events(self, count: int = 10) -> list[CombatEvent]:
        """The last ``count`` logged events."""
        if count <= 0:
            return []
        return list(self.event_log)[-count:]

    @property
    def event_count(self) -> int:
        """Number of events currently retained."""
        return len(self.event_log)

    # ===== Lifecycle =====

    def clear_log(self) -> None:
        self.event_log.clear()

    def clear_subscribers(self) -> None:
        self.subscribers.clear()

    def reset(self) -> None:
        """Forget history, subscribers and the id counter. Between simulations only."""
        self.clear_log()
        self.clear_subscribers()
        self.event_counter = 0
