"""
In-process event bus.

Two kinds of traffic share this bus:
- domain events (an account signed up, a client asked for an API plan), which
  notification producers listen for
- dispatched notifications, which delivery handlers such as email listen for

Design decisions:
- Synchronous delivery in subscription order
- Subscriptions are keyed by an event type string, "*" receives everything
- A failing handler is logged and does not stop the remaining handlers
- Subscriber lists are guarded by a lock since REST handlers run in a threadpool
- The event log only keeps the most recent events
"""

import logging
import threading
from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional
from uuid import uuid4

from core.config import get_settings

logger = logging.getLogger("event_bus")

ALL_EVENTS = "*"


@dataclass(frozen=True)
class Event:
    """
    Envelope for anything sent over the bus.

    ``event_type`` is the routing key and ``payload`` the JSON form of the
    domain event or notification being carried. Subscribers must not mutate
    the payload: every subscriber of one publish sees the same dict.
    """
    event_type: str
    payload: dict[str, Any]
    source: str
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def __str__(self) -> str:
        return f"{self.event_type}[{self.event_id[:8]}] from {self.source}"


EventHandler = Callable[[Event], None]


class EventBus:
    """
    Simple in-memory pub/sub bus.

    Example usage:
        bus = EventBus()

        def on_signup(event):
            print(f"New account: {event.payload['username']}")
        bus.subscribe("AccountSignupEvent", on_signup)

        bus.publish(Event(
            event_type="AccountSignupEvent",
            source="sso-event-service",
            payload={"username": "jdoe"},
        ))
    """

    def __init__(self, log_events: bool = True, max_logged_events: int = 1000):
        self._subscribers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

        # Most recent publishes, for debugging and tests; oldest dropped first
        self._event_log: deque[Event] = deque(maxlen=max_logged_events)
        self._log_events = log_events

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """
        Subscribe to events of a specific type.

        The same handler subscribed twice is called twice.
        """
        with self._lock:
            self._subscribers[event_type].append(handler)
        logger.debug(f"Subscribed handler to '{event_type}' events")

    def subscribe_all(self, handler: EventHandler) -> None:
        """Subscribe to every event regardless of type (auditing, debugging)."""
        self.subscribe(ALL_EVENTS, handler)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> bool:
        """
        Remove a handler from an event type.

        Returns:
            True if the handler was found and removed, False otherwise
        """
        with self._lock:
            try:
                self._subscribers[event_type].remove(handler)
            except ValueError:
                return False
        logger.debug(f"Unsubscribed handler from '{event_type}' events")
        return True

    def publish(self, event: Event) -> int:
        """
        Deliver an event to its subscribers, then to the "*" subscribers.

        Returns:
            Number of handlers that received the event
        """
        with self._lock:
            if self._log_events:
                self._event_log.append(event)
            handlers = list(self._subscribers.get(event.event_type, []))
            handlers += self._subscribers.get(ALL_EVENTS, [])

        logger.info(f"Publishing: {event}")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.exception(f"Handler raised exception for {event}: {e}")

        if not handlers:
            logger.debug(f"No handlers for event type '{event.event_type}'")

        return len(handlers)

    def get_subscriber_count(self, event_type: str) -> int:
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def get_event_log(self, event_type: Optional[str] = None) -> list[Event]:
        """Get published events, optionally only those of one type."""
        with self._lock:
            if event_type is None:
                return list(self._event_log)
            return [e for e in self._event_log if e.event_type == event_type]

    def clear_event_log(self) -> None:
        with self._lock:
            self._event_log.clear()

    def clear_subscribers(self) -> None:
        """Remove all subscribers (useful for testing)."""
        with self._lock:
            self._subscribers.clear()


_default_bus: Optional[EventBus] = None


def get_event_bus() -> EventBus:
    """Get the default event bus singleton."""
    global _default_bus
    if _default_bus is None:
        _default_bus = EventBus(max_logged_events=get_settings().EVENT_LOG_SIZE)
    return _default_bus


def reset_event_bus() -> EventBus:
    """Replace the default event bus with a fresh one (useful for testing)."""
    global _default_bus
    _default_bus = EventBus(max_logged_events=get_settings().EVENT_LOG_SIZE)
    return _default_bus
