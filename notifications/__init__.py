"""
Event-driven notifications for the API manager.

This package implements the notification pipeline:
- Domain events are published on the in-process event bus
- Producers turn the events they care about into notification requests
- The NotificationService stores one notification per recipient and dispatches it
- Handlers (email) consume dispatched notifications

Import the pieces from their modules; core.data_store depends on
notifications.models, so this package keeps its own imports light.
"""

from notifications.event_bus import Event, EventBus, get_event_bus, reset_event_bus

__all__ = [
    "Event",
    "EventBus",
    "get_event_bus",
    "reset_event_bus",
]
