"""
Tests for the event bus.

These tests verify the pub/sub mechanism that carries both domain events
and dispatched notifications.
"""

import pytest

from core.config import get_settings
from notifications.event_bus import Event, EventBus, get_event_bus, reset_event_bus


class TestEvent:
    """Tests for Event class."""

    def test_create_event(self):
        event = Event(event_type="TestEvent", source="test-service", payload={"key": "value"})

        assert event.event_type == "TestEvent"
        assert event.source == "test-service"
        assert event.payload == {"key": "value"}
        assert event.event_id is not None
        assert event.timestamp is not None

    def test_event_ids_are_unique(self):
        event1 = Event(event_type="Test", source="test", payload={})
        event2 = Event(event_type="Test", source="test", payload={})

        assert event1.event_id != event2.event_id

    def test_event_str(self):
        event = Event(event_type="AccountSignupEvent", source="sso-event-service", payload={})

        str_repr = str(event)
        assert "AccountSignupEvent" in str_repr
        assert "sso-event-service" in str_repr


class TestEventBus:
    """Tests for EventBus pub/sub functionality."""

    def test_subscribe_and_publish(self, bus: EventBus):
        received = []
        bus.subscribe("TestEvent", received.append)

        count = bus.publish(Event(event_type="TestEvent", source="test", payload={"data": 123}))

        assert count == 1
        assert received[0].payload["data"] == 123

    def test_only_matching_type_is_delivered(self, bus: EventBus):
        received = []
        bus.subscribe("Wanted", received.append)

        bus.publish(Event(event_type="Unwanted", source="test", payload={}))

        assert received == []

    def test_subscribe_all(self, bus: EventBus):
        received = []
        bus.subscribe_all(received.append)

        bus.publish(Event(event_type="One", source="test", payload={}))
        bus.publish(Event(event_type="Two", source="test", payload={}))

        assert [e.event_type for e in received] == ["One", "Two"]

    def test_typed_subscribers_run_before_wildcard(self, bus: EventBus):
        order = []
        bus.subscribe_all(lambda e: order.append("all"))
        bus.subscribe("TestEvent", lambda e: order.append("typed"))

        bus.publish(Event(event_type="TestEvent", source="test", payload={}))

        assert order == ["typed", "all"]

    def test_unsubscribe(self, bus: EventBus):
        received = []
        bus.subscribe("TestEvent", received.append)

        assert bus.unsubscribe("TestEvent", received.append) is True
        assert bus.unsubscribe("TestEvent", received.append) is False

        bus.publish(Event(event_type="TestEvent", source="test", payload={}))
        assert received == []

    def test_failing_handler_does_not_stop_others(self, bus: EventBus):
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe("TestEvent", broken)
        bus.subscribe("TestEvent", received.append)

        count = bus.publish(Event(event_type="TestEvent", source="test", payload={}))

        assert count == 2
        assert len(received) == 1

    def test_no_subscribers(self, bus: EventBus):
        assert bus.publish(Event(event_type="Nobody", source="test", payload={})) == 0

    def test_event_log(self, bus: EventBus):
        bus.publish(Event(event_type="A", source="test", payload={}))
        bus.publish(Event(event_type="B", source="test", payload={}))

        assert len(bus.get_event_log()) == 2
        assert [e.event_type for e in bus.get_event_log("B")] == ["B"]

        bus.clear_event_log()
        assert bus.get_event_log() == []

    def test_event_log_disabled(self):
        bus = EventBus(log_events=False)
        bus.publish(Event(event_type="A", source="test", payload={}))

        assert bus.get_event_log() == []

    def test_event_log_keeps_only_most_recent(self):
        """Long-running buses drop the oldest events once the log is full."""
        bus = EventBus(max_logged_events=3)
        for i in range(10):
            bus.publish(Event(event_type=f"E{i}", source="test", payload={}))

        assert [e.event_type for e in bus.get_event_log()] == ["E7", "E8", "E9"]

    def test_subscriber_count_and_clear(self, bus: EventBus):
        bus.subscribe("A", lambda e: None)
        bus.subscribe("A", lambda e: None)
        assert bus.get_subscriber_count("A") == 2

        bus.clear_subscribers()
        assert bus.get_subscriber_count("A") == 0


class TestSingleton:

    def test_reset_replaces_default_bus(self):
        old = get_event_bus()
        new = reset_event_bus()

        assert new is not old
        assert get_event_bus() is new

    def test_default_bus_log_size_from_settings(self, monkeypatch):
        monkeypatch.setenv("MANAGER_EVENT_LOG_SIZE", "2")
        get_settings.cache_clear()
        try:
            bus = reset_event_bus()
        finally:
            get_settings.cache_clear()

        for event_type in ("A", "B", "C"):
            bus.publish(Event(event_type=event_type, source="test", payload={}))

        assert [e.event_type for e in bus.get_event_log()] == ["B", "C"]

        monkeypatch.delenv("MANAGER_EVENT_LOG_SIZE")
        reset_event_bus()
