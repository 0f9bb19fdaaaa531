"""Recording event bus for tests."""

import fnmatch
from typing import TYPE_CHECKING, Optional

from mailwise.adapters.event_bus.in_memory import routing_key

if TYPE_CHECKING:
    from mailwise.core.protocols.event_bus import DomainEvent, EventHandler, EventSubscriber


class FakeEventBus:
    """EventBus that keeps every published event for later assertions.

    Handlers are only invoked when ``call_subscribers=True``, and then one at
    a time in registration order so test failures surface directly.

    Usage:
        bus = FakeEventBus()
        await BillingWebhookProcessor(bus, FakeUsageTracker()).process_event(payload)

        event = bus.get_event("billing.subscription_paid")
        assert event.user_id == "user-1"
    """

    def __init__(self, call_subscribers: bool = False) -> None:
        """Create an empty recorder; set *call_subscribers* to also run handlers."""
        self.events: list["DomainEvent"] = []
        self._handlers: list[tuple[str, "EventHandler"]] = []
        self._call_subscribers = call_subscribers

    def subscribe(self, event_pattern: str, handler: "EventHandler") -> None:
        """Remember the handler; it runs only when call_subscribers is set."""
        self._handlers.append((event_pattern, handler))

    def register(self, subscriber: "EventSubscriber") -> None:
        """Subscribe ``subscriber.handle`` to each of its EVENT_PATTERNS."""
        for pattern in subscriber.EVENT_PATTERNS:
            self.subscribe(pattern, subscriber.handle)

    async def publish(self, event: "DomainEvent") -> None:
        """Record *event*, then run matching handlers if enabled."""
        self.events.append(event)
        if not self._call_subscribers:
            return
        name = routing_key(event)
        for pattern, handler in self._handlers:
            if fnmatch.fnmatch(name, pattern):
                await handler(event)

    # Assertions

    def get_events(self, event_type: str, user_id: Optional[str] = None) -> list["DomainEvent"]:
        """Events named *event_type*, optionally only those for *user_id*."""
        return [
            e
            for e in self.events
            if routing_key(e) == event_type and (user_id is None or e.user_id == user_id)
        ]

    def has_event(self, event_type: str, user_id: Optional[str] = None) -> bool:
        """Whether at least one matching event was published."""
        return bool(self.get_events(event_type, user_id))

    def get_event(self, event_type: str, user_id: Optional[str] = None) -> "DomainEvent":
        """First matching event; AssertionError if there is none."""
        matches = self.get_events(event_type, user_id)
        if not matches:
            raise AssertionError(f"No '{event_type}' event was published")
        return matches[0]

    def assert_not_published(self, event_type: str) -> None:
        """Fail if any event named *event_type* was published."""
        if self.has_event(event_type):
            raise AssertionError(f"Unexpected '{event_type}' event was published")

    def clear(self) -> None:
        """Forget recorded events (handlers stay subscribed)."""
        self.events.clear()
