"""Event bus adapters."""

from mailwise.adapters.event_bus.fake import FakeEventBus
from mailwise.adapters.event_bus.in_memory import InMemoryEventBus

__all__ = ["FakeEventBus", "InMemoryEventBus"]
