"""Core protocols for dependency injection.

Domain-specific protocols (usage store, text generation, plan source) live in
their respective domains/ directories. This module keeps cross-cutting
infrastructure protocols only.
"""

from mailwise.core.protocols.event_bus import DomainEvent, EventBus, EventHandler, EventSubscriber

__all__ = [
    "DomainEvent",
    "EventBus",
    "EventHandler",
    "EventSubscriber",
]
