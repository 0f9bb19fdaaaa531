"""Domain events published on the event bus."""

from mailwise.core.events.base import DomainEvent
from mailwise.core.events.billing import SubscriptionPaidEvent
from mailwise.core.events.enums import BillingEventType, EventType, GenerationEventType
from mailwise.core.events.generation import GenerationCompletedEvent

__all__ = [
    "BillingEventType",
    "DomainEvent",
    "EventType",
    "GenerationCompletedEvent",
    "GenerationEventType",
    "SubscriptionPaidEvent",
]
