"""Names of the events that can travel over the bus.

Names are ``{domain}.{action}``; subscribers match them with glob patterns
such as ``billing.*``.
"""

from enum import Enum
from typing import Union


class BillingEventType(str, Enum):
    """Events derived from payment-provider webhooks."""

    SUBSCRIPTION_PAID = "billing.subscription_paid"


class GenerationEventType(str, Enum):
    """Events emitted by the metered generation service."""

    COMPLETED = "generation.completed"


# Every enum above belongs in this union; DomainEvent rejects anything else.
EventType = Union[BillingEventType, GenerationEventType]
