"""Billing domain events."""

from typing import Literal, Optional

from mailwise.core.events.base import DomainEvent
from mailwise.core.events.enums import BillingEventType


class SubscriptionPaidEvent(DomainEvent):
    """A subscription purchase or renewal was paid.

    ``plan_type`` is the raw plan string from the payment metadata; consumers
    resolve it themselves so an unknown value degrades instead of failing
    validation at the webhook boundary.
    """

    event_type: Literal[BillingEventType.SUBSCRIPTION_PAID] = BillingEventType.SUBSCRIPTION_PAID
    plan_type: Optional[str] = None
    source_event_id: Optional[str] = None
    source_event_type: Optional[str] = None
