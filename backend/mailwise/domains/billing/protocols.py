"""Billing domain protocols."""

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from mailwise.core.events.billing import SubscriptionPaidEvent


@runtime_checkable
class BillingWebhookProtocol(Protocol):
    """Single method for payment webhook event processing."""

    async def process_event(self, payload: Mapping[str, Any]) -> Optional[SubscriptionPaidEvent]:
        """Process an already verified event. Returns the published event, if any."""
        ...
