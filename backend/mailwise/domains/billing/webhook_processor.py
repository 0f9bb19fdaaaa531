"""Webhook processor for payment-provider billing events.

A paid invoice resets the subscriber's usage for the month it was paid in and
is then announced on the event bus as a ``SubscriptionPaidEvent``. The reset
runs in the request: if it fails, ``process_event`` raises so the provider
sees a failed delivery and retries. Everything else is logged and ignored.
"""

from typing import Any, Mapping, Optional

from pydantic import ValidationError

from mailwise.core.events.billing import SubscriptionPaidEvent
from mailwise.core.logging import ContextualLogger, logger
from mailwise.core.protocols.event_bus import EventBus
from mailwise.domains.billing.exceptions import InvalidWebhookPayloadError
from mailwise.domains.billing.protocols import BillingWebhookProtocol
from mailwise.domains.billing.types import PaymentEvent, extract_subscriber
from mailwise.domains.usage.protocols import UsageTrackerProtocol
from mailwise.domains.usage.types import ResetReason, resolve_plan_type


class BillingWebhookProcessor(BillingWebhookProtocol):
    """Apply verified payment events to usage and publish them as domain events."""

    def __init__(self, event_bus: EventBus, usage_tracker: UsageTrackerProtocol) -> None:
        """Initialize with the event bus and the usage tracker to reset."""
        self._event_bus = event_bus
        self._usage_tracker = usage_tracker

        # Event handler mapping. One event per payment: invoice.paid covers
        # first payments, renewals and $0 invoices.
        self.handlers = {
            "invoice.paid": self._handle_invoice_paid,
        }

    async def process_event(self, payload: Mapping[str, Any]) -> Optional[SubscriptionPaidEvent]:
        """Process a verified webhook payload.

        Returns:
            The published event, or None when the event was ignored or had
            already been applied.

        Raises:
            InvalidWebhookPayloadError: the payload is not an event envelope.
            UsageStoreError: the usage reset could not be written.
        """
        try:
            event = PaymentEvent.model_validate(dict(payload))
        except ValidationError as e:
            raise InvalidWebhookPayloadError(f"Invalid webhook payload: {e}") from e

        log = logger.with_context(event_id=event.id, event_type=event.type)
        handler = self.handlers.get(event.type)
        if handler is None:
            log.info(f"Unhandled webhook event type: {event.type}")
            return None

        try:
            log.info(f"Processing webhook event: {event.type}")
            return await handler(event, log)
        except Exception as e:
            log.error(f"Error handling {event.type}: {e}", exc_info=True)
            raise

    async def _handle_invoice_paid(
        self, event: PaymentEvent, log: ContextualLogger
    ) -> Optional[SubscriptionPaidEvent]:
        """Reset usage for the user named in the metadata, then announce the payment."""
        user_id, plan_type = extract_subscriber(event.data.object)
        if not user_id:
            log.warning("Payment event has no user id in metadata, skipping")
            return None

        log = log.with_context(user_id=user_id, plan_type=plan_type)
        applied = await self._usage_tracker.reset_usage(
            user_id,
            resolve_plan_type(plan_type),
            ResetReason.SUBSCRIPTION,
            event.occurred_at,
            source_event_id=event.id,
        )
        if not applied:
            log.info("Payment event already applied, skipping")
            return None

        domain_event = SubscriptionPaidEvent(
            user_id=user_id,
            plan_type=plan_type,
            timestamp=event.occurred_at,
            source_event_id=event.id,
            source_event_type=event.type,
        )
        await self._event_bus.publish(domain_event)
        log.info("Subscription payment applied")
        return domain_event
