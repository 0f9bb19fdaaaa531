"""Dependency Injection Container.

The container is a simple immutable dataclass that holds protocol implementations.
It has no construction logic; that belongs in the factory.
"""

from dataclasses import dataclass

from mailwise.core.protocols import EventBus
from mailwise.domains.billing.protocols import BillingWebhookProtocol
from mailwise.domains.usage.protocols import UsageCounterStoreProtocol, UsageTrackerProtocol
from mailwise.domains.usage_log.protocols import UsageLogRepositoryProtocol


@dataclass(frozen=True)
class Container:
    """Immutable container holding the process-wide protocol implementations.

    Usage:
        # Production: built once by initialize_container()
        from mailwise.core import container as wiring
        result = await wiring.container.usage_tracker.consume_usage(...)

        # Testing: construct directly with fakes
        test_container = Container(
            event_bus=FakeEventBus(),
            usage_store=InMemoryUsageCounterStore(),
            usage_tracker=FakeUsageTracker(),
            usage_log_repo=FakeUsageLogRepository(),
            billing_webhook=BillingWebhookProcessor(FakeEventBus(), FakeUsageTracker()),
        )
    """

    # Event bus for domain event fan-out
    event_bus: EventBus

    # Usage domain
    usage_store: UsageCounterStoreProtocol
    usage_tracker: UsageTrackerProtocol

    # Usage log domain (generation.* events)
    usage_log_repo: UsageLogRepositoryProtocol

    # Billing webhooks: usage resets, then billing.* events
    billing_webhook: BillingWebhookProtocol
