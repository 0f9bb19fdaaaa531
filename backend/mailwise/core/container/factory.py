"""Container factory.

Builds the container from settings: picks the storage backend for the usage
counters and the usage log, and wires event subscribers onto the bus.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailwise.adapters.event_bus.in_memory import InMemoryEventBus
from mailwise.core.config import Settings, UsageStoreBackendType
from mailwise.core.container.container import Container
from mailwise.core.logging import logger
from mailwise.core.protocols import EventBus
from mailwise.db.session import build_async_engine, build_session_factory
from mailwise.domains.billing.webhook_processor import BillingWebhookProcessor
from mailwise.domains.usage.fakes.store import InMemoryUsageCounterStore
from mailwise.domains.usage.protocols import UsageCounterStoreProtocol
from mailwise.domains.usage.repository import UsageCounterRepository
from mailwise.domains.usage.tracker import UsageTracker
from mailwise.domains.usage_log.fakes.repository import FakeUsageLogRepository
from mailwise.domains.usage_log.protocols import UsageLogRepositoryProtocol
from mailwise.domains.usage_log.repository import UsageLogRepository
from mailwise.domains.usage_log.subscribers.generation_listener import UsageLogListener


def create_container(settings: Settings) -> Container:
    """Build container with environment-appropriate implementations.

    Args:
        settings: Application settings (from core/config)

    Returns:
        Fully constructed Container ready for use
    """
    # -----------------------------------------------------------------
    # Storage
    # Postgres in deployed environments, in-memory for local runs and tests.
    # Both repositories share one engine.
    # -----------------------------------------------------------------
    session_factory = _create_session_factory(settings)
    usage_store = _create_usage_store(settings, session_factory)
    usage_log_repo = _create_usage_log_repo(session_factory)
    usage_tracker = UsageTracker(store=usage_store)

    # -----------------------------------------------------------------
    # Event Bus
    # Fans out completed generations to the usage log.
    # -----------------------------------------------------------------
    event_bus = _create_event_bus(usage_log_repo)

    # -----------------------------------------------------------------
    # Billing webhooks
    # Resets usage in-request so a failed reset fails the webhook.
    # -----------------------------------------------------------------
    billing_webhook = BillingWebhookProcessor(event_bus=event_bus, usage_tracker=usage_tracker)

    return Container(
        event_bus=event_bus,
        usage_store=usage_store,
        usage_tracker=usage_tracker,
        usage_log_repo=usage_log_repo,
        billing_webhook=billing_webhook,
    )


def _create_session_factory(
    settings: Settings,
) -> Optional[async_sessionmaker[AsyncSession]]:
    """Build the session factory, or None when USAGE_STORE_BACKEND=memory."""
    if settings.USAGE_STORE_BACKEND == UsageStoreBackendType.MEMORY:
        logger.warning("Using in-memory usage storage; counters and logs are not persisted")
        return None
    return build_session_factory(build_async_engine(settings))


def _create_usage_store(
    settings: Settings,
    session_factory: Optional[async_sessionmaker[AsyncSession]],
) -> UsageCounterStoreProtocol:
    """Create the usage counter store for the selected backend."""
    if session_factory is None:
        return InMemoryUsageCounterStore()
    return UsageCounterRepository(
        session_factory=session_factory,
        max_attempts=settings.USAGE_TX_MAX_ATTEMPTS,
    )


def _create_usage_log_repo(
    session_factory: Optional[async_sessionmaker[AsyncSession]],
) -> UsageLogRepositoryProtocol:
    """Create the usage log repository for the selected backend."""
    if session_factory is None:
        return FakeUsageLogRepository()
    return UsageLogRepository(session_factory=session_factory)


def _create_event_bus(usage_log_repo: UsageLogRepositoryProtocol) -> EventBus:
    """Create event bus with subscribers wired up.

    The event bus fans out domain events to:
    - UsageLogListener: completed generations become usage log records
    """
    bus = InMemoryEventBus()

    bus.register(UsageLogListener(usage_log_repo))

    return bus
