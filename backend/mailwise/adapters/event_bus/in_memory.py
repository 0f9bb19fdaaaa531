"""In-process event bus.

Billing webhooks and the usage listener live in the same process, so events
are handed straight to the matching handlers without any queue in between.
"""

import asyncio
import fnmatch
import logging
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from mailwise.core.protocols.event_bus import DomainEvent, EventHandler, EventSubscriber

# Plain stdlib logger: mailwise.core.logging imports settings, which must not load here
logger = logging.getLogger(__name__)


def routing_key(event: "DomainEvent") -> str:
    """Return the dotted event name the subscription patterns are matched against."""
    event_type = event.event_type
    return getattr(event_type, "value", event_type)


def _handler_name(handler: "EventHandler") -> str:
    owner = getattr(handler, "__self__", None)
    if owner is not None:
        return f"{type(owner).__name__}.{handler.__name__}"
    return getattr(handler, "__qualname__", repr(handler))


class _Subscription(NamedTuple):
    pattern: str
    handler: "EventHandler"
    name: str


class InMemoryEventBus:
    """Glob-routed fan-out to async handlers.

    Implements the EventBus protocol. All handlers matching an event run
    concurrently; a handler that raises is logged and does not stop the rest.

    Usage:
        bus = InMemoryEventBus()
        bus.register(UsageLogListener(usage_log_repo))
        await bus.publish(GenerationCompletedEvent(user_id="u1", kind="email", model="gpt-5"))
    """

    def __init__(self) -> None:
        """Start with no subscriptions."""
        self._subscriptions: list[_Subscription] = []

    def subscribe(self, event_pattern: str, handler: "EventHandler") -> None:
        """Route events whose name matches *event_pattern* (e.g. ``billing.*``) to *handler*."""
        subscription = _Subscription(event_pattern, handler, _handler_name(handler))
        self._subscriptions.append(subscription)
        logger.debug(f"EventBus: {subscription.name} listening on '{event_pattern}'")

    def register(self, subscriber: "EventSubscriber") -> None:
        """Subscribe ``subscriber.handle`` to every pattern in its EVENT_PATTERNS."""
        for pattern in subscriber.EVENT_PATTERNS:
            self.subscribe(pattern, subscriber.handle)

    @property
    def patterns(self) -> list[str]:
        """Patterns currently subscribed, in registration order."""
        return [subscription.pattern for subscription in self._subscriptions]

    async def publish(self, event: "DomainEvent") -> None:
        """Deliver *event* to every matching handler and wait for all of them."""
        name = routing_key(event)
        targets = [s for s in self._subscriptions if fnmatch.fnmatch(name, s.pattern)]

        if not targets:
            logger.warning(f"EventBus: no subscribers for '{name}' (user {event.user_id})")
            return

        logger.debug(f"EventBus: '{name}' -> {[s.name for s in targets]}")

        outcomes = await asyncio.gather(
            *(s.handler(event) for s in targets),
            return_exceptions=True,
        )

        for subscription, outcome in zip(targets, outcomes):
            if isinstance(outcome, Exception):
                logger.error(
                    f"EventBus: subscriber failed for '{name}' in {subscription.name}: {outcome}",
                    exc_info=outcome,
                )
