"""Event bus protocols.

Producers (the billing webhook processor) publish; consumers (the usage
listener) subscribe by glob pattern at container build time. Neither side
imports the other.
"""

from datetime import datetime
from typing import Awaitable, Callable, List, Protocol, runtime_checkable


@runtime_checkable
class DomainEvent(Protocol):
    """What the bus needs from an event: a routable name, a time and an owner."""

    @property
    def event_type(self) -> str:
        """``{domain}.{action}`` name, e.g. ``billing.subscription_paid``."""
        ...

    @property
    def timestamp(self) -> datetime:
        """When the event happened, in UTC."""
        ...

    @property
    def user_id(self) -> str:
        """The user the event is about."""
        ...


EventHandler = Callable[[DomainEvent], Awaitable[None]]


@runtime_checkable
class EventSubscriber(Protocol):
    """Object that knows which events it wants and how to handle them.

    ``handle`` must not raise for business failures; the bus logs whatever
    escapes, but a subscriber is expected to log with its own context first.
    """

    EVENT_PATTERNS: List[str]

    async def handle(self, event: DomainEvent) -> None:
        """React to one event whose name matched an EVENT_PATTERNS entry."""
        ...


@runtime_checkable
class EventBus(Protocol):
    """Publish/subscribe by glob pattern over event names."""

    async def publish(self, event: DomainEvent) -> None:
        """Hand *event* to every handler whose pattern matches its name."""
        ...

    def subscribe(self, event_pattern: str, handler: EventHandler) -> None:
        """Add *handler* for events whose name matches *event_pattern*."""
        ...
