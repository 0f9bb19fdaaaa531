"""Usage log listener — records every completed generation."""

from typing import List

from mailwise.core.events.base import DomainEvent
from mailwise.core.events.generation import GenerationCompletedEvent
from mailwise.core.logging import logger
from mailwise.core.protocols.event_bus import EventSubscriber
from mailwise.domains.usage_log.protocols import UsageLogRepositoryProtocol
from mailwise.domains.usage_log.types import entry_from_event


class UsageLogListener(EventSubscriber):
    """Subscriber that writes one usage log record per ``GenerationCompletedEvent``.

    Write failures propagate to the bus, which logs them; the generation that
    produced the event has already been returned to the user.
    """

    EVENT_PATTERNS: List[str] = ["generation.*"]

    def __init__(self, repo: UsageLogRepositoryProtocol) -> None:
        """Initialize with the usage log repository."""
        self._repo = repo

    async def handle(self, event: DomainEvent) -> None:
        """Record completed generations; ignore other generation events."""
        if not isinstance(event, GenerationCompletedEvent):
            return
        entry = await self._repo.create(entry_from_event(event))
        logger.with_context(user_id=event.user_id, kind=event.kind, model=event.model).debug(
            f"Usage log recorded: {entry.id}"
        )
