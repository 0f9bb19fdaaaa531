"""Common shape of every event published on the bus."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from mailwise.core.events.enums import EventType


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainEvent(BaseModel):
    """Immutable, validated event about one user.

    ``timestamp`` is when the thing happened, not when it was published;
    producers that know the real time (e.g. a payment provider's ``created``)
    pass it explicitly so month-scoped consumers act on the right period.
    """

    model_config = ConfigDict(frozen=True)

    event_type: EventType
    timestamp: datetime = Field(default_factory=_utcnow)
    user_id: str = Field(..., min_length=1)
