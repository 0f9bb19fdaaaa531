"""Generation domain events."""

from typing import Literal, Optional

from pydantic import Field

from mailwise.core.events.base import DomainEvent
from mailwise.core.events.enums import GenerationEventType


class GenerationCompletedEvent(DomainEvent):
    """A metered generation finished and its quota was kept.

    Carries what the usage log records about the request. ``language``,
    ``tone`` and ``length`` are the user's generation settings, when given.
    """

    event_type: Literal[GenerationEventType.COMPLETED] = GenerationEventType.COMPLETED
    kind: str
    model: str
    language: Optional[str] = None
    tone: Optional[str] = None
    length: Optional[str] = None
    prompt_length: int = Field(0, ge=0)
    response_length: int = Field(0, ge=0)
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    total_tokens: int = Field(0, ge=0)
    processing_time_ms: int = Field(0, ge=0)
