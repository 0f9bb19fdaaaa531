"""Generation domain protocols."""

from typing import Optional, Protocol, runtime_checkable

from mailwise.domains.generation.types import GenerationRequest, GenerationResult


@runtime_checkable
class TextGeneratorProtocol(Protocol):
    """Opaque LLM provider."""

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Produce text for *request*."""
        ...


@runtime_checkable
class PlanSourceProtocol(Protocol):
    """Lookup of a user's stored subscription plan."""

    async def get_plan_type(self, user_id: str) -> Optional[str]:
        """Return the raw plan string on record, or None."""
        ...
