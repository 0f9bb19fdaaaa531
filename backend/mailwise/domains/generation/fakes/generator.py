"""Fake text generator for testing."""

from typing import Optional

from mailwise.domains.generation.protocols import TextGeneratorProtocol
from mailwise.domains.generation.types import GenerationRequest, GenerationResult, TokenUsage


class FakeTextGenerator(TextGeneratorProtocol):
    """Returns canned text and records every request.

    Usage:
        generator = FakeTextGenerator(text="Hi!")
        generator.fail_with(RuntimeError("provider down"))
    """

    def __init__(self, text: str = "generated text") -> None:
        """Initialize with the text to return."""
        self._text = text
        self._error: Optional[Exception] = None
        self.requests: list[GenerationRequest] = []

    def fail_with(self, exc: Optional[Exception]) -> None:
        """Raise *exc* on every call; pass None to stop failing."""
        self._error = exc

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Record the request and return the canned text."""
        self.requests.append(request)
        if self._error is not None:
            raise self._error
        return GenerationResult(
            text=self._text,
            model=request.model,
            tokens_used=TokenUsage(input=10, output=20, total=30),
        )
