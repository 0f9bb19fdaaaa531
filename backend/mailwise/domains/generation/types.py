"""Generation domain types.

A request names the kind of text to produce and the model to bill it on.
Prompt construction and provider specifics live behind TextGeneratorProtocol.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from mailwise.schemas.usage import UsageConsumptionResult

SUMMARY_MODEL = "gpt-4o-mini"
DEFAULT_QUICK_REPLY_MODEL = "gpt-5-nano"


class GenerationKind(str, Enum):
    """What the generator is asked to produce."""

    EMAIL = "email"
    SUMMARY = "summary"
    QUICK_REPLY = "quick_reply"


class GenerationRequest(BaseModel):
    """Input handed to the text generator."""

    model_config = ConfigDict(frozen=True)

    kind: GenerationKind
    model: str
    prompt: str = ""
    context: Optional[dict[str, Any]] = None
    settings: dict[str, Any] = Field(default_factory=dict)


class TokenUsage(BaseModel):
    """Provider-reported token counts."""

    model_config = ConfigDict(frozen=True)

    input: int = 0
    output: int = 0
    total: int = 0


class GenerationResult(BaseModel):
    """Text returned by the generator."""

    model_config = ConfigDict(frozen=True)

    text: str
    model: str
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)


@dataclass(frozen=True)
class MeteredGeneration:
    """A generation result together with the usage decision that admitted it."""

    result: GenerationResult
    usage: UsageConsumptionResult
