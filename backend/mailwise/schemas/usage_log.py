"""Usage log schemas: one record per completed generation, and per-user stats."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UsageLogCreate(BaseModel):
    """Fields recorded for a completed generation."""

    user_id: str = Field(..., min_length=1)
    logged_at: datetime
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


class UsageLogEntry(UsageLogCreate):
    """A stored usage log record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID


class UsageStats(BaseModel):
    """Aggregates over every usage log record of one user."""

    total_requests: int = 0
    total_tokens: int = 0
    average_processing_time_ms: float = 0.0
    requests_by_model: dict[str, int] = Field(default_factory=dict)
    requests_by_kind: dict[str, int] = Field(default_factory=dict)
    requests_by_language: dict[str, int] = Field(default_factory=dict)
