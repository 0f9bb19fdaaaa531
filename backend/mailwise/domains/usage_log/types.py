"""Usage log domain types and pure helpers."""

from collections import Counter
from typing import Iterable, Optional

from mailwise.core.events.generation import GenerationCompletedEvent
from mailwise.schemas.usage_log import UsageLogCreate, UsageLogEntry, UsageStats

DEFAULT_RECENT_LIMIT = 10
MAX_RECENT_LIMIT = 100


def normalize_recent_limit(limit: Optional[int]) -> int:
    """Clamp a requested page size to 1..MAX_RECENT_LIMIT; missing or < 1 means the default."""
    if limit is None or limit < 1:
        return DEFAULT_RECENT_LIMIT
    return min(limit, MAX_RECENT_LIMIT)


def entry_from_event(event: GenerationCompletedEvent) -> UsageLogCreate:
    """Build the log record for a completed generation."""
    return UsageLogCreate(
        user_id=event.user_id,
        logged_at=event.timestamp,
        kind=event.kind,
        model=event.model,
        language=event.language,
        tone=event.tone,
        length=event.length,
        prompt_length=event.prompt_length,
        response_length=event.response_length,
        input_tokens=event.input_tokens,
        output_tokens=event.output_tokens,
        total_tokens=event.total_tokens,
        processing_time_ms=event.processing_time_ms,
    )


def summarize_entries(entries: Iterable[UsageLogEntry]) -> UsageStats:
    """Aggregate log records into stats. Records without a language are not bucketed."""
    entries = list(entries)
    if not entries:
        return UsageStats()

    by_language = Counter(e.language for e in entries if e.language)
    return UsageStats(
        total_requests=len(entries),
        total_tokens=sum(e.total_tokens for e in entries),
        average_processing_time_ms=sum(e.processing_time_ms for e in entries) / len(entries),
        requests_by_model=dict(Counter(e.model for e in entries)),
        requests_by_kind=dict(Counter(e.kind for e in entries)),
        requests_by_language=dict(by_language),
    )
