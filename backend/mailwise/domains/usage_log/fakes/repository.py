"""Fake usage log repository for testing."""

from typing import Optional
from uuid import uuid4

from mailwise.domains.usage_log.protocols import UsageLogRepositoryProtocol
from mailwise.domains.usage_log.types import normalize_recent_limit, summarize_entries
from mailwise.schemas.usage_log import UsageLogCreate, UsageLogEntry, UsageStats


class FakeUsageLogRepository(UsageLogRepositoryProtocol):
    """List-backed UsageLogRepositoryProtocol.

    Usage:
        repo = FakeUsageLogRepository()
        await repo.create(UsageLogCreate(...))
        assert len(repo.entries) == 1
    """

    def __init__(self) -> None:
        """Initialize with no records."""
        self.entries: list[UsageLogEntry] = []
        self._error: Optional[Exception] = None

    def fail_with(self, exc: Exception) -> None:
        """Make every call raise *exc*."""
        self._error = exc

    def _maybe_raise(self) -> None:
        if self._error is not None:
            raise self._error

    async def create(self, obj_in: UsageLogCreate) -> UsageLogEntry:
        """Append a record."""
        self._maybe_raise()
        entry = UsageLogEntry(id=uuid4(), **obj_in.model_dump())
        self.entries.append(entry)
        return entry

    async def get_recent(self, user_id: str, limit: Optional[int] = None) -> list[UsageLogEntry]:
        """Return the user's records, newest first."""
        self._maybe_raise()
        owned = [e for e in self.entries if e.user_id == user_id]
        owned.sort(key=lambda e: e.logged_at, reverse=True)
        return owned[: normalize_recent_limit(limit)]

    async def get_stats(self, user_id: str) -> UsageStats:
        """Aggregate the user's records."""
        self._maybe_raise()
        return summarize_entries(e for e in self.entries if e.user_id == user_id)
