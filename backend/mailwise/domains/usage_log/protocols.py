"""Usage log domain protocols."""

from typing import Optional, Protocol, runtime_checkable

from mailwise.schemas.usage_log import UsageLogCreate, UsageLogEntry, UsageStats


@runtime_checkable
class UsageLogRepositoryProtocol(Protocol):
    """Append-only storage of usage log records."""

    async def create(self, obj_in: UsageLogCreate) -> UsageLogEntry:
        """Store one record."""
        ...

    async def get_recent(self, user_id: str, limit: Optional[int] = None) -> list[UsageLogEntry]:
        """Return the user's newest records first."""
        ...

    async def get_stats(self, user_id: str) -> UsageStats:
        """Aggregate every record of the user."""
        ...
