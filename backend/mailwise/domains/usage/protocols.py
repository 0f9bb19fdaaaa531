"""Usage domain protocols — split into storage and tracking concerns.

UsageCounterStoreProtocol: transactional access to one counter record per
(user, period).
UsageTrackerProtocol: the quota decisions request handlers call.
"""

from datetime import datetime
from typing import Awaitable, Callable, Optional, Protocol, TypeVar, runtime_checkable

from mailwise.domains.usage.counter import UsageCounter
from mailwise.schemas.usage import Plan, ResetReason, UsageConsumptionResult, UsageSummary

T = TypeVar("T")


class CounterTransaction(Protocol):
    """Read/write handle on a single counter inside a store transaction."""

    async def get(self) -> Optional[UsageCounter]:
        """Read the counter as of the transaction snapshot. None when absent."""
        ...

    def set(self, counter: UsageCounter) -> None:
        """Stage an upsert of the counter, applied when the transaction commits."""
        ...


TransactionBody = Callable[[CounterTransaction], Awaitable[T]]


@runtime_checkable
class UsageCounterStoreProtocol(Protocol):
    """Persistence for usage counters addressed by (user_id, period_key)."""

    async def load(
        self, user_id: str, period_key: str, *, as_of: Optional[datetime] = None
    ) -> Optional[UsageCounter]:
        """Read a counter outside of a transaction. None when absent."""
        ...

    async def save(self, user_id: str, period_key: str, counter: UsageCounter) -> None:
        """Create or overwrite a counter."""
        ...

    async def run_transaction(
        self,
        user_id: str,
        period_key: str,
        fn: TransactionBody[T],
        *,
        as_of: Optional[datetime] = None,
    ) -> T:
        """Run *fn* atomically against one counter and return its result.

        Concurrent transactions on the same counter are serialized; the body
        may run more than once if the store detects a write conflict, so it
        must not have side effects outside the transaction handle. If *fn*
        raises, nothing is written.
        """
        ...


@runtime_checkable
class UsageTrackerProtocol(Protocol):
    """Per-user, per-month quota enforcement."""

    async def consume_usage(
        self, user_id: str, plan: Plan, model: str, requested_at: datetime
    ) -> UsageConsumptionResult:
        """Count one request against the model's tier, or reject it at the limit."""
        ...

    async def rollback_usage(self, user_id: str, model: str, occurred_at: datetime) -> None:
        """Give back one request on the model's tier, never going below zero."""
        ...

    async def reset_usage(
        self,
        user_id: str,
        plan: Plan,
        reason: ResetReason,
        reset_date: datetime,
        source_event_id: Optional[str] = None,
    ) -> bool:
        """Zero both lanes for the period containing *reset_date*.

        Returns False when *source_event_id* already reset that period.
        """
        ...

    async def get_usage_summary(self, user_id: str, plan: Plan, as_of: datetime) -> UsageSummary:
        """Report counts, limits and remaining quota without writing."""
        ...
