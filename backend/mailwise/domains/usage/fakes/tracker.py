"""Fake usage tracker for testing.

Allows every request unless explicitly configured to deny.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from mailwise.domains.usage.protocols import UsageTrackerProtocol
from mailwise.domains.usage.types import (
    compute_remaining,
    limits_for,
    next_reset_instant,
    period_key_of,
    resolve_usage_tier,
)
from mailwise.schemas.usage import (
    Plan,
    ResetReason,
    TierCounts,
    TierLimits,
    UsageConsumptionResult,
    UsageSummary,
    UsageTier,
)


class FakeUsageTracker(UsageTrackerProtocol):
    """Test implementation of UsageTrackerProtocol.

    Usage:
        tracker = FakeUsageTracker()
        tracker.deny(UsageTier.ADVANCED)

        result = await tracker.consume_usage("u1", Plan.FREE, "gpt-5", now)
        assert not result.allowed
        assert tracker.consumed == [("u1", Plan.FREE, "gpt-5")]
    """

    def __init__(self) -> None:
        """Initialize with an empty deny set and call logs."""
        self._denied: set[UsageTier] = set()
        self._errors: dict[str, Exception] = {}
        self._applied_events: set[str] = set()
        self.consumed: list[tuple[str, Plan, str]] = []
        self.rolled_back: list[tuple[str, str]] = []
        self.resets: list[tuple[str, Plan, ResetReason, datetime]] = []

    def deny(self, tier: UsageTier) -> None:
        """Reject every consume call on *tier*."""
        self._denied.add(tier)

    def allow_all(self) -> None:
        """Reset to default allow-all behaviour."""
        self._denied.clear()

    def fail_on(self, method: str, exc: Exception) -> None:
        """Make *method* raise *exc* on every call."""
        self._errors[method] = exc

    def _maybe_raise(self, method: str) -> None:
        exc: Optional[Exception] = self._errors.get(method)
        if exc is not None:
            raise exc

    async def consume_usage(
        self, user_id: str, plan: Plan, model: str, requested_at: datetime
    ) -> UsageConsumptionResult:
        """Record the call and allow it unless its tier is denied."""
        self.consumed.append((user_id, plan, model))
        self._maybe_raise("consume_usage")
        tier = resolve_usage_tier(model)
        limit = limits_for(plan).for_tier(tier)
        allowed = tier not in self._denied
        return UsageConsumptionResult(
            allowed=allowed,
            tier=tier,
            plan_type=plan,
            limit=limit,
            remaining=compute_remaining(limit, 1) if allowed else 0,
            counts=TierCounts(),
            resets_on=next_reset_instant(requested_at),
        )

    async def rollback_usage(self, user_id: str, model: str, occurred_at: datetime) -> None:
        """Record the rollback."""
        self.rolled_back.append((user_id, model))
        self._maybe_raise("rollback_usage")

    async def reset_usage(
        self,
        user_id: str,
        plan: Plan,
        reason: ResetReason,
        reset_date: datetime,
        source_event_id: Optional[str] = None,
    ) -> bool:
        """Record the reset. Repeated event ids are reported as not applied."""
        self._maybe_raise("reset_usage")
        if source_event_id is not None and source_event_id in self._applied_events:
            return False
        if source_event_id is not None:
            self._applied_events.add(source_event_id)
        self.resets.append((user_id, plan, reason, reset_date))
        return True

    async def get_usage_summary(self, user_id: str, plan: Plan, as_of: datetime) -> UsageSummary:
        """Return an empty summary for *plan*."""
        self._maybe_raise("get_usage_summary")
        limits = limits_for(plan)
        return UsageSummary(
            plan_type=plan,
            period_key=period_key_of(as_of),
            counts=TierCounts(),
            limits=TierLimits(basic=limits.basic, advanced=limits.advanced),
            remaining=TierLimits(basic=limits.basic, advanced=limits.advanced),
            last_reset_at=as_of,
            last_reset_reason=ResetReason.MONTHLY,
            resets_on=next_reset_instant(as_of),
        )
