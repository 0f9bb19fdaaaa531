"""Usage tracker — per-user monthly quota enforcement.

One instance lives in the container. Every billable request calls
``consume_usage`` before doing any work; the decision and the increment happen
inside a single store transaction on the (user, period) counter, so two racing
requests can never both take the last slot.

``rollback_usage`` is a separate, later transaction used when the downstream
work fails after the request was counted. A crash between the two leaves at
most one extra charge; rollback never takes a lane below zero.
"""

from dataclasses import replace
from datetime import datetime
from typing import Mapping, Optional

from mailwise.core.logging import logger
from mailwise.domains.usage.counter import UsageCounter
from mailwise.domains.usage.protocols import (
    CounterTransaction,
    UsageCounterStoreProtocol,
    UsageTrackerProtocol,
)
from mailwise.domains.usage.types import (
    PLAN_LIMITS,
    PlanLimits,
    compute_remaining,
    limits_for,
    next_reset_instant,
    period_key_of,
    resolve_plan_type,
    resolve_usage_tier,
    to_utc,
)
from mailwise.schemas.usage import (
    Plan,
    ResetReason,
    TierLimits,
    UsageConsumptionResult,
    UsageSummary,
)


class UsageTracker(UsageTrackerProtocol):
    """Two-lane (basic/advanced) bounded counter per user and calendar month."""

    PLAN_LIMITS = PLAN_LIMITS
    resolve_plan_type = staticmethod(resolve_plan_type)
    resolve_usage_tier = staticmethod(resolve_usage_tier)

    def __init__(
        self,
        store: UsageCounterStoreProtocol,
        plan_limits: Optional[Mapping[Plan, PlanLimits]] = None,
    ) -> None:
        """Initialize the tracker with its counter store and an optional plan catalog."""
        self._store = store
        self._plan_limits = PLAN_LIMITS if plan_limits is None else plan_limits

    async def consume_usage(
        self, user_id: str, plan: Plan, model: str, requested_at: datetime
    ) -> UsageConsumptionResult:
        """Count one request against the model's tier, or reject it at the limit.

        A rejection is a normal result (``allowed=False``), not an exception.
        Store failures propagate as ``UsageStoreError``.
        """
        now = to_utc(requested_at)
        tier = resolve_usage_tier(model)
        period_key = period_key_of(now)
        limit = limits_for(plan, self._plan_limits).for_tier(tier)
        resets_on = next_reset_instant(now)

        async def _consume(tx: CounterTransaction) -> UsageConsumptionResult:
            existing = await tx.get()
            if existing is None:
                counter = UsageCounter.zeroed(user_id, period_key, plan, now)
            else:
                counter = existing

            current = counter.count_for(tier)
            if limit is not None and current >= limit:
                return UsageConsumptionResult(
                    allowed=False,
                    tier=tier,
                    plan_type=plan,
                    limit=limit,
                    remaining=0,
                    counts=counter.counts,
                    resets_on=resets_on,
                )

            updated = replace(
                counter.with_count(tier, current + 1, updated_at=now), plan_type=plan
            )
            tx.set(updated)
            return UsageConsumptionResult(
                allowed=True,
                tier=tier,
                plan_type=plan,
                limit=limit,
                remaining=compute_remaining(limit, current + 1),
                counts=updated.counts,
                resets_on=resets_on,
            )

        result = await self._store.run_transaction(user_id, period_key, _consume, as_of=now)

        if not result.allowed:
            logger.with_context(
                user_id=user_id, plan=plan.value, tier=tier.value, limit=limit
            ).info("Usage limit reached")
        return result

    async def rollback_usage(self, user_id: str, model: str, occurred_at: datetime) -> None:
        """Give back one request on the model's tier.

        No-op when the period has no counter or the lane is already zero.
        """
        now = to_utc(occurred_at)
        tier = resolve_usage_tier(model)
        period_key = period_key_of(now)

        async def _rollback(tx: CounterTransaction) -> bool:
            counter = await tx.get()
            if counter is None:
                return False
            current = counter.count_for(tier)
            if current <= 0:
                return False
            tx.set(counter.with_count(tier, current - 1, updated_at=now))
            return True

        rolled_back = await self._store.run_transaction(user_id, period_key, _rollback, as_of=now)
        logger.with_context(user_id=user_id, tier=tier.value, period_key=period_key).debug(
            "Usage rollback applied" if rolled_back else "Usage rollback skipped"
        )

    async def reset_usage(
        self,
        user_id: str,
        plan: Plan,
        reason: ResetReason,
        reset_date: datetime,
        source_event_id: Optional[str] = None,
    ) -> bool:
        """Zero both lanes for the period containing *reset_date*.

        Without *source_event_id* the counter is overwritten, or created if
        missing. With one, the reset is skipped when that event already reset
        this period, so a redelivered payment does not wipe usage twice.

        Returns:
            True if the counter was reset, False if the event was already applied.
        """
        now = to_utc(reset_date)
        period_key = period_key_of(now)
        counter = UsageCounter.zeroed(
            user_id, period_key, plan, now, reason=reason, event_id=source_event_id
        )
        log = logger.with_context(user_id=user_id, plan=plan.value, reason=reason.value)

        if source_event_id is None:
            await self._store.save(user_id, period_key, counter)
            log.info("Usage counters reset")
            return True

        async def _reset(tx: CounterTransaction) -> bool:
            existing = await tx.get()
            if existing is not None and existing.last_reset_event_id == source_event_id:
                return False
            tx.set(counter)
            return True

        applied = await self._store.run_transaction(user_id, period_key, _reset, as_of=now)
        log = log.with_context(source_event_id=source_event_id)
        if applied:
            log.info("Usage counters reset")
        else:
            log.info("Usage reset already applied for event, skipping")
        return applied

    async def get_usage_summary(self, user_id: str, plan: Plan, as_of: datetime) -> UsageSummary:
        """Report counts, limits and remaining quota for the period of *as_of*."""
        now = to_utc(as_of)
        period_key = period_key_of(now)
        counter = await self._store.load(user_id, period_key, as_of=now)
        if counter is None:
            counter = UsageCounter.zeroed(user_id, period_key, plan, now)

        limits = limits_for(plan, self._plan_limits)
        return UsageSummary(
            plan_type=plan,
            period_key=period_key,
            counts=counter.counts,
            limits=TierLimits(basic=limits.basic, advanced=limits.advanced),
            remaining=TierLimits(
                basic=compute_remaining(limits.basic, counter.basic_count),
                advanced=compute_remaining(limits.advanced, counter.advanced_count),
            ),
            last_reset_at=counter.last_reset_at,
            last_reset_reason=counter.last_reset_reason,
            resets_on=next_reset_instant(now),
        )
