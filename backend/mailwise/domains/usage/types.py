"""Usage domain types and pure business logic.

Plan catalog, model classification, and calendar-month bucketing used by the
usage tracker, the stores, and request handlers. No IO here; everything is
deterministic.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

from mailwise.schemas.usage import Plan, ResetReason, UsageTier

__all__ = [
    "ADVANCED_MODELS",
    "BASIC_MODELS",
    "PLAN_LIMITS",
    "Plan",
    "PlanLimits",
    "ResetReason",
    "UsageTier",
    "compute_remaining",
    "limits_for",
    "next_reset_instant",
    "period_key_of",
    "resolve_plan_type",
    "resolve_usage_tier",
    "to_utc",
]


@dataclass(frozen=True)
class PlanLimits:
    """Monthly quota per tier. ``None`` means the tier is not capped."""

    basic: Optional[int]
    advanced: Optional[int]

    def for_tier(self, tier: UsageTier) -> Optional[int]:
        """Return the limit for *tier*."""
        return self.basic if tier == UsageTier.BASIC else self.advanced


# Plan configuration
PLAN_LIMITS: Mapping[Plan, PlanLimits] = {
    Plan.FREE: PlanLimits(basic=20, advanced=0),
    Plan.PRO: PlanLimits(basic=5000, advanced=200),
    Plan.UNLIMITED: PlanLimits(basic=12000, advanced=1600),
}

BASIC_MODELS: frozenset[str] = frozenset(
    {
        "gpt-4o-mini",
        "gpt-4o mini",
        "gpt-4o",
        "gpt-5-mini",
        "gpt-5 mini",
        "gpt-5-nano",
        "gpt-5 nano",
        "default",
    }
)

ADVANCED_MODELS: frozenset[str] = frozenset(
    {
        "gpt-5",
        "gpt5",
        "claude-4",
        "claude 4",
        "claude-3.5",
        "claude-3.5-sonnet",
        "claude",
        "gemini-2.5-pro",
        "gemini 2.5 pro",
        "gemini-2.0",
        "gemini",
        "llama-3.1",
        "llama",
        "deepseek-v3",
        "deepseek",
    }
)


def limits_for(plan: Plan, catalog: Mapping[Plan, PlanLimits] = PLAN_LIMITS) -> PlanLimits:
    """Get the quotas for a plan."""
    return catalog[plan]


def resolve_plan_type(raw: Optional[str]) -> Plan:
    """Map a stored plan string to a Plan.

    Only "pro" and "unlimited" (any case) are recognized; everything else,
    including None and empty strings, is the free plan.
    """
    normalized = (raw or "").strip().lower()
    if normalized == Plan.PRO.value:
        return Plan.PRO
    if normalized == Plan.UNLIMITED.value:
        return Plan.UNLIMITED
    return Plan.FREE


def resolve_usage_tier(model: Optional[str]) -> UsageTier:
    """Map a model identifier to the tier it is billed on.

    Unknown identifiers are billed as advanced.
    """
    normalized = (model or "").strip().lower()
    if normalized in BASIC_MODELS:
        return UsageTier.BASIC
    if normalized in ADVANCED_MODELS:
        return UsageTier.ADVANCED
    return UsageTier.ADVANCED


def to_utc(instant: datetime) -> datetime:
    """Return *instant* as an aware UTC datetime. Naive values are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def period_key_of(instant: datetime) -> str:
    """Return the ``YYYY-MM`` key of the UTC calendar month containing *instant*."""
    utc = to_utc(instant)
    return f"{utc.year:04d}-{utc.month:02d}"


def next_reset_instant(instant: datetime) -> datetime:
    """Return 00:00:00 UTC on the first day of the month after *instant*'s month."""
    utc = to_utc(instant)
    if utc.month == 12:
        return datetime(utc.year + 1, 1, 1, tzinfo=timezone.utc)
    return datetime(utc.year, utc.month + 1, 1, tzinfo=timezone.utc)


def compute_remaining(limit: Optional[int], usage: int) -> Optional[int]:
    """Remaining requests under *limit*, floored at zero. None when unlimited."""
    if limit is None:
        return None
    return max(limit - usage, 0)
