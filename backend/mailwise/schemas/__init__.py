"""Pydantic schemas shared across domains."""

from mailwise.schemas.usage import (
    Plan,
    ResetReason,
    TierCounts,
    TierLimits,
    UsageConsumptionResult,
    UsageSummary,
    UsageTier,
)
from mailwise.schemas.usage_log import UsageLogCreate, UsageLogEntry, UsageStats

__all__ = [
    "Plan",
    "ResetReason",
    "TierCounts",
    "TierLimits",
    "UsageConsumptionResult",
    "UsageLogCreate",
    "UsageLogEntry",
    "UsageStats",
    "UsageSummary",
    "UsageTier",
]
