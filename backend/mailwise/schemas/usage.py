"""Usage schemas: plans, tiers, and the read-only results of the usage tracker."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Plan(str, Enum):
    """Subscription plan."""

    FREE = "free"
    PRO = "pro"
    UNLIMITED = "unlimited"


class UsageTier(str, Enum):
    """Billing tier of a model. Each tier is metered on its own lane."""

    BASIC = "basic"
    ADVANCED = "advanced"


class ResetReason(str, Enum):
    """Why a counter was last zeroed."""

    MONTHLY = "monthly"
    SUBSCRIPTION = "subscription"


class TierCounts(BaseModel):
    """Consumed requests per tier."""

    model_config = ConfigDict(frozen=True)

    basic: int = 0
    advanced: int = 0


class TierLimits(BaseModel):
    """Per-tier values that may be unlimited (``None``)."""

    model_config = ConfigDict(frozen=True)

    basic: Optional[int] = None
    advanced: Optional[int] = None


class UsageConsumptionResult(BaseModel):
    """Outcome of a single consumption attempt."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    tier: UsageTier
    plan_type: Plan
    limit: Optional[int] = Field(None, description="None when the tier is unlimited.")
    remaining: Optional[int] = Field(None, description="None when the tier is unlimited.")
    counts: TierCounts
    resets_on: datetime = Field(..., description="First instant of the next UTC month.")


class UsageSummary(BaseModel):
    """Read-only projection of a user's usage in one period."""

    model_config = ConfigDict(frozen=True)

    plan_type: Plan
    period_key: str
    counts: TierCounts
    limits: TierLimits
    remaining: TierLimits
    last_reset_at: datetime
    last_reset_reason: Optional[ResetReason] = None
    resets_on: datetime
