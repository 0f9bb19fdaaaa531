"""The usage counter record and its decode/encode boundary.

Stores hand back loosely-typed mappings (rows, documents, legacy camelCase
payloads). ``decode_counter`` is the only place those shapes are turned into a
``UsageCounter``; everything past it works with the fixed structure.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional

from mailwise.domains.usage.types import (
    Plan,
    ResetReason,
    UsageTier,
    resolve_plan_type,
    to_utc,
)
from mailwise.schemas.usage import TierCounts

# snake_case field -> legacy document key
_LEGACY_KEYS = {
    "plan_type": "planType",
    "basic_count": "basicCount",
    "advanced_count": "advancedCount",
    "updated_at": "updatedAt",
    "last_reset_at": "lastResetAt",
    "last_reset_reason": "lastResetReason",
    "last_reset_event_id": "lastResetEventId",
}


@dataclass(frozen=True)
class UsageCounter:
    """Consumption of one user in one calendar month, split by tier."""

    user_id: str
    period_key: str
    plan_type: Plan
    updated_at: datetime
    last_reset_at: datetime
    basic_count: int = 0
    advanced_count: int = 0
    last_reset_reason: Optional[ResetReason] = None
    last_reset_event_id: Optional[str] = None

    @classmethod
    def zeroed(
        cls,
        user_id: str,
        period_key: str,
        plan: Plan,
        now: datetime,
        reason: ResetReason = ResetReason.MONTHLY,
        event_id: Optional[str] = None,
    ) -> "UsageCounter":
        """Build an empty counter stamped with *now*.

        *event_id* names the external event that caused the reset, if any.
        """
        now = to_utc(now)
        return cls(
            user_id=user_id,
            period_key=period_key,
            plan_type=plan,
            updated_at=now,
            last_reset_at=now,
            last_reset_reason=reason,
            last_reset_event_id=event_id,
        )

    @property
    def counts(self) -> TierCounts:
        """Snapshot of both lanes."""
        return TierCounts(basic=self.basic_count, advanced=self.advanced_count)

    def count_for(self, tier: UsageTier) -> int:
        """Return the count of the lane for *tier*."""
        return self.basic_count if tier == UsageTier.BASIC else self.advanced_count

    def with_count(self, tier: UsageTier, value: int, *, updated_at: datetime) -> "UsageCounter":
        """Return a copy with the *tier* lane set to *value*."""
        field = "basic_count" if tier == UsageTier.BASIC else "advanced_count"
        return replace(self, **{field: value, "updated_at": to_utc(updated_at)})


def _lookup(raw: Mapping[str, Any], field: str) -> Any:
    if field in raw:
        return raw[field]
    legacy = _LEGACY_KEYS.get(field)
    return raw.get(legacy) if legacy else None


def _coerce_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float) and value.is_integer():
        return max(int(value), 0)
    if isinstance(value, str):
        try:
            return max(int(value.strip()), 0)
        except ValueError:
            return 0
    return 0


def _coerce_datetime(value: Any, fallback: datetime) -> datetime:
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_utc(datetime.fromisoformat(text))
        except ValueError:
            return to_utc(fallback)
    return to_utc(fallback)


def _coerce_reason(value: Any) -> Optional[ResetReason]:
    if value is None:
        return None
    try:
        return ResetReason(str(getattr(value, "value", value)).strip().lower())
    except ValueError:
        return None


def _coerce_event_id(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    return value.strip()


def decode_counter(
    raw: Mapping[str, Any],
    *,
    user_id: str,
    period_key: str,
    fallback: datetime,
) -> UsageCounter:
    """Normalize a stored mapping into a ``UsageCounter``.

    The record is always re-stamped with the address it was loaded from.
    Missing or malformed counts become 0, negative counts clamp to 0, and
    unreadable timestamps fall back to *fallback*. Unknown keys are ignored.
    """
    raw_plan = _lookup(raw, "plan_type")
    return UsageCounter(
        user_id=user_id,
        period_key=period_key,
        plan_type=resolve_plan_type(raw_plan if isinstance(raw_plan, str) else None),
        basic_count=_coerce_count(_lookup(raw, "basic_count")),
        advanced_count=_coerce_count(_lookup(raw, "advanced_count")),
        updated_at=_coerce_datetime(_lookup(raw, "updated_at"), fallback),
        last_reset_at=_coerce_datetime(_lookup(raw, "last_reset_at"), fallback),
        last_reset_reason=_coerce_reason(_lookup(raw, "last_reset_reason")),
        last_reset_event_id=_coerce_event_id(_lookup(raw, "last_reset_event_id")),
    )


def encode_counter(counter: UsageCounter) -> dict[str, Any]:
    """Flatten a counter into the persisted record layout."""
    return {
        "user_id": counter.user_id,
        "period_key": counter.period_key,
        "plan_type": counter.plan_type.value,
        "basic_count": counter.basic_count,
        "advanced_count": counter.advanced_count,
        "updated_at": counter.updated_at,
        "last_reset_at": counter.last_reset_at,
        "last_reset_reason": (
            counter.last_reset_reason.value if counter.last_reset_reason else None
        ),
        "last_reset_event_id": counter.last_reset_event_id,
    }
