"""Unit tests for the usage counter record and its decode boundary."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

import pytest

from mailwise.domains.usage.counter import UsageCounter, decode_counter, encode_counter
from mailwise.domains.usage.tests.conftest import MARCH_15, USER_ID, _dt
from mailwise.domains.usage.types import Plan, ResetReason, UsageTier


def _decode(raw: dict[str, Any], fallback: datetime = MARCH_15) -> UsageCounter:
    return decode_counter(raw, user_id=USER_ID, period_key="2024-03", fallback=fallback)


# ---------------------------------------------------------------------------
# UsageCounter
# ---------------------------------------------------------------------------


class TestUsageCounter:
    def test_zeroed(self):
        counter = UsageCounter.zeroed(USER_ID, "2024-03", Plan.PRO, MARCH_15)

        assert counter.basic_count == 0
        assert counter.advanced_count == 0
        assert counter.last_reset_at == MARCH_15
        assert counter.last_reset_reason == ResetReason.MONTHLY

    def test_with_count_leaves_other_lane(self):
        counter = UsageCounter.zeroed(USER_ID, "2024-03", Plan.PRO, MARCH_15)
        later = _dt(2024, 3, 16)

        updated = counter.with_count(UsageTier.ADVANCED, 3, updated_at=later)

        assert updated.advanced_count == 3
        assert updated.basic_count == 0
        assert updated.updated_at == later
        assert counter.advanced_count == 0

    def test_counts_snapshot(self):
        counter = UsageCounter(
            user_id=USER_ID,
            period_key="2024-03",
            plan_type=Plan.FREE,
            updated_at=MARCH_15,
            last_reset_at=MARCH_15,
            basic_count=4,
            advanced_count=1,
        )
        assert counter.counts.basic == 4
        assert counter.counts.advanced == 1


# ---------------------------------------------------------------------------
# decode_counter
# ---------------------------------------------------------------------------


@dataclass
class CountCase:
    label: str
    raw_value: Any
    expected: int


COUNT_CASES = [
    CountCase("int", 7, 7),
    CountCase("negative_clamped", -3, 0),
    CountCase("integral_float", 4.0, 4),
    CountCase("fractional_float", 4.5, 0),
    CountCase("numeric_string", " 12 ", 12),
    CountCase("garbage_string", "twelve", 0),
    CountCase("bool", True, 0),
    CountCase("none", None, 0),
    CountCase("list", [1], 0),
]


@pytest.mark.parametrize("case", COUNT_CASES, ids=lambda c: c.label)
def test_decode_count_coercion(case: CountCase):
    counter = _decode({"basic_count": case.raw_value})
    assert counter.basic_count == case.expected


class TestDecodeCounter:
    def test_snake_case_document(self):
        counter = _decode(
            {
                "plan_type": "pro",
                "basic_count": 10,
                "advanced_count": 2,
                "updated_at": _dt(2024, 3, 10),
                "last_reset_at": _dt(2024, 3, 1),
                "last_reset_reason": "subscription",
            }
        )

        assert counter.plan_type == Plan.PRO
        assert counter.basic_count == 10
        assert counter.advanced_count == 2
        assert counter.updated_at == _dt(2024, 3, 10)
        assert counter.last_reset_reason == ResetReason.SUBSCRIPTION

    def test_legacy_camel_case_document(self):
        counter = _decode(
            {
                "planType": "unlimited",
                "basicCount": 3,
                "advancedCount": 1,
                "updatedAt": "2024-03-10T08:00:00Z",
                "lastResetAt": "2024-03-01T00:00:00.000Z",
                "lastResetReason": "monthly",
            }
        )

        assert counter.plan_type == Plan.UNLIMITED
        assert counter.basic_count == 3
        assert counter.advanced_count == 1
        assert counter.updated_at == _dt(2024, 3, 10, 8)
        assert counter.last_reset_at == _dt(2024, 3, 1)
        assert counter.last_reset_reason == ResetReason.MONTHLY

    def test_snake_case_wins_over_legacy(self):
        counter = _decode({"basic_count": 5, "basicCount": 9})
        assert counter.basic_count == 5

    def test_empty_document_uses_fallbacks(self):
        counter = _decode({})

        assert counter.plan_type == Plan.FREE
        assert counter.basic_count == 0
        assert counter.advanced_count == 0
        assert counter.updated_at == MARCH_15
        assert counter.last_reset_at == MARCH_15
        assert counter.last_reset_reason is None

    def test_unreadable_timestamp_falls_back(self):
        counter = _decode({"updated_at": "yesterday", "last_reset_at": 12345})
        assert counter.updated_at == MARCH_15
        assert counter.last_reset_at == MARCH_15

    def test_unknown_reason_dropped(self):
        assert _decode({"last_reset_reason": "refund"}).last_reset_reason is None

    def test_reset_event_id(self):
        assert _decode({"lastResetEventId": " evt_1 "}).last_reset_event_id == "evt_1"
        assert _decode({"last_reset_event_id": ""}).last_reset_event_id is None
        assert _decode({"last_reset_event_id": 42}).last_reset_event_id is None

    def test_unknown_keys_ignored(self):
        counter = _decode({"basic_count": 1, "legacyField": "x"})
        assert counter.basic_count == 1

    def test_address_comes_from_caller(self):
        counter = decode_counter(
            {"user_id": "someone-else", "period_key": "1999-01"},
            user_id=USER_ID,
            period_key="2024-03",
            fallback=MARCH_15,
        )
        assert counter.user_id == USER_ID
        assert counter.period_key == "2024-03"


class TestEncodeCounter:
    def test_layout(self):
        counter = UsageCounter.zeroed(
            USER_ID, "2024-03", Plan.PRO, MARCH_15, reason=ResetReason.SUBSCRIPTION
        )

        encoded = encode_counter(counter)

        assert encoded == {
            "user_id": USER_ID,
            "period_key": "2024-03",
            "plan_type": "pro",
            "basic_count": 0,
            "advanced_count": 0,
            "updated_at": MARCH_15,
            "last_reset_at": MARCH_15,
            "last_reset_reason": "subscription",
            "last_reset_event_id": None,
        }
