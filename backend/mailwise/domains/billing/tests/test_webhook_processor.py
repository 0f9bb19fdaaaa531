"""Unit tests for BillingWebhookProcessor."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from mailwise.adapters.event_bus.fake import FakeEventBus
from mailwise.core.events.billing import SubscriptionPaidEvent
from mailwise.domains.billing.exceptions import InvalidWebhookPayloadError
from mailwise.domains.billing.types import extract_subscriber
from mailwise.domains.billing.webhook_processor import BillingWebhookProcessor
from mailwise.domains.usage.exceptions import UsageStoreError
from mailwise.domains.usage.fakes import FakeUsageTracker, InMemoryUsageCounterStore
from mailwise.domains.usage.tracker import UsageTracker
from mailwise.domains.usage.types import Plan, ResetReason

USER_ID = "user-0001"
CREATED = 1710927000  # 2024-03-20T09:30:00Z
PAID_AT = datetime(2024, 3, 20, 9, 30, tzinfo=timezone.utc)


def _make_payload(
    event_type: str = "invoice.paid",
    obj: Optional[dict[str, Any]] = None,
    created: Optional[int] = CREATED,
    event_id: str = "evt_test_123",
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": event_id,
        "type": event_type,
        "data": {"object": obj if obj is not None else {"metadata": {"userId": USER_ID}}},
    }
    if created is not None:
        payload["created"] = created
    return payload


def _make_processor(tracker=None):
    bus = FakeEventBus()
    tracker = tracker or FakeUsageTracker()
    return BillingWebhookProcessor(event_bus=bus, usage_tracker=tracker), bus, tracker


def _make_real_processor():
    store = InMemoryUsageCounterStore()
    processor, bus, tracker = _make_processor(UsageTracker(store=store))
    return processor, bus, tracker, store


# ---------------------------------------------------------------------------
# extract_subscriber (pure)
# ---------------------------------------------------------------------------


@dataclass
class ExtractCase:
    label: str
    obj: dict[str, Any]
    expected: tuple[Optional[str], Optional[str]]


EXTRACT_CASES = [
    ExtractCase(
        label="camel_case_metadata",
        obj={"metadata": {"userId": "u1", "planType": "pro"}},
        expected=("u1", "pro"),
    ),
    ExtractCase(
        label="snake_case_metadata",
        obj={"metadata": {"user_id": "u1", "plan_type": "unlimited"}},
        expected=("u1", "unlimited"),
    ),
    ExtractCase(
        label="invoice_subscription_details",
        obj={
            "metadata": {},
            "subscription_details": {"metadata": {"userId": "u2", "planType": "pro"}},
        },
        expected=("u2", "pro"),
    ),
    ExtractCase(
        label="own_metadata_wins",
        obj={
            "metadata": {"userId": "u1"},
            "subscription_details": {"metadata": {"userId": "u2", "planType": "pro"}},
        },
        expected=("u1", "pro"),
    ),
    ExtractCase(
        label="blank_values_ignored",
        obj={"metadata": {"userId": "  ", "planType": ""}},
        expected=(None, None),
    ),
    ExtractCase(label="no_metadata", obj={}, expected=(None, None)),
    ExtractCase(label="metadata_not_a_dict", obj={"metadata": "oops"}, expected=(None, None)),
]


@pytest.mark.parametrize("case", EXTRACT_CASES, ids=lambda c: c.label)
def test_extract_subscriber(case: ExtractCase):
    assert extract_subscriber(case.obj) == case.expected


# ---------------------------------------------------------------------------
# process_event
# ---------------------------------------------------------------------------


class TestProcessEvent:
    @pytest.mark.asyncio
    async def test_invoice_paid_resets_usage_and_publishes(self):
        processor, bus, tracker = _make_processor()
        payload = _make_payload(obj={"metadata": {"userId": USER_ID, "planType": "pro"}})

        published = await processor.process_event(payload)

        assert tracker.resets == [(USER_ID, Plan.PRO, ResetReason.SUBSCRIPTION, PAID_AT)]
        event = bus.get_event("billing.subscription_paid")
        assert isinstance(event, SubscriptionPaidEvent)
        assert event is published
        assert event.user_id == USER_ID
        assert event.plan_type == "pro"
        assert event.source_event_id == "evt_test_123"
        assert event.source_event_type == "invoice.paid"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "event_type",
        ["checkout.session.completed", "invoice.payment_succeeded", "customer.subscription.deleted"],
    )
    async def test_other_event_types_are_ignored(self, event_type):
        processor, bus, tracker = _make_processor()

        result = await processor.process_event(_make_payload(event_type))

        assert result is None
        assert tracker.resets == []
        assert bus.events == []

    @pytest.mark.asyncio
    async def test_event_timestamp_comes_from_provider(self):
        processor, bus, _ = _make_processor()

        await processor.process_event(_make_payload())

        assert bus.get_event("billing.subscription_paid").timestamp == PAID_AT

    @pytest.mark.asyncio
    async def test_missing_created_uses_now(self):
        processor, bus, _ = _make_processor()
        before = datetime.now(timezone.utc)

        await processor.process_event(_make_payload(created=None))

        assert bus.get_event("billing.subscription_paid").timestamp >= before

    @pytest.mark.asyncio
    async def test_missing_user_id_is_skipped(self):
        processor, bus, tracker = _make_processor()

        result = await processor.process_event(_make_payload(obj={"metadata": {}}))

        assert result is None
        assert tracker.resets == []
        bus.assert_not_published("billing.subscription_paid")

    @pytest.mark.asyncio
    async def test_payload_without_type_is_rejected(self):
        processor, _, _ = _make_processor()

        with pytest.raises(InvalidWebhookPayloadError):
            await processor.process_event({"data": {"object": {}}})

    @pytest.mark.asyncio
    async def test_publish_failure_propagates(self):
        processor, bus, _ = _make_processor()

        async def failing_publish(event):
            raise RuntimeError("bus down")

        bus.publish = failing_publish

        with pytest.raises(RuntimeError):
            await processor.process_event(_make_payload())


# ---------------------------------------------------------------------------
# Webhook -> usage reset against the in-memory store
# ---------------------------------------------------------------------------


class TestWebhookResetsUsage:
    @pytest.mark.asyncio
    async def test_paid_invoice_zeroes_counters_for_payment_month(self):
        processor, _, _, store = _make_real_processor()
        store.seed(USER_ID, "2024-03", {"basic_count": 20, "advanced_count": 5})

        await processor.process_event(
            _make_payload(obj={"metadata": {"userId": USER_ID, "planType": "pro"}})
        )

        raw = store.raw(USER_ID, "2024-03")
        assert raw["basic_count"] == 0
        assert raw["advanced_count"] == 0
        assert raw["plan_type"] == "pro"
        assert raw["last_reset_reason"] == "subscription"
        assert raw["last_reset_event_id"] == "evt_test_123"

    @pytest.mark.asyncio
    async def test_store_failure_fails_the_webhook(self):
        processor, bus, _, store = _make_real_processor()
        store.seed(USER_ID, "2024-03", {"basic_count": 20})
        store.fail_next(UsageStoreError("down"))

        with pytest.raises(UsageStoreError):
            await processor.process_event(_make_payload())

        assert store.raw(USER_ID, "2024-03")["basic_count"] == 20
        bus.assert_not_published("billing.subscription_paid")

    @pytest.mark.asyncio
    async def test_redelivery_after_failure_applies_the_reset(self):
        processor, _, _, store = _make_real_processor()
        store.seed(USER_ID, "2024-03", {"basic_count": 20})
        store.fail_next(UsageStoreError("down"))
        with pytest.raises(UsageStoreError):
            await processor.process_event(_make_payload())

        await processor.process_event(_make_payload())

        assert store.raw(USER_ID, "2024-03")["basic_count"] == 0

    @pytest.mark.asyncio
    async def test_duplicate_deliveries_do_not_wipe_usage(self):
        processor, bus, tracker, store = _make_real_processor()
        await processor.process_event(_make_payload(event_id="evt_1"))
        for _ in range(7):
            await tracker.consume_usage(USER_ID, Plan.FREE, "gpt-4o-mini", PAID_AT)

        await processor.process_event(_make_payload("invoice.payment_succeeded", event_id="evt_2"))
        redelivered = await processor.process_event(_make_payload(event_id="evt_1"))

        assert redelivered is None
        assert store.raw(USER_ID, "2024-03")["basic_count"] == 7
        assert len(bus.get_events("billing.subscription_paid")) == 1

    @pytest.mark.asyncio
    async def test_next_invoice_resets_again(self):
        processor, _, tracker, store = _make_real_processor()
        await processor.process_event(_make_payload(event_id="evt_1"))
        for _ in range(7):
            await tracker.consume_usage(USER_ID, Plan.FREE, "gpt-4o-mini", PAID_AT)

        await processor.process_event(_make_payload(event_id="evt_3"))

        assert store.raw(USER_ID, "2024-03")["basic_count"] == 0
