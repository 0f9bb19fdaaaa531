"""Unit tests for MeteredGenerationService."""

from datetime import datetime, timezone

import pytest

from mailwise.adapters.event_bus.fake import FakeEventBus
from mailwise.core.events.generation import GenerationCompletedEvent
from mailwise.domains.generation.exceptions import UsageLimitReachedError
from mailwise.domains.generation.fakes import FakePlanSource, FakeTextGenerator
from mailwise.domains.generation.service import MeteredGenerationService
from mailwise.domains.generation.types import (
    DEFAULT_QUICK_REPLY_MODEL,
    SUMMARY_MODEL,
    GenerationKind,
    GenerationRequest,
)
from mailwise.domains.usage.exceptions import UsageStoreError
from mailwise.domains.usage.fakes import FakeUsageTracker, InMemoryUsageCounterStore
from mailwise.domains.usage.tracker import UsageTracker
from mailwise.domains.usage.types import Plan, UsageTier
from mailwise.domains.usage_log.fakes import FakeUsageLogRepository
from mailwise.domains.usage_log.subscribers import UsageLogListener

USER_ID = "user-0001"
NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _make_service(tracker=None, bus=None):
    tracker = tracker or FakeUsageTracker()
    generator = FakeTextGenerator(text="Dear team, ...")
    plans = FakePlanSource()
    service = MeteredGenerationService(
        tracker=tracker,
        generator=generator,
        plan_source=plans,
        event_bus=bus or FakeEventBus(),
    )
    return service, tracker, generator, plans


def _email_request(model: str = "gpt-4o-mini") -> GenerationRequest:
    return GenerationRequest(kind=GenerationKind.EMAIL, model=model, prompt="Say hi")


# ---------------------------------------------------------------------------
# Plan resolution
# ---------------------------------------------------------------------------


class TestResolvePlan:
    @pytest.mark.asyncio
    async def test_stored_plan(self):
        service, _, _, plans = _make_service()
        plans.seed(USER_ID, "Pro")

        assert await service.resolve_plan(USER_ID) == Plan.PRO

    @pytest.mark.asyncio
    async def test_missing_plan_is_free(self):
        service, _, _, _ = _make_service()

        assert await service.resolve_plan(USER_ID) == Plan.FREE

    @pytest.mark.asyncio
    async def test_lookup_failure_degrades_to_free(self, caplog):
        service, _, _, plans = _make_service()
        plans.fail_with(RuntimeError("user store down"))

        assert await service.resolve_plan(USER_ID) == Plan.FREE
        assert "defaulting to free" in caplog.text


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


class TestRun:
    @pytest.mark.asyncio
    async def test_consumes_then_generates(self):
        service, tracker, generator, plans = _make_service()
        plans.seed(USER_ID, "pro")

        metered = await service.run(USER_ID, "gpt-4o-mini", _email_request(), NOW)

        assert tracker.consumed == [(USER_ID, Plan.PRO, "gpt-4o-mini")]
        assert len(generator.requests) == 1
        assert metered.result.text == "Dear team, ..."
        assert metered.result.tokens_used.total == 30
        assert metered.usage.allowed is True
        assert tracker.rolled_back == []

    @pytest.mark.asyncio
    async def test_rejection_raises_without_generating(self):
        service, tracker, generator, _ = _make_service()
        tracker.deny(UsageTier.ADVANCED)

        with pytest.raises(UsageLimitReachedError) as exc_info:
            await service.run(USER_ID, "gpt-5", _email_request("gpt-5"), NOW)

        assert generator.requests == []
        assert exc_info.value.result.allowed is False
        assert exc_info.value.message.startswith(
            "You have reached the advanced model limit (0 per month) for your free plan."
        )

    @pytest.mark.asyncio
    async def test_store_failure_fails_closed(self):
        service, tracker, generator, _ = _make_service()
        tracker.fail_on("consume_usage", UsageStoreError("down"))

        with pytest.raises(UsageStoreError):
            await service.run(USER_ID, "gpt-4o-mini", _email_request(), NOW)

        assert generator.requests == []

    @pytest.mark.asyncio
    async def test_generation_failure_rolls_back_and_reraises(self):
        service, tracker, generator, _ = _make_service()
        generator.fail_with(RuntimeError("provider timeout"))

        with pytest.raises(RuntimeError, match="provider timeout"):
            await service.run(USER_ID, "gpt-4o-mini", _email_request(), NOW)

        assert tracker.rolled_back == [(USER_ID, "gpt-4o-mini")]

    @pytest.mark.asyncio
    async def test_rollback_failure_keeps_original_error(self, caplog):
        service, tracker, generator, _ = _make_service()
        generator.fail_with(RuntimeError("provider timeout"))
        tracker.fail_on("rollback_usage", UsageStoreError("down"))

        with pytest.raises(RuntimeError, match="provider timeout"):
            await service.run(USER_ID, "gpt-4o-mini", _email_request(), NOW)

        assert "Failed to rollback usage" in caplog.text


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


class TestEntryPoints:
    @pytest.mark.asyncio
    async def test_summarize_always_bills_summary_model(self):
        service, tracker, generator, _ = _make_service()

        await service.summarize_email(USER_ID, "long thread...", requested_at=NOW)

        assert tracker.consumed[0][2] == SUMMARY_MODEL
        assert generator.requests[0].kind == GenerationKind.SUMMARY
        assert generator.requests[0].model == SUMMARY_MODEL

    @pytest.mark.asyncio
    async def test_quick_reply_default_model(self):
        service, tracker, generator, _ = _make_service()

        await service.quick_reply(USER_ID, "Can we meet?", requested_at=NOW)

        assert tracker.consumed[0][2] == DEFAULT_QUICK_REPLY_MODEL
        assert generator.requests[0].kind == GenerationKind.QUICK_REPLY

    @pytest.mark.asyncio
    async def test_quick_reply_user_model(self):
        service, tracker, _, _ = _make_service()

        await service.quick_reply(USER_ID, "Can we meet?", model="claude-4", requested_at=NOW)

        assert tracker.consumed[0][2] == "claude-4"

    @pytest.mark.asyncio
    async def test_generate_email_passes_context(self):
        service, _, generator, _ = _make_service()

        await service.generate_email(
            USER_ID,
            "Follow up on invoice",
            model="gpt-5-mini",
            context={"subject": "Invoice #12"},
            settings={"tone": "formal"},
            requested_at=NOW,
        )

        request = generator.requests[0]
        assert request.kind == GenerationKind.EMAIL
        assert request.context == {"subject": "Invoice #12"}
        assert request.settings == {"tone": "formal"}


# ---------------------------------------------------------------------------
# With the real tracker
# ---------------------------------------------------------------------------


class TestWithRealTracker:
    @pytest.mark.asyncio
    async def test_failed_generation_leaves_count_unchanged(self):
        store = InMemoryUsageCounterStore()
        service, _, generator, _ = _make_service(UsageTracker(store=store))
        await service.summarize_email(USER_ID, "thread", requested_at=NOW)
        generator.fail_with(RuntimeError("provider timeout"))

        with pytest.raises(RuntimeError):
            await service.summarize_email(USER_ID, "thread", requested_at=NOW)

        assert store.raw(USER_ID, "2024-03")["basic_count"] == 1

    @pytest.mark.asyncio
    async def test_free_plan_exhausts_after_twenty_requests(self):
        store = InMemoryUsageCounterStore()
        service, _, generator, _ = _make_service(UsageTracker(store=store))
        for _ in range(20):
            await service.quick_reply(USER_ID, "ok", requested_at=NOW)

        with pytest.raises(UsageLimitReachedError) as exc_info:
            await service.quick_reply(USER_ID, "ok", requested_at=NOW)

        assert exc_info.value.result.limit == 20
        assert len(generator.requests) == 20


# ---------------------------------------------------------------------------
# Completed-generation events
# ---------------------------------------------------------------------------


class TestCompletedEvent:
    @pytest.mark.asyncio
    async def test_success_publishes_one_event(self):
        bus = FakeEventBus()
        service, _, _, _ = _make_service(bus=bus)

        await service.generate_email(
            USER_ID,
            "Follow up on invoice",
            model="gpt-5-mini",
            settings={"language": "en", "tone": "formal", "length": "short"},
            requested_at=NOW,
        )

        event = bus.get_event("generation.completed", user_id=USER_ID)
        assert isinstance(event, GenerationCompletedEvent)
        assert event.timestamp == NOW
        assert event.kind == "email"
        assert event.model == "gpt-5-mini"
        assert (event.language, event.tone, event.length) == ("en", "formal", "short")
        assert event.prompt_length == len("Follow up on invoice")
        assert event.response_length == len("Dear team, ...")
        assert (event.input_tokens, event.output_tokens, event.total_tokens) == (10, 20, 30)
        assert event.processing_time_ms >= 0

    @pytest.mark.asyncio
    async def test_missing_settings_are_none(self):
        bus = FakeEventBus()
        service, _, _, _ = _make_service(bus=bus)

        await service.summarize_email(USER_ID, "thread", requested_at=NOW)

        event = bus.get_event("generation.completed")
        assert event.kind == "summary"
        assert event.language is None
        assert event.tone is None

    @pytest.mark.asyncio
    async def test_rejected_request_publishes_nothing(self):
        bus = FakeEventBus()
        service, tracker, _, _ = _make_service(bus=bus)
        tracker.deny(UsageTier.BASIC)

        with pytest.raises(UsageLimitReachedError):
            await service.summarize_email(USER_ID, "thread", requested_at=NOW)

        bus.assert_not_published("generation.completed")

    @pytest.mark.asyncio
    async def test_failed_generation_publishes_nothing(self):
        bus = FakeEventBus()
        service, _, generator, _ = _make_service(bus=bus)
        generator.fail_with(RuntimeError("provider timeout"))

        with pytest.raises(RuntimeError):
            await service.quick_reply(USER_ID, "Can we meet?", requested_at=NOW)

        bus.assert_not_published("generation.completed")

    @pytest.mark.asyncio
    async def test_each_success_lands_in_the_usage_log(self):
        bus = FakeEventBus(call_subscribers=True)
        repo = FakeUsageLogRepository()
        bus.register(UsageLogListener(repo))
        service, _, _, _ = _make_service(bus=bus)

        await service.summarize_email(USER_ID, "thread", requested_at=NOW)
        await service.quick_reply(USER_ID, "Can we meet?", model="claude-4", requested_at=NOW)

        stats = await repo.get_stats(USER_ID)
        assert stats.total_requests == 2
        assert stats.total_tokens == 60
        assert stats.requests_by_kind == {"summary": 1, "quick_reply": 1}
        assert stats.requests_by_model == {SUMMARY_MODEL: 1, "claude-4": 1}
