"""Metered generation service.

Wraps every LLM call in the usage protocol: consume before generating,
refuse on rejection, roll back when generation fails. Each completed
generation is announced on the event bus for the usage log.
"""

import time
from datetime import datetime, timezone
from typing import Any, Optional

from mailwise.core.events.generation import GenerationCompletedEvent
from mailwise.core.logging import ContextualLogger, logger
from mailwise.core.protocols.event_bus import EventBus
from mailwise.domains.generation.exceptions import UsageLimitReachedError
from mailwise.domains.generation.messages import build_limit_message
from mailwise.domains.generation.protocols import PlanSourceProtocol, TextGeneratorProtocol
from mailwise.domains.generation.types import (
    DEFAULT_QUICK_REPLY_MODEL,
    SUMMARY_MODEL,
    GenerationKind,
    GenerationRequest,
    GenerationResult,
    MeteredGeneration,
)
from mailwise.domains.usage.protocols import UsageTrackerProtocol
from mailwise.domains.usage.types import Plan, resolve_plan_type, to_utc


class MeteredGenerationService:
    """Runs billable generations against the usage tracker."""

    def __init__(
        self,
        tracker: UsageTrackerProtocol,
        generator: TextGeneratorProtocol,
        plan_source: PlanSourceProtocol,
        event_bus: EventBus,
    ) -> None:
        """Initialize with the tracker, the text generator, the plan lookup and the bus."""
        self._tracker = tracker
        self._generator = generator
        self._plan_source = plan_source
        self._event_bus = event_bus

    async def resolve_plan(self, user_id: str) -> Plan:
        """Look up the user's plan, falling back to free if the lookup fails."""
        try:
            raw = await self._plan_source.get_plan_type(user_id)
        except Exception as e:
            logger.with_context(user_id=user_id).error(
                f"Failed to resolve user plan type, defaulting to free: {e}"
            )
            return Plan.FREE
        return resolve_plan_type(raw)

    async def run(
        self,
        user_id: str,
        model: str,
        request: GenerationRequest,
        requested_at: Optional[datetime] = None,
    ) -> MeteredGeneration:
        """Consume quota for *model*, generate, and roll back if generation fails.

        Raises:
            UsageLimitReachedError: the request was rejected by the tracker.
            UsageStoreError: quota could not be verified; nothing was generated.
        """
        requested_at = requested_at or datetime.now(timezone.utc)
        plan = await self.resolve_plan(user_id)
        log = logger.with_context(user_id=user_id, model=model, kind=request.kind.value)

        usage = await self._tracker.consume_usage(user_id, plan, model, requested_at)
        if not usage.allowed:
            raise UsageLimitReachedError(usage, build_limit_message(plan, usage))

        started = time.monotonic()
        try:
            result = await self._generator.generate(request)
        except Exception:
            log.error("Generation failed, rolling back usage")
            await self._rollback(user_id, model, requested_at, log)
            raise

        elapsed_ms = int((time.monotonic() - started) * 1000)
        log.with_context(total_tokens=result.tokens_used.total).info("Generation completed")
        await self._event_bus.publish(
            _completed_event(user_id, model, request, result, requested_at, elapsed_ms)
        )
        return MeteredGeneration(result=result, usage=usage)

    async def _rollback(
        self, user_id: str, model: str, requested_at: datetime, log: ContextualLogger
    ) -> None:
        try:
            await self._tracker.rollback_usage(user_id, model, requested_at)
        except Exception as e:
            log.error(f"Failed to rollback usage after generation error: {e}")

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def generate_email(
        self,
        user_id: str,
        prompt: str,
        model: str = DEFAULT_QUICK_REPLY_MODEL,
        *,
        context: Optional[dict[str, Any]] = None,
        settings: Optional[dict[str, Any]] = None,
        requested_at: Optional[datetime] = None,
    ) -> MeteredGeneration:
        """Draft an email with the user's chosen model."""
        request = GenerationRequest(
            kind=GenerationKind.EMAIL,
            model=model,
            prompt=prompt,
            context=context,
            settings=settings or {},
        )
        return await self.run(user_id, model, request, requested_at)

    async def summarize_email(
        self,
        user_id: str,
        content: str,
        *,
        requested_at: Optional[datetime] = None,
    ) -> MeteredGeneration:
        """Summarize an email. Always billed on the summary model."""
        request = GenerationRequest(
            kind=GenerationKind.SUMMARY, model=SUMMARY_MODEL, prompt=content
        )
        return await self.run(user_id, SUMMARY_MODEL, request, requested_at)

    async def quick_reply(
        self,
        user_id: str,
        content: str,
        model: Optional[str] = None,
        *,
        requested_at: Optional[datetime] = None,
    ) -> MeteredGeneration:
        """Draft a short reply to an email."""
        model = model or DEFAULT_QUICK_REPLY_MODEL
        request = GenerationRequest(kind=GenerationKind.QUICK_REPLY, model=model, prompt=content)
        return await self.run(user_id, model, request, requested_at)


def _completed_event(
    user_id: str,
    model: str,
    request: GenerationRequest,
    result: GenerationResult,
    requested_at: datetime,
    elapsed_ms: int,
) -> GenerationCompletedEvent:
    settings = request.settings

    def _setting(key: str) -> Optional[str]:
        value = settings.get(key)
        return str(value) if value not in (None, "") else None

    return GenerationCompletedEvent(
        user_id=user_id,
        timestamp=to_utc(requested_at),
        kind=request.kind.value,
        model=model,
        language=_setting("language"),
        tone=_setting("tone"),
        length=_setting("length"),
        prompt_length=len(request.prompt),
        response_length=len(result.text),
        input_tokens=result.tokens_used.input,
        output_tokens=result.tokens_used.output,
        total_tokens=result.tokens_used.total,
        processing_time_ms=elapsed_ms,
    )
