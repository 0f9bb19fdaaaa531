"""Fake plan source for testing."""

from typing import Optional

from mailwise.domains.generation.protocols import PlanSourceProtocol


class FakePlanSource(PlanSourceProtocol):
    """In-memory user -> raw plan string map."""

    def __init__(self) -> None:
        """Initialize with no plans on record."""
        self._plans: dict[str, Optional[str]] = {}
        self._error: Optional[Exception] = None

    def seed(self, user_id: str, plan_type: Optional[str]) -> None:
        """Store a raw plan string for a user."""
        self._plans[user_id] = plan_type

    def fail_with(self, exc: Optional[Exception]) -> None:
        """Raise *exc* on every lookup; pass None to stop failing."""
        self._error = exc

    async def get_plan_type(self, user_id: str) -> Optional[str]:
        """Return the seeded plan string, if any."""
        if self._error is not None:
            raise self._error
        return self._plans.get(user_id)
