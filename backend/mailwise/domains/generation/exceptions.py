"""Generation domain exceptions."""

from mailwise.core.exceptions import InvalidStateError
from mailwise.schemas.usage import UsageConsumptionResult


class UsageLimitReachedError(InvalidStateError):
    """Raised when a metered request is rejected by the usage tracker.

    Carries the consumption result so handlers can report counts and the
    reset date alongside the user-facing message.
    """

    def __init__(self, result: UsageConsumptionResult, message: str) -> None:
        """Initialize with the rejected consumption result and display message."""
        self.result = result
        super().__init__(message)
