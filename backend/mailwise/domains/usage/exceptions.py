"""Usage domain exceptions."""

from typing import Optional

from mailwise.core.exceptions import ExternalServiceError


class UsageStoreError(ExternalServiceError):
    """Raised when the usage counter store cannot complete an operation.

    Callers must treat this as "quota could not be verified" and refuse the
    billable request.
    """

    def __init__(self, message: Optional[str] = "Usage counter store unavailable") -> None:
        """Initialize with default message."""
        super().__init__(service_name="UsageCounterStore", message=message)


class TransactionConflictError(UsageStoreError):
    """Raised when a counter transaction kept conflicting until retries ran out."""

    def __init__(self, user_id: str, period_key: str, attempts: int) -> None:
        """Initialize with the contended record address and attempt count."""
        self.user_id = user_id
        self.period_key = period_key
        self.attempts = attempts
        super().__init__(
            f"Transaction on usage counter {user_id}/{period_key} "
            f"conflicted {attempts} times"
        )
