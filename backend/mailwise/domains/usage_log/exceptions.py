"""Usage log domain exceptions."""

from typing import Optional

from mailwise.core.exceptions import ExternalServiceError


class UsageLogStoreError(ExternalServiceError):
    """Raised when the usage log table cannot be read or written."""

    def __init__(self, message: Optional[str] = "Usage log store unavailable") -> None:
        """Initialize with default message."""
        super().__init__(service_name="UsageLogStore", message=message)
