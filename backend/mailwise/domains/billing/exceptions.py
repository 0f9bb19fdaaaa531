"""Billing domain exceptions."""

from typing import Optional

from mailwise.core.exceptions import MailwiseException


class InvalidWebhookPayloadError(MailwiseException):
    """Raised when a webhook payload does not have the shape of a payment event."""

    def __init__(self, message: Optional[str] = "Invalid webhook payload") -> None:
        """Initialize with default message."""
        super().__init__(message)
