"""Exception hierarchy shared by all domains.

Domain packages subclass these so callers can catch by meaning
(wrong state, collaborator down) without importing domain modules.
"""

from typing import Optional


class MailwiseException(Exception):
    """Root of every error raised on purpose by this package."""

    def __init__(self, message: Optional[str] = None) -> None:
        """Store *message* on the instance as well as in ``args``."""
        self.message = message
        super().__init__(*([message] if message is not None else []))


class InvalidStateError(MailwiseException):
    """The request is well-formed but cannot be served in the current state.

    Quota rejections surfaced to handlers derive from this.
    """

    def __init__(self, message: Optional[str] = "Object is not in a valid state") -> None:
        """Initialize with default message."""
        super().__init__(message)


class ExternalServiceError(MailwiseException):
    """A collaborator outside the process (database, provider) failed.

    Args:
        service_name: Short name of the failing collaborator, used as prefix.
        message: What went wrong.
    """

    def __init__(self, service_name: str, message: Optional[str] = "External service failed"):
        """Initialize with the failing service's name and a message."""
        self.service_name = service_name
        super().__init__(message)

    def __str__(self) -> str:
        """Render as ``service: message``."""
        return f"{self.service_name}: {self.message}"
