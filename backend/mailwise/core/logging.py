"""Logging configuration with contextual dimensions.

Usage:
    from mailwise.core.logging import logger

    log = logger.with_context(user_id=user_id, period_key="2024-03")
    log.info("Usage limit reached")
    # ... Usage limit reached [period_key=2024-03 user_id=abc]
"""

import logging
import sys
from typing import Any, MutableMapping, Optional

from mailwise.core.config import settings

_CONTEXT_ATTR = "dimensions"


class ContextFormatter(logging.Formatter):
    """Formatter that appends the record's dimensions as sorted key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the record and append its dimensions, if any."""
        message = super().format(record)
        dimensions = getattr(record, _CONTEXT_ATTR, None)
        if not dimensions:
            return message
        rendered = " ".join(f"{key}={dimensions[key]}" for key in sorted(dimensions))
        return f"{message} [{rendered}]"


class ContextualLogger(logging.LoggerAdapter):
    """Logger adapter carrying a dict of dimensions and an optional message prefix.

    ``with_context`` and ``with_prefix`` return new adapters; the receiver is
    never mutated, so a derived logger can be handed to a request without
    leaking its dimensions into the module logger.
    """

    def __init__(
        self,
        logger: logging.Logger,
        dimensions: Optional[dict[str, Any]] = None,
        prefix: str = "",
    ) -> None:
        """Wrap *logger* with the given dimensions and prefix."""
        super().__init__(logger, {})
        self.dimensions: dict[str, Any] = dict(dimensions or {})
        self.prefix = prefix

    def with_context(self, **dimensions: Any) -> "ContextualLogger":
        """Return a logger with *dimensions* merged over the current ones."""
        merged = {**self.dimensions, **dimensions}
        return ContextualLogger(self.logger, merged, self.prefix)

    def with_prefix(self, prefix: str) -> "ContextualLogger":
        """Return a logger that prepends *prefix* to every message."""
        return ContextualLogger(self.logger, self.dimensions, prefix)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, Any]:
        """Attach dimensions to the record and apply the prefix."""
        extra = dict(kwargs.get("extra") or {})
        call_dimensions = extra.pop(_CONTEXT_ATTR, {})
        extra[_CONTEXT_ATTR] = {**self.dimensions, **call_dimensions}
        kwargs["extra"] = extra
        if self.prefix:
            msg = f"{self.prefix}{msg}"
        return msg, kwargs


def _configure_root(level: str) -> logging.Logger:
    base = logging.getLogger("mailwise")
    if not base.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            ContextFormatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")
        )
        base.addHandler(handler)
    base.setLevel(level)
    return base


logger = ContextualLogger(_configure_root(settings.LOG_LEVEL))
