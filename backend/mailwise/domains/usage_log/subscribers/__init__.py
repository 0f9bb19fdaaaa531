"""Usage log domain event subscribers."""

from mailwise.domains.usage_log.subscribers.generation_listener import UsageLogListener

__all__ = ["UsageLogListener"]
