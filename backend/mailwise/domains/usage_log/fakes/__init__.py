"""Usage log domain fakes."""

from mailwise.domains.usage_log.fakes.repository import FakeUsageLogRepository

__all__ = ["FakeUsageLogRepository"]
