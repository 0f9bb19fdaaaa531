"""Fake implementations for usage domain testing."""

from mailwise.domains.usage.fakes.store import InMemoryUsageCounterStore
from mailwise.domains.usage.fakes.tracker import FakeUsageTracker

__all__ = ["FakeUsageTracker", "InMemoryUsageCounterStore"]
