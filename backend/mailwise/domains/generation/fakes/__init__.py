"""Fake implementations for generation domain testing."""

from mailwise.domains.generation.fakes.generator import FakeTextGenerator
from mailwise.domains.generation.fakes.plan_source import FakePlanSource

__all__ = ["FakePlanSource", "FakeTextGenerator"]
