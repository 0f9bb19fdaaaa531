"""Root conftest for pytest configuration and shared fixtures.

This conftest is loaded before both testpaths (tests/ and mailwise/domains/),
making its fixtures available to centralized tests AND colocated domain tests.
"""

import os

import pytest

# ---------------------------------------------------------------------------
# Environment variables: must be set before any mailwise module import
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("POSTGRES_HOST", "localhost")
os.environ.setdefault("POSTGRES_USER", "test_user")
os.environ.setdefault("POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("POSTGRES_DB", "test_db")
os.environ.setdefault("USAGE_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "DEBUG")


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_event_bus():
    """Fake EventBus that records published events."""
    from mailwise.adapters.event_bus.fake import FakeEventBus

    return FakeEventBus()


@pytest.fixture
def usage_store():
    """In-memory usage counter store."""
    from mailwise.domains.usage.fakes.store import InMemoryUsageCounterStore

    return InMemoryUsageCounterStore()


@pytest.fixture
def usage_tracker(usage_store):
    """Real UsageTracker backed by the in-memory store."""
    from mailwise.domains.usage.tracker import UsageTracker

    return UsageTracker(store=usage_store)


@pytest.fixture
def fake_usage_tracker():
    """Fake UsageTracker that records calls and allows by default."""
    from mailwise.domains.usage.fakes.tracker import FakeUsageTracker

    return FakeUsageTracker()
