"""In-memory usage counter store.

Used by tests and by the container when ``USAGE_STORE_BACKEND=memory``.
Records are kept as plain dicts so tests can seed legacy or malformed
documents and watch them go through the same decode path as real rows.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Mapping, Optional, TypeVar

from mailwise.domains.usage.counter import UsageCounter, decode_counter, encode_counter
from mailwise.domains.usage.exceptions import UsageStoreError
from mailwise.domains.usage.protocols import TransactionBody, UsageCounterStoreProtocol

T = TypeVar("T")

Key = tuple[str, str]


class _InMemoryTransaction:
    """Transaction handle that stages a single write until commit."""

    def __init__(self, store: "InMemoryUsageCounterStore", key: Key, as_of: datetime) -> None:
        """Initialize against one record address."""
        self._store = store
        self._key = key
        self._as_of = as_of
        self.staged: Optional[UsageCounter] = None

    async def get(self) -> Optional[UsageCounter]:
        """Read the committed record."""
        # Yield so concurrent transactions actually interleave in tests.
        await asyncio.sleep(0)
        return self._store._decode(self._key, self._as_of)

    def set(self, counter: UsageCounter) -> None:
        """Stage an upsert."""
        self.staged = counter


class InMemoryUsageCounterStore(UsageCounterStoreProtocol):
    """Dict-backed store with per-record locking.

    Usage:
        store = InMemoryUsageCounterStore()
        store.seed("user-1", "2024-03", {"basicCount": 5})
        store.fail_next(UsageStoreError("down"))

        assert store.raw("user-1", "2024-03")["basic_count"] == 5
    """

    def __init__(self) -> None:
        """Initialize empty storage and call log."""
        self._documents: dict[Key, dict[str, Any]] = {}
        self._locks: dict[Key, asyncio.Lock] = {}
        self._lock_holders: dict[Key, int] = {}
        self._pending_failures: list[Exception] = []
        self._calls: list[tuple] = []

    # ------------------------------------------------------------------
    # Test helpers
    # ------------------------------------------------------------------

    def seed(self, user_id: str, period_key: str, document: Mapping[str, Any]) -> None:
        """Store a raw document as-is."""
        self._documents[(user_id, period_key)] = dict(document)

    def raw(self, user_id: str, period_key: str) -> Optional[dict[str, Any]]:
        """Return a copy of the stored document, if any."""
        document = self._documents.get((user_id, period_key))
        return dict(document) if document is not None else None

    def fail_next(self, exc: Optional[Exception] = None) -> None:
        """Make the next store operation raise *exc*."""
        self._pending_failures.append(exc or UsageStoreError("Simulated store outage"))

    def call_count(self, method: str) -> int:
        """Return the number of times a method was called."""
        return sum(1 for name, *_ in self._calls if name == method)

    def lock_count(self) -> int:
        """Return the number of record locks currently held or awaited."""
        return len(self._locks)

    def clear(self) -> None:
        """Drop all documents, failures and recorded calls."""
        self._documents.clear()
        self._locks.clear()
        self._lock_holders.clear()
        self._pending_failures.clear()
        self._calls.clear()

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------

    async def load(
        self, user_id: str, period_key: str, *, as_of: Optional[datetime] = None
    ) -> Optional[UsageCounter]:
        """Read a counter outside of a transaction."""
        self._calls.append(("load", user_id, period_key))
        self._raise_pending()
        return self._decode((user_id, period_key), as_of or datetime.now(timezone.utc))

    async def save(self, user_id: str, period_key: str, counter: UsageCounter) -> None:
        """Overwrite a counter."""
        self._calls.append(("save", user_id, period_key))
        self._raise_pending()
        key = (user_id, period_key)
        async with self._locked(key):
            self._documents[key] = encode_counter(counter)

    async def run_transaction(
        self,
        user_id: str,
        period_key: str,
        fn: TransactionBody[T],
        *,
        as_of: Optional[datetime] = None,
    ) -> T:
        """Run *fn* while holding the record's lock and commit its staged write."""
        self._calls.append(("run_transaction", user_id, period_key))
        self._raise_pending()
        key = (user_id, period_key)
        async with self._locked(key):
            tx = _InMemoryTransaction(self, key, as_of or datetime.now(timezone.utc))
            result = await fn(tx)
            if tx.staged is not None:
                self._documents[key] = encode_counter(tx.staged)
            return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _locked(self, key: Key) -> AsyncIterator[None]:
        # Locks exist only while someone holds or waits on them.
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_holders[key] = self._lock_holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._lock_holders.get(key, 1) - 1
            if remaining:
                self._lock_holders[key] = remaining
            else:
                self._lock_holders.pop(key, None)
                self._locks.pop(key, None)

    def _raise_pending(self) -> None:
        if self._pending_failures:
            raise self._pending_failures.pop(0)

    def _decode(self, key: Key, as_of: datetime) -> Optional[UsageCounter]:
        document = self._documents.get(key)
        if document is None:
            return None
        user_id, period_key = key
        return decode_counter(document, user_id=user_id, period_key=period_key, fallback=as_of)
