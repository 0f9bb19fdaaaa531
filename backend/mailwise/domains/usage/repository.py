"""Postgres-backed usage counter store.

Each transaction locks the counter row with ``SELECT ... FOR UPDATE``. A
missing row cannot be locked, so two first-of-the-month requests may both
see nothing and both INSERT; the loser gets an ``IntegrityError`` on the
primary key and the whole body is re-run against the row the winner wrote.
"""

from datetime import datetime, timezone
from typing import Any, Optional, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)
from tenacity.wait import wait_base

from mailwise.core.logging import logger
from mailwise.db.session import session_scope
from mailwise.domains.usage.counter import UsageCounter, decode_counter, encode_counter
from mailwise.domains.usage.exceptions import TransactionConflictError, UsageStoreError
from mailwise.domains.usage.protocols import TransactionBody, UsageCounterStoreProtocol
from mailwise.models.usage_counter import UsageCounterRecord

T = TypeVar("T")

_COLUMNS = (
    "plan_type",
    "basic_count",
    "advanced_count",
    "updated_at",
    "last_reset_at",
    "last_reset_reason",
    "last_reset_event_id",
)


def _row_to_mapping(row: UsageCounterRecord) -> dict[str, Any]:
    return {column: getattr(row, column) for column in _COLUMNS}


class _SqlCounterTransaction:
    """Transaction handle over one locked (or absent) row."""

    def __init__(
        self,
        db: AsyncSession,
        user_id: str,
        period_key: str,
        as_of: datetime,
    ) -> None:
        """Initialize with an open session and the record address."""
        self._db = db
        self._user_id = user_id
        self._period_key = period_key
        self._as_of = as_of
        self.row: Optional[UsageCounterRecord] = None
        self.staged: Optional[UsageCounter] = None

    async def get(self) -> Optional[UsageCounter]:
        """Lock and read the row."""
        query = (
            select(UsageCounterRecord)
            .where(
                UsageCounterRecord.user_id == self._user_id,
                UsageCounterRecord.period_key == self._period_key,
            )
            .with_for_update()
        )
        result = await self._db.execute(query)
        self.row = result.scalar_one_or_none()
        if self.row is None:
            return None
        return decode_counter(
            _row_to_mapping(self.row),
            user_id=self._user_id,
            period_key=self._period_key,
            fallback=self._as_of,
        )

    def set(self, counter: UsageCounter) -> None:
        """Stage an upsert."""
        self.staged = counter

    def apply(self) -> None:
        """Copy the staged counter onto the session before commit."""
        if self.staged is None:
            return
        values = encode_counter(self.staged)
        if self.row is None:
            # Plain INSERT: a concurrent first write must fail, not be overwritten.
            self._db.add(UsageCounterRecord(**values))
            return
        for column in _COLUMNS:
            setattr(self.row, column, values[column])


class UsageCounterRepository(UsageCounterStoreProtocol):
    """SQLAlchemy implementation of UsageCounterStoreProtocol."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_attempts: int = 5,
        wait: Optional[wait_base] = None,
    ) -> None:
        """Initialize with a session factory and the conflict retry budget."""
        self._session_factory = session_factory
        self._max_attempts = max_attempts
        self._wait = wait or wait_random_exponential(multiplier=0.01, max=0.25)

    async def load(
        self, user_id: str, period_key: str, *, as_of: Optional[datetime] = None
    ) -> Optional[UsageCounter]:
        """Read a counter without locking it."""
        query = select(UsageCounterRecord).where(
            UsageCounterRecord.user_id == user_id,
            UsageCounterRecord.period_key == period_key,
        )
        try:
            async with session_scope(self._session_factory) as db:
                result = await db.execute(query)
                row = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise UsageStoreError(f"Failed to load usage counter: {exc}") from exc

        if row is None:
            return None
        return decode_counter(
            _row_to_mapping(row),
            user_id=user_id,
            period_key=period_key,
            fallback=as_of or datetime.now(timezone.utc),
        )

    async def save(self, user_id: str, period_key: str, counter: UsageCounter) -> None:
        """Overwrite a counter with INSERT ... ON CONFLICT DO UPDATE."""
        values = encode_counter(counter)
        values["user_id"] = user_id
        values["period_key"] = period_key

        stmt = insert(UsageCounterRecord).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "period_key"],
            set_={column: getattr(stmt.excluded, column) for column in _COLUMNS},
        )
        try:
            async with session_scope(self._session_factory) as db:
                await db.execute(stmt)
                await db.commit()
        except SQLAlchemyError as exc:
            raise UsageStoreError(f"Failed to save usage counter: {exc}") from exc

    async def run_transaction(
        self,
        user_id: str,
        period_key: str,
        fn: TransactionBody[T],
        *,
        as_of: Optional[datetime] = None,
    ) -> T:
        """Run *fn* under a row lock, retrying on insert conflicts."""
        as_of = as_of or datetime.now(timezone.utc)

        def _log_retry(retry_state: RetryCallState) -> None:
            logger.with_context(
                user_id=user_id,
                period_key=period_key,
                attempt=retry_state.attempt_number,
            ).warning("Usage counter insert conflicted, retrying")

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._max_attempts),
                retry=retry_if_exception_type(IntegrityError),
                wait=self._wait,
                before_sleep=_log_retry,
                reraise=True,
            ):
                with attempt:
                    return await self._attempt(user_id, period_key, fn, as_of)
        except IntegrityError as exc:
            raise TransactionConflictError(user_id, period_key, self._max_attempts) from exc
        except SQLAlchemyError as exc:
            raise UsageStoreError(f"Usage counter transaction failed: {exc}") from exc
        raise UsageStoreError("Usage counter transaction did not run")

    async def _attempt(
        self,
        user_id: str,
        period_key: str,
        fn: TransactionBody[T],
        as_of: datetime,
    ) -> T:
        async with session_scope(self._session_factory) as db:
            tx = _SqlCounterTransaction(db, user_id, period_key, as_of)
            try:
                result = await fn(tx)
                tx.apply()
                await db.commit()
            except BaseException:
                await db.rollback()
                raise
            return result
