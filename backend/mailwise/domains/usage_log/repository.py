"""Postgres-backed usage log."""

from typing import Optional
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mailwise.db.session import session_scope
from mailwise.domains.usage_log.exceptions import UsageLogStoreError
from mailwise.domains.usage_log.protocols import UsageLogRepositoryProtocol
from mailwise.domains.usage_log.types import normalize_recent_limit
from mailwise.models.usage_log import UsageLogRecord
from mailwise.schemas.usage_log import UsageLogCreate, UsageLogEntry, UsageStats


class UsageLogRepository(UsageLogRepositoryProtocol):
    """SQLAlchemy implementation of UsageLogRepositoryProtocol."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize with a session factory."""
        self._session_factory = session_factory

    async def create(self, obj_in: UsageLogCreate) -> UsageLogEntry:
        """Insert one record."""
        record = UsageLogRecord(id=uuid4(), **obj_in.model_dump())
        try:
            async with session_scope(self._session_factory) as db:
                db.add(record)
                await db.commit()
        except SQLAlchemyError as exc:
            raise UsageLogStoreError(f"Failed to write usage log: {exc}") from exc
        return UsageLogEntry.model_validate(record)

    async def get_recent(self, user_id: str, limit: Optional[int] = None) -> list[UsageLogEntry]:
        """Return up to *limit* records, newest first."""
        query = (
            select(UsageLogRecord)
            .where(UsageLogRecord.user_id == user_id)
            .order_by(UsageLogRecord.logged_at.desc())
            .limit(normalize_recent_limit(limit))
        )
        try:
            async with session_scope(self._session_factory) as db:
                result = await db.execute(query)
                records = result.scalars().all()
        except SQLAlchemyError as exc:
            raise UsageLogStoreError(f"Failed to read usage log: {exc}") from exc
        return [UsageLogEntry.model_validate(record) for record in records]

    async def get_stats(self, user_id: str) -> UsageStats:
        """Aggregate in the database: totals plus counts by model, kind and language."""
        owned = UsageLogRecord.user_id == user_id
        totals_query = select(
            func.count(UsageLogRecord.id),
            func.coalesce(func.sum(UsageLogRecord.total_tokens), 0),
            func.coalesce(func.avg(UsageLogRecord.processing_time_ms), 0),
        ).where(owned)

        def _grouped(column):
            return select(column, func.count(UsageLogRecord.id)).where(owned).group_by(column)

        try:
            async with session_scope(self._session_factory) as db:
                total_requests, total_tokens, avg_time = (await db.execute(totals_query)).one()
                by_model = (await db.execute(_grouped(UsageLogRecord.model))).all()
                by_kind = (await db.execute(_grouped(UsageLogRecord.kind))).all()
                by_language = (
                    await db.execute(
                        _grouped(UsageLogRecord.language).where(
                            UsageLogRecord.language.is_not(None)
                        )
                    )
                ).all()
        except SQLAlchemyError as exc:
            raise UsageLogStoreError(f"Failed to aggregate usage log: {exc}") from exc

        return UsageStats(
            total_requests=total_requests,
            total_tokens=int(total_tokens),
            average_processing_time_ms=float(avg_time),
            requests_by_model={model: count for model, count in by_model},
            requests_by_kind={kind: count for kind, count in by_kind},
            requests_by_language={language: count for language, count in by_language},
        )
