"""Usage log model for per-request generation analytics."""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from mailwise.models._base import Base, TimestampMixin


class UsageLogRecord(Base, TimestampMixin):
    """One row per completed generation.

    Append-only. Quota enforcement never reads this table; it backs the
    per-user stats and recent-activity views.
    """

    __tablename__ = "usage_log"

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    logged_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, comment="When the generation was requested"
    )

    # Request details
    kind: Mapped[str] = mapped_column(
        String(32), nullable=False, comment="'email', 'summary' or 'quick_reply'"
    )
    model: Mapped[str] = mapped_column(String(64), nullable=False)
    language: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    tone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    length: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    prompt_length: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Prompt length in characters"
    )
    response_length: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Generated text length in characters"
    )

    # Provider-reported tokens
    input_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    output_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Performance
    processing_time_ms: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Generation time in milliseconds"
    )

    __table_args__ = (Index("ix_usage_log_user_logged_at", "user_id", "logged_at"),)

    def __repr__(self) -> str:
        """Return a short debug representation."""
        return f"<UsageLogRecord user={self.user_id} kind={self.kind} model={self.model}>"
