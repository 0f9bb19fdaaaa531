"""Usage counter model."""

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from mailwise.models._base import Base, TimestampMixin


class UsageCounterRecord(Base, TimestampMixin):
    """One row per (user, calendar month) holding the two metered lanes.

    Rows are never deleted when a month ends; the next month gets a new row
    and earlier rows remain as history.
    """

    __tablename__ = "usage_counter"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    period_key: Mapped[str] = mapped_column(String(7), primary_key=True)
    plan_type: Mapped[str] = mapped_column(String(32), nullable=False, default="free")
    basic_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    advanced_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    last_reset_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_reset_reason: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    last_reset_event_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint("basic_count >= 0", name="ck_usage_counter_basic_non_negative"),
        CheckConstraint("advanced_count >= 0", name="ck_usage_counter_advanced_non_negative"),
        Index("idx_usage_counter_period_key", "period_key"),
    )

    def __repr__(self) -> str:
        """Return a short debug representation."""
        return f"<UsageCounterRecord user={self.user_id} period={self.period_key}>"
