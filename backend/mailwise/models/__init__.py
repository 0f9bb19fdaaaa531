"""ORM models."""

from mailwise.models._base import Base
from mailwise.models.usage_counter import UsageCounterRecord
from mailwise.models.usage_log import UsageLogRecord

__all__ = ["Base", "UsageCounterRecord", "UsageLogRecord"]
