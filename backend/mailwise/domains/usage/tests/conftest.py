"""Usage domain test fixtures and helpers."""

from datetime import datetime, timezone

from mailwise.domains.usage.types import PlanLimits
from mailwise.schemas.usage import Plan

USER_ID = "user-0001"
OTHER_USER_ID = "user-0002"

MARCH_15 = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

# Catalog with uncapped lanes; the shipped catalog has none.
UNCAPPED_CATALOG = {
    Plan.FREE: PlanLimits(basic=20, advanced=0),
    Plan.PRO: PlanLimits(basic=5000, advanced=200),
    Plan.UNLIMITED: PlanLimits(basic=None, advanced=None),
}


def _dt(year: int, month: int, day: int = 1, hour: int = 0, minute: int = 0, second: int = 0):
    return datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc)
