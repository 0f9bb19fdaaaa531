"""Billing domain types: the slice of a payment-provider event the backend reads."""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentEventData(BaseModel):
    """Envelope around the event's subject object."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    object: dict[str, Any] = Field(default_factory=dict)


class PaymentEvent(BaseModel):
    """A verified payment-provider webhook event.

    Signature verification happens before this model is built; only the
    fields needed for usage resets are parsed.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    type: str
    created: Optional[int] = Field(None, description="Unix seconds when the event was created.")
    data: PaymentEventData = Field(default_factory=PaymentEventData)

    @property
    def occurred_at(self) -> datetime:
        """When the provider created the event, or now if it did not say."""
        if self.created is None:
            return datetime.now(timezone.utc)
        return datetime.fromtimestamp(self.created, tz=timezone.utc)


def _metadata_value(metadata: Any, *keys: str) -> Optional[str]:
    if not isinstance(metadata, dict):
        return None
    for key in keys:
        value = metadata.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_subscriber(obj: dict[str, Any]) -> tuple[Optional[str], Optional[str]]:
    """Pull (user_id, plan_type) from a paid invoice object.

    Looks at the object's own metadata first, then at
    ``subscription_details.metadata`` where invoices carry it.
    """
    sources = [obj.get("metadata")]
    details = obj.get("subscription_details")
    if isinstance(details, dict):
        sources.append(details.get("metadata"))

    user_id: Optional[str] = None
    plan_type: Optional[str] = None
    for metadata in sources:
        user_id = user_id or _metadata_value(metadata, "user_id", "userId")
        plan_type = plan_type or _metadata_value(metadata, "plan_type", "planType")
    return user_id, plan_type
