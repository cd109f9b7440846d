import re
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from nebula.models.subscription import PaymentCycle
from nebula.schemas.webhook_channel import is_valid_http_url

_HHMM_RE = re.compile(r"^(\d{2}):(\d{2})$")


def is_valid_time_hhmm(value: str) -> bool:
    match = _HHMM_RE.match(value)
    if not match:
        return False
    hour, minute = int(match.group(1)), int(match.group(2))
    return 0 <= hour <= 23 and 0 <= minute <= 59


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class SubscriptionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    icon: str | None = Field(default=None, max_length=16)
    url: str | None = Field(default=None, max_length=2048)
    logo_url: str | None = Field(default=None, max_length=2048)
    price: Decimal = Field(..., ge=0)
    currency: str = Field(..., min_length=3, max_length=3)
    payment_cycle: PaymentCycle = PaymentCycle.MONTHLY
    custom_days: int | None = None
    start_date: str
    next_due_date: str | None = None
    payment_method: str | None = Field(default=None, max_length=255)
    notify_enabled: bool = False
    notify_days: str | None = Field(default=None, max_length=255)
    notify_time: str | None = None
    notify_channel_ids: list[int] | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name required")
        return value

    @field_validator("icon", "payment_method", "next_due_date", "notify_days", "notify_time")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        return _optional_text(value)

    @field_validator("url", "logo_url")
    @classmethod
    def check_url(cls, value: str | None) -> str | None:
        value = _optional_text(value)
        if value is not None and not is_valid_http_url(value):
            raise ValueError("invalid url")
        return value

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, value: str) -> str:
        value = value.strip().upper()
        if not value.isalpha():
            raise ValueError("currency must be a 3-letter code")
        return value

    @field_validator("notify_time")
    @classmethod
    def check_notify_time(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_time_hhmm(value):
            raise ValueError("invalid notify_time")
        return value

    @field_validator("notify_channel_ids")
    @classmethod
    def check_channel_ids(cls, value: list[int] | None) -> list[int] | None:
        if value is not None and any(channel_id <= 0 for channel_id in value):
            raise ValueError("invalid notify_channel_ids")
        return value


class SubscriptionUpdate(SubscriptionCreate):
    """Full replacement of a subscription; validated like a create."""


class SubscriptionResponse(BaseModel):
    id: int
    name: str
    icon: str | None
    url: str | None
    logo_url: str | None
    price: Decimal
    currency: str
    payment_cycle: str
    custom_days: int | None
    start_date: str
    next_due_date: str
    payment_method: str | None
    status: str
    notify_enabled: bool
    notify_days: str
    notify_time: str
    notify_channel_ids: list[int] | None
    days_left: int | None = None
    created_at: datetime | None

    model_config = {"from_attributes": True}
