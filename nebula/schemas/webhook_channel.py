"""WebhookChannel schemas."""

from datetime import datetime
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator


def is_valid_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _clean_url(value: str) -> str:
    value = value.strip()
    if not is_valid_http_url(value):
        raise ValueError("invalid url")
    return value


def _clean_template(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class WebhookChannelCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    url: str = Field(max_length=2048)
    enabled: bool = True
    template: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name required")
        return value

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        return _clean_url(value)

    @field_validator("template")
    @classmethod
    def check_template(cls, value: str | None) -> str | None:
        return _clean_template(value)


class WebhookChannelUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    url: str | None = Field(default=None, max_length=2048)
    enabled: bool | None = None
    template: str | None = None

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str | None) -> str | None:
        return _clean_url(value) if value is not None else None

    @field_validator("template")
    @classmethod
    def check_template(cls, value: str | None) -> str | None:
        return _clean_template(value)


class WebhookChannelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    url: str
    template: str | None = None
    enabled: bool
    created_at: datetime | None = None


class WebhookTestRequest(BaseModel):
    subscription_id: int | None = None


class WebhookTestResult(BaseModel):
    ok: bool
    status: int
    response: str
    elapsed_ms: int
