from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from nebula.services.time_source import is_valid_timezone


class AppSettingsUpdate(BaseModel):
    timezone: str | None = Field(default=None, max_length=64)
    base_currency: str | None = Field(default=None, min_length=3, max_length=3)
    exchange_enabled: bool | None = None
    exchange_api_key: str | None = Field(default=None, max_length=255)

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_timezone(value):
            raise ValueError("unknown timezone")
        return value

    @field_validator("base_currency")
    @classmethod
    def normalize_currency(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip().upper()
        if not value.isalpha():
            raise ValueError("currency must be a 3-letter code")
        return value


class AppSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timezone: str
    base_currency: str
    exchange_enabled: bool
    last_rate_update: datetime | None = None


class RatesRefreshResponse(BaseModel):
    updated: bool
    count: int = 0
    at: datetime | None = None
