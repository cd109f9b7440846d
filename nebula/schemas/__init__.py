from nebula.schemas.app_settings import AppSettingsResponse, AppSettingsUpdate, RatesRefreshResponse
from nebula.schemas.log_entry import LogEntryResponse
from nebula.schemas.subscription import (
    SubscriptionCreate,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from nebula.schemas.webhook_channel import (
    WebhookChannelCreate,
    WebhookChannelResponse,
    WebhookChannelUpdate,
    WebhookTestRequest,
    WebhookTestResult,
)

__all__ = [
    "AppSettingsResponse",
    "AppSettingsUpdate",
    "LogEntryResponse",
    "RatesRefreshResponse",
    "SubscriptionCreate",
    "SubscriptionResponse",
    "SubscriptionUpdate",
    "WebhookChannelCreate",
    "WebhookChannelResponse",
    "WebhookChannelUpdate",
    "WebhookTestRequest",
    "WebhookTestResult",
]
