from nebula.models.app_settings import SETTINGS_ROW_ID, AppSettings
from nebula.models.exchange_rate import ExchangeRate
from nebula.models.log_entry import LogEntry, LogLevel
from nebula.models.subscription import PaymentCycle, Subscription, SubscriptionStatus
from nebula.models.webhook_channel import WebhookChannel

__all__ = [
    "SETTINGS_ROW_ID",
    "AppSettings",
    "ExchangeRate",
    "LogEntry",
    "LogLevel",
    "PaymentCycle",
    "Subscription",
    "SubscriptionStatus",
    "WebhookChannel",
]
