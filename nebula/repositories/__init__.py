from nebula.repositories.exchange_rate_repository import ExchangeRateRepository
from nebula.repositories.log_repository import LogRepository
from nebula.repositories.settings_repository import SettingsRepository
from nebula.repositories.subscription_repository import SubscriptionRepository
from nebula.repositories.webhook_channel_repository import WebhookChannelRepository

__all__ = [
    "ExchangeRateRepository",
    "LogRepository",
    "SettingsRepository",
    "SubscriptionRepository",
    "WebhookChannelRepository",
]
