from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Nebula"
    version: str = "0.2.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/nebula.db"
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Outbound webhooks
    WEBHOOK_TIMEOUT_SECONDS: float = 10.0
    WEBHOOK_USER_AGENT: str = "Nebula/0.2 (scheduled notification)"
    WEBHOOK_TEST_USER_AGENT: str = "Nebula/0.2 (webhook test)"

    # Notification scheduling
    NOTIFICATION_CHECK_INTERVAL_MINUTES: int = 5
    NOTIFICATION_WINDOW_MINUTES: int = 5
    DEFAULT_NOTIFY_DAYS: str = "7,3,1,0"
    DEFAULT_NOTIFY_TIME: str = "09:00"

    # Defaults for the settings row
    DEFAULT_TIMEZONE: str = "Asia/Shanghai"
    DEFAULT_BASE_CURRENCY: str = "CNY"

    # Exchange rates
    EXCHANGE_RATE_API_URL: str = "https://v6.exchangerate-api.com/v6"
    EXCHANGE_RATE_CACHE_HOURS: int = 12
    RATE_FETCH_TIMEOUT_SECONDS: float = 10.0


settings = Settings()
