"""Exchange rate refresh and currency conversion."""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from urllib.parse import quote

import httpx
from sqlalchemy.orm import Session

from nebula.core.config import settings
from nebula.repositories.exchange_rate_repository import ExchangeRateRepository
from nebula.repositories.settings_repository import SettingsRepository

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


class RatesUnavailableError(Exception):
    """Raised when rates cannot be refreshed."""


@dataclass(frozen=True)
class ConvertedPrice:
    price: Decimal
    currency: str


def format_price(value: Decimal | float | int) -> str:
    """Format an amount with exactly two decimals."""
    return str(Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP))


def convert_to_base_currency(
    price: Decimal,
    currency: str,
    base_currency: str,
    get_rate: Callable[[str], float | None],
) -> ConvertedPrice | None:
    """Convert a price into the base currency.

    Args:
        price: Amount in ``currency``.
        currency: Currency of the amount.
        base_currency: Target currency.
        get_rate: Looks up units of a currency per one base-currency unit.

    Returns:
        The converted price rounded to cents, or None when no usable rate exists.
    """
    if currency == base_currency:
        return ConvertedPrice(price=Decimal(price), currency=base_currency)

    rate = get_rate(currency)
    if rate is None or rate <= 0:
        return None

    converted = Decimal(price) / Decimal(str(rate))
    return ConvertedPrice(
        price=converted.quantize(CENTS, rounding=ROUND_HALF_UP),
        currency=base_currency,
    )


class RatesService:
    """Service for refreshing stored exchange rates."""

    def __init__(self, db: Session, client_factory: Callable[[], httpx.Client] | None = None):
        self.db = db
        self.settings_repo = SettingsRepository(db)
        self.rate_repo = ExchangeRateRepository(db)
        self.client_factory = client_factory or (
            lambda: httpx.Client(timeout=settings.RATE_FETCH_TIMEOUT_SECONDS)
        )

    def is_recent(self, last_update: datetime | None, now: datetime) -> bool:
        if last_update is None:
            return False
        # SQLite drops tzinfo
        if last_update.tzinfo is None:
            last_update = last_update.replace(tzinfo=UTC)
        return now - last_update < timedelta(hours=settings.EXCHANGE_RATE_CACHE_HOURS)

    def update_rates(self, force: bool = False) -> int | None:
        """Fetch the latest rates for the base currency and store them.

        Args:
            force: Refresh even when the stored rates are still fresh.

        Returns:
            Number of rates stored, or None when the refresh was skipped.

        Raises:
            RatesUnavailableError: If exchange is disabled, unconfigured, or the
                rate API fails.
        """
        app_settings = self.settings_repo.get()
        if not app_settings.exchange_enabled:
            raise RatesUnavailableError("exchange is disabled")
        if not app_settings.exchange_api_key:
            raise RatesUnavailableError("missing exchange_api_key")

        now = datetime.now(UTC)
        if not force and self.is_recent(app_settings.last_rate_update, now):
            return None

        url = (
            f"{settings.EXCHANGE_RATE_API_URL}/{quote(app_settings.exchange_api_key, safe='')}"
            f"/latest/{quote(app_settings.base_currency, safe='')}"
        )
        try:
            with self.client_factory() as client:
                resp = client.get(url)
        except httpx.HTTPError as exc:
            raise RatesUnavailableError(f"rate api request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise RatesUnavailableError(f"rate api http {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise RatesUnavailableError(f"rate api json parse failed: {exc}") from exc

        if not isinstance(data, dict) or data.get("result") != "success":
            raise RatesUnavailableError("rate api result not success")
        conversion_rates = data.get("conversion_rates")
        if not isinstance(conversion_rates, dict):
            raise RatesUnavailableError("rate api result not success")

        rates = {
            str(code): float(rate)
            for code, rate in conversion_rates.items()
            if isinstance(rate, int | float)
            and not isinstance(rate, bool)
            and math.isfinite(rate)
            and rate > 0
        }
        count = self.rate_repo.upsert_many(rates, now)
        self.settings_repo.mark_rates_updated(now)
        logger.info("Stored %d exchange rates for %s", count, app_settings.base_currency)
        return count
