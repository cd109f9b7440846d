"""Webhook delivery for subscription reminders."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
from sqlalchemy.orm import Session

from nebula.core.config import settings
from nebula.models.app_settings import AppSettings
from nebula.models.subscription import Subscription
from nebula.models.webhook_channel import WebhookChannel
from nebula.repositories.exchange_rate_repository import ExchangeRateRepository
from nebula.repositories.settings_repository import SettingsRepository
from nebula.repositories.subscription_repository import SubscriptionRepository
from nebula.repositories.webhook_channel_repository import WebhookChannelRepository
from nebula.services.dates import diff_days
from nebula.services.log_service import LogService
from nebula.services.notification_evaluator import DuePair
from nebula.services.rates import convert_to_base_currency, format_price
from nebula.services.time_source import TimeSource
from nebula.services.webhook_templates import (
    TemplateError,
    WebhookContext,
    make_default_payload,
    validate_template,
)

logger = logging.getLogger(__name__)

RESPONSE_PREVIEW_CHARS = 2000


class DispatchFailure(Exception):
    """A single channel delivery failed: network error, timeout or non-2xx."""

    def __init__(self, message: str, status: int = 0, elapsed_ms: int = 0, timed_out: bool = False):
        super().__init__(message)
        self.status = status
        self.elapsed_ms = elapsed_ms
        self.timed_out = timed_out


@dataclass
class DeliveryResult:
    ok: bool
    status: int
    response: str
    elapsed_ms: int


@dataclass
class DispatchReport:
    subscription_id: int
    threshold: int
    sent: int = 0
    failed: int = 0
    skipped: int = 0


def parse_channel_ids(value: Any) -> list[int]:
    """Normalize stored channel ids, dropping anything that is not a positive int."""
    if not isinstance(value, list):
        return []
    ids: list[int] = []
    for item in value:
        try:
            channel_id = int(item)
        except (TypeError, ValueError):
            continue
        if channel_id > 0:
            ids.append(channel_id)
    return ids


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class WebhookDispatcher:
    """Builds reminder payloads and posts them to webhook channels."""

    def __init__(
        self,
        db: Session,
        log_service: LogService,
        time_source: TimeSource | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
        timeout: float = settings.WEBHOOK_TIMEOUT_SECONDS,
    ):
        self.db = db
        self.log = log_service
        self.time_source = time_source or TimeSource()
        self.client_factory = client_factory or httpx.AsyncClient
        self.timeout = timeout
        self.subscription_repo = SubscriptionRepository(db)
        self.channel_repo = WebhookChannelRepository(db)
        self.settings_repo = SettingsRepository(db)

    def build_context(
        self,
        subscription: Subscription,
        today: str,
        app_settings: AppSettings,
    ) -> WebhookContext:
        """Build the template context for one subscription.

        Falls back to the original price and currency when conversion is
        disabled or no rate is stored.
        """
        price = format_price(subscription.price)
        currency = str(subscription.currency)
        display_price, display_currency = price, currency

        if app_settings.exchange_enabled:
            rate_repo = ExchangeRateRepository(self.db)
            converted = convert_to_base_currency(
                subscription.price,
                currency,
                str(app_settings.base_currency),
                rate_repo.get_rate,
            )
            if converted is not None:
                display_price = format_price(converted.price)
                display_currency = converted.currency

        due_date = str(subscription.next_due_date)
        return WebhookContext(
            name=str(subscription.name or ""),
            price=price,
            currency=currency,
            display_price=display_price,
            display_currency=display_currency,
            days_left=str(diff_days(today, due_date)),
            due_date=due_date,
            now=self.time_source.now_iso(),
        )

    def build_payload(self, channel: WebhookChannel, ctx: WebhookContext) -> Any:
        """Render the channel template, or the default payload when it has none.

        Raises:
            TemplateError: If the template does not render to valid JSON.
        """
        template = channel.template
        if template and template.strip():
            return validate_template(template, ctx)
        return make_default_payload(ctx)

    async def post(
        self,
        url: str,
        payload: Any,
        user_agent: str = settings.WEBHOOK_USER_AGENT,
    ) -> DeliveryResult:
        """POST a JSON payload once, without retrying.

        Raises:
            DispatchFailure: On timeout, network error, a request that cannot be
                built (bad URL, unserializable payload) or a non-2xx response.
        """
        started = time.monotonic()
        headers = {"User-Agent": user_agent}
        try:
            async with self.client_factory() as client:
                resp = await client.post(url, json=payload, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as exc:
            raise DispatchFailure(
                "timeout", elapsed_ms=_elapsed_ms(started), timed_out=True
            ) from exc
        except httpx.HTTPError as exc:
            message = str(exc) or type(exc).__name__
            raise DispatchFailure(message, elapsed_ms=_elapsed_ms(started)) from exc
        except Exception as exc:
            logger.exception("Failed to build webhook request for %s", url)
            message = str(exc) or type(exc).__name__
            raise DispatchFailure(message, elapsed_ms=_elapsed_ms(started)) from exc

        elapsed_ms = _elapsed_ms(started)
        text = resp.text[:RESPONSE_PREVIEW_CHARS] if resp.text else ""
        if not 200 <= resp.status_code < 300:
            raise DispatchFailure(text, status=resp.status_code, elapsed_ms=elapsed_ms)
        return DeliveryResult(
            ok=True, status=resp.status_code, response=text, elapsed_ms=elapsed_ms
        )

    async def send(
        self,
        channel: WebhookChannel,
        ctx: WebhookContext,
        user_agent: str = settings.WEBHOOK_TEST_USER_AGENT,
    ) -> DeliveryResult:
        """Deliver one payload to one channel and report the outcome.

        Used by the manual test action; never raises for delivery problems.
        """
        started = time.monotonic()
        try:
            payload = self.build_payload(channel, ctx)
        except TemplateError as exc:
            self.log.error(
                "webhook.test",
                "template render/parse failed",
                {"id": channel.id, "err": str(exc)},
            )
            return DeliveryResult(
                ok=False,
                status=0,
                response=f"template error: {exc}",
                elapsed_ms=_elapsed_ms(started),
            )

        self.log.info(
            "webhook.test",
            "start",
            {"id": channel.id, "name": channel.name, "url": channel.url},
        )
        try:
            result = await self.post(str(channel.url), payload, user_agent=user_agent)
        except DispatchFailure as exc:
            if exc.status:
                self.log.warn(
                    "webhook.test",
                    "done",
                    {"id": channel.id, "status": exc.status, "elapsed_ms": exc.elapsed_ms},
                )
            else:
                self.log.error(
                    "webhook.test",
                    "timeout" if exc.timed_out else "request failed",
                    {"id": channel.id, "elapsed_ms": exc.elapsed_ms, "err": str(exc)},
                )
            return DeliveryResult(
                ok=False, status=exc.status, response=str(exc), elapsed_ms=exc.elapsed_ms
            )

        self.log.info(
            "webhook.test",
            "done",
            {"id": channel.id, "status": result.status, "elapsed_ms": result.elapsed_ms},
        )
        return result

    async def dispatch(self, pair: DuePair, today: str) -> DispatchReport:
        """Send one due reminder to every channel of its subscription.

        Channels are tried one after another in their configured order. A
        missing or disabled channel is skipped, a template error or delivery
        failure is logged, and the remaining channels are still attempted.
        """
        report = DispatchReport(subscription_id=pair.subscription_id, threshold=pair.threshold)

        subscription = self.subscription_repo.get_by_id(pair.subscription_id)
        if subscription is None or not subscription.notify_enabled:
            self.log.warn(
                "scheduler",
                "subscription gone or notifications disabled",
                {"sub_id": pair.subscription_id},
            )
            return report

        channel_ids = parse_channel_ids(subscription.notify_channel_ids)
        if not channel_ids:
            self.log.warn("scheduler", "no channels configured", {"sub_id": pair.subscription_id})
            return report

        ctx = self.build_context(subscription, today, self.settings_repo.get())

        for channel_id in channel_ids:
            channel = self.channel_repo.get_by_id(channel_id)
            if channel is None or not channel.enabled:
                report.skipped += 1
                continue

            try:
                payload = self.build_payload(channel, ctx)
            except TemplateError as exc:
                report.failed += 1
                self.log.error(
                    "scheduler.webhook",
                    "template error",
                    {"channel_id": channel_id, "error": str(exc)},
                )
                continue

            meta = {
                "sub_id": subscription.id,
                "sub_name": subscription.name,
                "channel_id": channel_id,
                "channel_name": channel.name,
                "days_before": pair.threshold,
            }
            try:
                result = await self.post(str(channel.url), payload)
            except DispatchFailure as exc:
                report.failed += 1
                if exc.status:
                    self.log.warn(
                        "scheduler.webhook",
                        "notification failed",
                        {**meta, "status": exc.status, "elapsed_ms": exc.elapsed_ms},
                    )
                else:
                    self.log.error(
                        "scheduler.webhook",
                        "request failed",
                        {**meta, "error": str(exc), "elapsed_ms": exc.elapsed_ms},
                    )
                continue

            report.sent += 1
            self.log.info(
                "scheduler.webhook",
                "notification success",
                {**meta, "status": result.status, "elapsed_ms": result.elapsed_ms},
            )

        return report
