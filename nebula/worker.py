import logging
from typing import Any

from arq import cron

from nebula.core.config import settings
from nebula.core.database import SessionLocal
from nebula.services.log_service import LogService
from nebula.services.rates import RatesService, RatesUnavailableError
from nebula.services.scheduler import NotificationScheduler
from nebula.tasks import redis_settings

logger = logging.getLogger(__name__)


def _every(minutes: int) -> set[int]:
    return set(range(0, 60, minutes))


async def startup(ctx: dict[str, Any]) -> None:
    """Build the process-wide reminder scheduler."""
    ctx["scheduler"] = NotificationScheduler(
        session_factory=SessionLocal,
        log_service=LogService(SessionLocal),
    )
    ctx["scheduler"].log.info(
        "scheduler",
        "started",
        {"interval_minutes": settings.NOTIFICATION_CHECK_INTERVAL_MINUTES},
    )


async def shutdown(ctx: dict[str, Any]) -> None:
    """Let in-flight reminder dispatches finish before the worker exits."""
    scheduler: NotificationScheduler | None = ctx.get("scheduler")
    if scheduler is not None:
        await scheduler.drain()


async def check_notifications_task(ctx: dict[str, Any]) -> int:
    """Background task: evaluate due reminders and start their dispatches.

    Runs every 5 minutes and once at worker startup. Dispatches are not
    awaited here; they finish in the background.
    """
    scheduler: NotificationScheduler = ctx["scheduler"]
    pairs = await scheduler.tick()
    if pairs:
        logger.info("Dispatching %d due reminders", len(pairs))
    return len(pairs)


async def refresh_exchange_rates_task(ctx: dict[str, Any]) -> int:
    """Background task: refresh stored exchange rates when they are stale.

    Runs hourly; a no-op while exchange is disabled or the rates are fresh.
    """
    db = SessionLocal()
    try:
        service = RatesService(db)
        try:
            count = service.update_rates()
        except RatesUnavailableError as exc:
            logger.info("Skipping exchange rate refresh: %s", exc)
            return 0
        if count:
            logger.info("Refreshed %d exchange rates", count)
        return count or 0
    finally:
        db.close()


class WorkerSettings:
    functions = [
        check_notifications_task,
        refresh_exchange_rates_task,
    ]
    cron_jobs = [
        cron(
            check_notifications_task,
            minute=_every(settings.NOTIFICATION_CHECK_INTERVAL_MINUTES),
            run_at_startup=True,
        ),
        cron(refresh_exchange_rates_task, minute={0}),  # hourly
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = redis_settings
