"""Reminder scheduler: evaluates due reminders on each tick and fans out dispatches."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from sqlalchemy.orm import Session

from nebula.repositories.settings_repository import SettingsRepository
from nebula.repositories.subscription_repository import SubscriptionRepository
from nebula.services.log_service import LogService
from nebula.services.notification_evaluator import (
    DedupStore,
    DuePair,
    InMemoryDedupStore,
    NotificationEvaluator,
)
from nebula.services.time_source import TimeSource
from nebula.services.webhook_dispatcher import WebhookDispatcher

logger = logging.getLogger(__name__)


class NotificationScheduler:
    """Long-lived reminder scheduler, one per process.

    Each due pair is dispatched in its own task so that one slow or failing
    subscription never holds up the tick. A task opens its own session,
    logs any error it hits, and records the pair in the dedup store when it
    finishes, whatever the outcome.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        time_source: TimeSource | None = None,
        dedup_store: DedupStore | None = None,
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
        log_service: LogService | None = None,
        auto_backup: Callable[[], Awaitable[Any]] | None = None,
    ):
        self.session_factory = session_factory
        self.time_source = time_source or TimeSource()
        self.dedup_store = dedup_store if dedup_store is not None else InMemoryDedupStore()
        self.client_factory = client_factory
        self.log = log_service or LogService(session_factory)
        self.auto_backup = auto_backup
        self.evaluator = NotificationEvaluator(self.dedup_store)
        self._tasks: set[asyncio.Task[Any]] = set()
        self._pending: set[tuple[int, int]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def _spawn(self, coro: Awaitable[Any], name: str) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        task.set_name(name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def tick(self) -> list[DuePair]:
        """Run one scheduler pass.

        Returns:
            The due pairs whose dispatch was started. Dispatches keep running
            after this returns; use ``drain`` to wait for them.
        """
        db = self.session_factory()
        try:
            app_settings = SettingsRepository(db).get()
            timezone = str(app_settings.timezone)
            today = self.time_source.today(timezone)
            now = self.time_source.now_hhmm(timezone)

            self.log.debug(
                "scheduler",
                "checking notifications",
                {"today": today, "current_time": now},
            )

            subscriptions = SubscriptionRepository(db).get_notify_enabled()
            pairs = self.evaluator.evaluate(today, now, subscriptions)
        finally:
            db.close()

        pairs = [pair for pair in pairs if pair.key not in self._pending]
        for pair in pairs:
            self._pending.add(pair.key)
            self._spawn(
                self._dispatch(pair, today),
                name=f"dispatch-{pair.subscription_id}-{pair.threshold}",
            )

        if self.auto_backup is not None:
            self._spawn(self._run_auto_backup(self.auto_backup), name="auto-backup")

        if pairs:
            logger.info("Started %d reminder dispatches for %s", len(pairs), today)
        return pairs

    async def _dispatch(self, pair: DuePair, today: str) -> None:
        db = self.session_factory()
        try:
            dispatcher = WebhookDispatcher(
                db,
                self.log,
                time_source=self.time_source,
                client_factory=self.client_factory,
            )
            await dispatcher.dispatch(pair, today)
        except Exception as exc:
            logger.exception("Reminder dispatch failed for subscription %s", pair.subscription_id)
            self.log.error(
                "scheduler",
                "notification error",
                {"sub_id": pair.subscription_id, "error": str(exc)},
            )
        finally:
            db.close()
            self.dedup_store.set(pair.key, today)
            self._pending.discard(pair.key)

    async def _run_auto_backup(self, backup: Callable[[], Awaitable[Any]]) -> None:
        try:
            await backup()
        except Exception as exc:
            logger.exception("Auto backup check failed")
            self.log.error("scheduler", "auto backup failed", {"error": str(exc)})

    async def drain(self) -> None:
        """Wait for in-flight dispatches to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
