"""Tests for worker background tasks and cron job registration."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from nebula.core import database as db_module
from nebula.services.notification_evaluator import DuePair
from nebula.services.rates import RatesUnavailableError
from nebula.services.scheduler import NotificationScheduler
from nebula.worker import (
    WorkerSettings,
    check_notifications_task,
    refresh_exchange_rates_task,
    shutdown,
    startup,
)


def _cron_job(name):
    for job in WorkerSettings.cron_jobs:
        if job.coroutine.__name__ == name:
            return job
    return None


class TestCheckNotificationsTask:
    @pytest.mark.asyncio
    async def test_returns_number_of_due_pairs(self):
        scheduler = MagicMock()
        scheduler.tick = AsyncMock(return_value=[DuePair(1, 7), DuePair(2, 0)])

        result = await check_notifications_task({"scheduler": scheduler})

        assert result == 2
        scheduler.tick.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_nothing_due(self):
        scheduler = MagicMock()
        scheduler.tick = AsyncMock(return_value=[])

        assert await check_notifications_task({"scheduler": scheduler}) == 0


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_startup_builds_scheduler(self):
        ctx = {}
        with patch("nebula.worker.SessionLocal", db_module.SessionLocal):
            await startup(ctx)

        assert isinstance(ctx["scheduler"], NotificationScheduler)

    @pytest.mark.asyncio
    async def test_shutdown_drains_scheduler(self):
        scheduler = MagicMock()
        scheduler.drain = AsyncMock()

        await shutdown({"scheduler": scheduler})

        scheduler.drain.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_without_scheduler(self):
        await shutdown({})


class TestRefreshExchangeRatesTask:
    @pytest.mark.asyncio
    async def test_returns_count(self):
        mock_service = MagicMock()
        mock_service.update_rates.return_value = 160

        with patch("nebula.worker.RatesService", return_value=mock_service):
            result = await refresh_exchange_rates_task({})

        assert result == 160
        mock_service.update_rates.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_skipped_refresh_returns_zero(self):
        mock_service = MagicMock()
        mock_service.update_rates.return_value = None

        with patch("nebula.worker.RatesService", return_value=mock_service):
            assert await refresh_exchange_rates_task({}) == 0

    @pytest.mark.asyncio
    async def test_unavailable_returns_zero(self):
        mock_service = MagicMock()
        mock_service.update_rates.side_effect = RatesUnavailableError("exchange is disabled")

        with patch("nebula.worker.RatesService", return_value=mock_service):
            assert await refresh_exchange_rates_task({}) == 0

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        mock_service = MagicMock()
        mock_service.update_rates.side_effect = RuntimeError("DB error")

        with (
            patch("nebula.worker.RatesService", return_value=mock_service),
            pytest.raises(RuntimeError, match="DB error"),
        ):
            await refresh_exchange_rates_task({})

    @pytest.mark.asyncio
    async def test_integration_with_exchange_disabled(self):
        with patch("nebula.worker.SessionLocal", db_module.SessionLocal):
            assert await refresh_exchange_rates_task({}) == 0


class TestWorkerSettings:
    def test_functions_registered(self):
        func_names = [f.__name__ for f in WorkerSettings.functions]
        assert "check_notifications_task" in func_names
        assert "refresh_exchange_rates_task" in func_names

    def test_notification_cron_runs_every_5_minutes_and_at_startup(self):
        job = _cron_job("check_notifications_task")
        assert job is not None
        assert job.minute == {0, 5, 10, 15, 20, 25, 30, 35, 40, 45, 50, 55}
        assert job.run_at_startup is True

    def test_rates_cron_runs_hourly(self):
        job = _cron_job("refresh_exchange_rates_task")
        assert job is not None
        assert job.minute == {0}

    def test_lifecycle_hooks(self):
        assert WorkerSettings.on_startup is startup
        assert WorkerSettings.on_shutdown is shutdown
