"""Helpers for queueing jobs on the Nebula arq worker."""

from typing import Any

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from arq.jobs import Job

from nebula.core.config import settings

redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)


async def get_redis_pool() -> ArqRedis:
    """Open a short-lived pool to the worker's Redis."""
    return await create_pool(redis_settings)


async def enqueue_task(task_name: str, *args: Any, **kwargs: Any) -> Job:
    """Queue one job by its worker function name; the pool is closed afterwards.

    Redis errors propagate to the caller.
    """
    pool = await get_redis_pool()
    try:
        job = await pool.enqueue_job(task_name, *args, **kwargs)
        return job  # type: ignore[return-value]
    finally:
        await pool.close()


async def enqueue_refresh_exchange_rates() -> Job:
    """Ask the worker to refresh exchange rates outside the hourly schedule."""
    return await enqueue_task("refresh_exchange_rates_task")
