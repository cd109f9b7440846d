"""Shared FastAPI dependencies."""

from collections.abc import Callable

import httpx

from nebula.core import database as db_module
from nebula.services.log_service import LogService


def get_log_service() -> LogService:
    return LogService(db_module.SessionLocal)


def get_webhook_client_factory() -> Callable[[], httpx.AsyncClient]:
    """Client factory for outbound webhook calls; overridden in tests."""
    return httpx.AsyncClient
