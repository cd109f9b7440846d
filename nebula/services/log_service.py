"""Operational log lines, mirrored to the standard logger and the logs table."""

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nebula.models.log_entry import LogLevel
from nebula.repositories.log_repository import LogRepository

logger = logging.getLogger(__name__)

_STDLIB_LEVELS = {
    LogLevel.DEBUG.value: logging.DEBUG,
    LogLevel.INFO.value: logging.INFO,
    LogLevel.WARN.value: logging.WARNING,
    LogLevel.ERROR.value: logging.ERROR,
}


class LogService:
    """Records scoped log lines.

    Every line goes to the ``nebula.<scope>`` stdlib logger; lines at info
    level and above are also stored in the logs table through a short-lived
    session. ``log`` never raises.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        persist_level: str = LogLevel.INFO.value,
    ):
        self.session_factory = session_factory
        self.persist_level = _STDLIB_LEVELS[persist_level]

    def log(
        self,
        level: str,
        scope: str,
        message: str,
        meta: dict[str, Any] | None = None,
    ) -> None:
        stdlib_level = _STDLIB_LEVELS.get(level, logging.INFO)
        logging.getLogger(f"nebula.{scope}").log(stdlib_level, "%s %s", message, meta or "")

        if stdlib_level < self.persist_level:
            return

        try:
            db = self.session_factory()
        except SQLAlchemyError:
            logger.exception("Failed to open session for log line %s: %s", scope, message)
            return
        try:
            LogRepository(db).create(level=level, scope=scope, message=message, meta=meta)
        except SQLAlchemyError:
            logger.exception("Failed to persist log line %s: %s", scope, message)
        finally:
            db.close()

    def debug(self, scope: str, message: str, meta: dict[str, Any] | None = None) -> None:
        self.log(LogLevel.DEBUG.value, scope, message, meta)

    def info(self, scope: str, message: str, meta: dict[str, Any] | None = None) -> None:
        self.log(LogLevel.INFO.value, scope, message, meta)

    def warn(self, scope: str, message: str, meta: dict[str, Any] | None = None) -> None:
        self.log(LogLevel.WARN.value, scope, message, meta)

    def error(self, scope: str, message: str, meta: dict[str, Any] | None = None) -> None:
        self.log(LogLevel.ERROR.value, scope, message, meta)
