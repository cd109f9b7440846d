"""Repository for persisted log lines."""

from typing import Any

from sqlalchemy.orm import Session

from nebula.models.log_entry import LogEntry


class LogRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        level: str,
        scope: str,
        message: str,
        meta: dict[str, Any] | None = None,
    ) -> LogEntry:
        entry = LogEntry(level=level, scope=scope, message=message, meta=meta)
        self.db.add(entry)
        self.db.commit()
        self.db.refresh(entry)
        return entry

    def get_all(
        self,
        skip: int = 0,
        limit: int = 100,
        level: str | None = None,
        scope: str | None = None,
    ) -> list[LogEntry]:
        query = self.db.query(LogEntry)
        if level:
            query = query.filter(LogEntry.level == level)
        if scope:
            query = query.filter(LogEntry.scope.startswith(scope))
        return query.order_by(LogEntry.id.desc()).offset(skip).limit(limit).all()

    def count(self, level: str | None = None, scope: str | None = None) -> int:
        query = self.db.query(LogEntry)
        if level:
            query = query.filter(LogEntry.level == level)
        if scope:
            query = query.filter(LogEntry.scope.startswith(scope))
        return query.count()

    def delete_all(self) -> int:
        count = self.db.query(LogEntry).delete()
        self.db.commit()
        return count
