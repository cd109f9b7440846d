"""LogEntry model for persisted operational log lines."""

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text, func

from nebula.core.database import Base


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class LogEntry(Base):
    """LogEntry model - one line written by LogService."""

    __tablename__ = "logs"
    __table_args__ = (
        Index("ix_logs_level", "level"),
        Index("ix_logs_scope", "scope"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    level = Column(String(10), nullable=False)
    scope = Column(String(100), nullable=False)
    message = Column(Text, nullable=False)
    meta = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
