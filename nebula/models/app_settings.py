"""Single-row application settings."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, String

from nebula.core.database import Base

SETTINGS_ROW_ID = 1


class AppSettings(Base):
    __tablename__ = "settings"
    __table_args__ = (CheckConstraint("id = 1", name="ck_settings_single_row"),)

    id = Column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    timezone = Column(String(64), nullable=False, default="Asia/Shanghai")
    base_currency = Column(String(3), nullable=False, default="CNY")

    exchange_enabled = Column(Boolean, nullable=False, default=False)
    exchange_api_key = Column(String(255), nullable=True)
    last_rate_update = Column(DateTime(timezone=True), nullable=True)
