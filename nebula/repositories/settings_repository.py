"""AppSettings repository for the single settings row."""

from datetime import datetime

from sqlalchemy.orm import Session

from nebula.core.config import settings as app_config
from nebula.models.app_settings import SETTINGS_ROW_ID, AppSettings
from nebula.schemas.app_settings import AppSettingsUpdate


class SettingsRepository:
    """Repository for the AppSettings model."""

    def __init__(self, db: Session):
        self.db = db

    def get(self) -> AppSettings:
        """Get the settings row, creating it with defaults on first access."""
        row = self.db.query(AppSettings).filter(AppSettings.id == SETTINGS_ROW_ID).first()
        if row is None:
            row = AppSettings(
                id=SETTINGS_ROW_ID,
                timezone=app_config.DEFAULT_TIMEZONE,
                base_currency=app_config.DEFAULT_BASE_CURRENCY,
                exchange_enabled=False,
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        return row

    def update(self, data: AppSettingsUpdate) -> AppSettings:
        row = self.get()
        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(row, key, value)

        self.db.commit()
        self.db.refresh(row)
        return row

    def mark_rates_updated(self, at: datetime) -> None:
        row = self.get()
        row.last_rate_update = at
        self.db.commit()
