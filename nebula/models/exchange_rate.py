"""ExchangeRate model - rates relative to the configured base currency."""

from sqlalchemy import Column, DateTime, Float, String, func

from nebula.core.database import Base


class ExchangeRate(Base):
    __tablename__ = "exchange_rates"

    currency_code = Column(String(3), primary_key=True)
    # Units of currency_code per one unit of the base currency
    rate = Column(Float, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
