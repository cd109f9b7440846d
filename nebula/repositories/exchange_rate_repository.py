"""ExchangeRate repository for data access."""

from datetime import datetime

from sqlalchemy.orm import Session

from nebula.models.exchange_rate import ExchangeRate


class ExchangeRateRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_rate(self, currency_code: str) -> float | None:
        row = (
            self.db.query(ExchangeRate)
            .filter(ExchangeRate.currency_code == currency_code)
            .first()
        )
        return float(row.rate) if row is not None else None

    def upsert_many(self, rates: dict[str, float], updated_at: datetime) -> int:
        """Insert or update rates in one transaction.

        Returns:
            Number of rates written.
        """
        existing = {row.currency_code: row for row in self.db.query(ExchangeRate).all()}
        count = 0
        for code, rate in rates.items():
            row = existing.get(code)
            if row is None:
                self.db.add(ExchangeRate(currency_code=code, rate=rate, updated_at=updated_at))
            else:
                row.rate = rate
                row.updated_at = updated_at
            count += 1
        self.db.commit()
        return count
