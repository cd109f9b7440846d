"""Subscription repository for data access."""

from sqlalchemy.orm import Session

from nebula.models.subscription import Subscription


class SubscriptionRepository:
    """Repository for Subscription model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, skip: int = 0, limit: int = 100) -> list[Subscription]:
        return (
            self.db.query(Subscription)
            .order_by(Subscription.next_due_date.asc(), Subscription.id.asc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(Subscription).count()

    def get_by_id(self, subscription_id: int) -> Subscription | None:
        return self.db.query(Subscription).filter(Subscription.id == subscription_id).first()

    def get_notify_enabled(self) -> list[Subscription]:
        """Get all subscriptions with notifications switched on."""
        return (
            self.db.query(Subscription)
            .filter(Subscription.notify_enabled.is_(True))
            .order_by(Subscription.id.asc())
            .all()
        )

    def create(self, values: dict) -> Subscription:
        subscription = Subscription(**values)
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def update(self, subscription_id: int, values: dict) -> Subscription | None:
        subscription = self.get_by_id(subscription_id)
        if not subscription:
            return None

        for key, value in values.items():
            setattr(subscription, key, value)

        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def delete(self, subscription_id: int) -> bool:
        subscription = self.get_by_id(subscription_id)
        if not subscription:
            return False

        self.db.delete(subscription)
        self.db.commit()
        return True
