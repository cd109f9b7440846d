"""Validation and renewal of subscription due dates."""

from typing import Any

from sqlalchemy.orm import Session

from nebula.core.config import settings
from nebula.models.subscription import PaymentCycle, Subscription
from nebula.repositories.subscription_repository import SubscriptionRepository
from nebula.schemas.subscription import SubscriptionCreate
from nebula.services.dates import InvalidCustomDaysError, compute_next_due_date


class SubscriptionService:
    """Keeps stored next_due_date values consistent with each subscription's cycle."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SubscriptionRepository(db)

    def build_values(self, data: SubscriptionCreate) -> dict[str, Any]:
        """Turn validated input into column values.

        Raises:
            InvalidDateError: If the start date or explicit next due date is invalid.
            InvalidCustomDaysError: If a custom_days cycle lacks a positive interval.
        """
        cycle = data.payment_cycle.value
        is_custom = cycle == PaymentCycle.CUSTOM_DAYS.value
        if is_custom and (not data.custom_days or data.custom_days <= 0):
            raise InvalidCustomDaysError("custom_days required")

        next_due_date = compute_next_due_date(
            data.start_date,
            cycle,
            custom_days=data.custom_days,
            explicit_next_due_date=data.next_due_date,
        )

        channel_ids = data.notify_channel_ids or []
        return {
            "name": data.name,
            "icon": data.icon,
            "url": data.url,
            "logo_url": data.logo_url,
            "price": data.price,
            "currency": data.currency,
            "payment_cycle": cycle,
            "custom_days": data.custom_days,
            "start_date": data.start_date,
            "next_due_date": next_due_date,
            "payment_method": data.payment_method,
            "notify_enabled": data.notify_enabled,
            "notify_days": data.notify_days or settings.DEFAULT_NOTIFY_DAYS,
            "notify_time": data.notify_time or settings.DEFAULT_NOTIFY_TIME,
            "notify_channel_ids": channel_ids or None,
        }

    def create(self, data: SubscriptionCreate) -> Subscription:
        return self.repo.create(self.build_values(data))

    def update(self, subscription_id: int, data: SubscriptionCreate) -> Subscription | None:
        return self.repo.update(subscription_id, self.build_values(data))

    def renew(self, subscription: Subscription) -> Subscription:
        """Advance a subscription by one cycle.

        The old next_due_date becomes the new start_date.

        Raises:
            ValueError: If the stored cycle is unknown or its dates are invalid.
        """
        start_date = str(subscription.next_due_date)
        next_due_date = compute_next_due_date(
            start_date,
            str(subscription.payment_cycle),
            custom_days=subscription.custom_days,
        )
        subscription.start_date = start_date
        subscription.next_due_date = next_due_date
        self.db.commit()
        self.db.refresh(subscription)
        return subscription
