"""Subscription model for tracked recurring payments."""

from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, Numeric, String, func

from nebula.core.database import Base


class PaymentCycle(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM_DAYS = "custom_days"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELED = "canceled"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    icon = Column(String(16), nullable=True)
    logo_url = Column(String(2048), nullable=True)
    url = Column(String(2048), nullable=True)

    price = Column(Numeric(12, 4), nullable=False)
    currency = Column(String(3), nullable=False)

    payment_cycle = Column(String(20), nullable=False, default=PaymentCycle.MONTHLY.value)
    custom_days = Column(Integer, nullable=True)

    # ISO calendar dates (YYYY-MM-DD), kept as text so no timezone is implied
    start_date = Column(String(10), nullable=False)
    next_due_date = Column(String(10), nullable=False)

    payment_method = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=SubscriptionStatus.ACTIVE.value)

    notify_enabled = Column(Boolean, nullable=False, default=False, index=True)
    notify_days = Column(String(255), nullable=False, default="7,3,1,0")
    notify_time = Column(String(5), nullable=False, default="09:00")
    notify_channel_ids = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
