"""WebhookChannel model for configured notification endpoints."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from nebula.core.database import Base


class WebhookChannel(Base):
    """WebhookChannel model - an outbound endpoint with an optional JSON template."""

    __tablename__ = "webhook_channels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    url = Column(String(2048), nullable=False)
    template = Column(Text, nullable=True)
    enabled = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
