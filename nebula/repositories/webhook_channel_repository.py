"""WebhookChannel repository for data access."""

from sqlalchemy.orm import Session

from nebula.models.webhook_channel import WebhookChannel
from nebula.schemas.webhook_channel import WebhookChannelCreate, WebhookChannelUpdate


class WebhookChannelRepository:
    """Repository for WebhookChannel model."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self, skip: int = 0, limit: int = 100) -> list[WebhookChannel]:
        """Get all webhook channels, newest first."""
        return (
            self.db.query(WebhookChannel)
            .order_by(WebhookChannel.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

    def count(self) -> int:
        return self.db.query(WebhookChannel).count()

    def get_by_id(self, channel_id: int) -> WebhookChannel | None:
        return self.db.query(WebhookChannel).filter(WebhookChannel.id == channel_id).first()

    def create(self, data: WebhookChannelCreate) -> WebhookChannel:
        channel = WebhookChannel(
            name=data.name,
            url=data.url,
            template=data.template,
            enabled=data.enabled,
        )
        self.db.add(channel)
        self.db.commit()
        self.db.refresh(channel)
        return channel

    def update(self, channel_id: int, data: WebhookChannelUpdate) -> WebhookChannel | None:
        channel = self.get_by_id(channel_id)
        if not channel:
            return None

        update_data = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(channel, key, value)

        self.db.commit()
        self.db.refresh(channel)
        return channel

    def delete(self, channel_id: int) -> bool:
        channel = self.get_by_id(channel_id)
        if not channel:
            return False

        self.db.delete(channel)
        self.db.commit()
        return True
