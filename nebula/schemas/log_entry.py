from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class LogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    level: str
    scope: str
    message: str
    meta: dict[str, Any] | None = None
    created_at: datetime | None = None
