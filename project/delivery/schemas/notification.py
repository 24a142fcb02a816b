# delivery/schemas/notification.py

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from delivery.schemas.base import CamelModel, ensure_utc

class NotificationCreate(CamelModel):
    type: str
    title: str
    message: str
    recipient_type: str
    recipient_id: Optional[str] = None
    order_id: Optional[str] = None

class Notification(NotificationCreate):
    id: str
    is_read: bool
    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def utc(cls, value):
        return ensure_utc(value)
