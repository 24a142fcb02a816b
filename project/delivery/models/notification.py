# delivery/models/notification.py

import uuid

from sqlalchemy import Column, String, Text, Boolean, DateTime
from delivery.utils.database import Base
from delivery.models.order import utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id             = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    type           = Column(String, nullable=False)
    title          = Column(String, nullable=False)
    message        = Column(Text, nullable=False)
    recipient_type = Column(String, nullable=False, index=True)   # admin / customer / driver
    recipient_id   = Column(String, nullable=True, index=True)
    order_id       = Column(String, nullable=True, index=True)
    is_read        = Column(Boolean, nullable=False, default=False)
    created_at     = Column(DateTime(timezone=True), nullable=False, default=utcnow)
