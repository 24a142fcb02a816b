# delivery/models/order.py

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, Float, DateTime, ForeignKey
from delivery.utils.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id           = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    order_number = Column(String, unique=True, nullable=False, index=True)

    customer_id    = Column(String, nullable=True, index=True)
    customer_name  = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    customer_email = Column(String, nullable=True)

    delivery_address = Column(Text, nullable=False)
    customer_lat     = Column(Float, nullable=True)
    customer_lng     = Column(Float, nullable=True)

    items        = Column(Text, nullable=False, default="[]")   # JSON list of line items
    subtotal     = Column(Float, nullable=False)
    delivery_fee = Column(Float, nullable=False)
    total        = Column(Float, nullable=False)                # subtotal + delivery_fee at creation

    payment_method = Column(String, nullable=False, default="cash")
    status         = Column(String, nullable=False, default="pending", index=True)
    driver_id      = Column(String, ForeignKey("drivers.id"), nullable=True, index=True)
    restaurant_id  = Column(String, nullable=True, index=True)
    notes          = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
