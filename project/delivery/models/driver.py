# delivery/models/driver.py

import uuid

from sqlalchemy import Column, String, Boolean, Float, DateTime
from delivery.utils.database import Base
from delivery.models.order import utcnow


class Driver(Base):
    __tablename__ = "drivers"

    id               = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name             = Column(String, nullable=False)
    phone            = Column(String, unique=True, nullable=False)
    password         = Column(String, nullable=False)                # passlib hash
    is_available     = Column(Boolean, nullable=False, default=True)
    is_active        = Column(Boolean, nullable=False, default=True)
    current_location = Column(String, nullable=True)
    earnings         = Column(Float, nullable=False, default=0.0)
    created_at       = Column(DateTime(timezone=True), nullable=False, default=utcnow)
