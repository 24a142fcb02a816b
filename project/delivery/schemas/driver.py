# delivery/schemas/driver.py

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from delivery.schemas.base import CamelModel, ensure_utc

class DriverCreate(CamelModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    password: str = Field(..., min_length=4)
    current_location: Optional[str] = None

class DriverUpdate(CamelModel):
    """Availability toggle and profile edits; only the fields sent are changed."""
    name: Optional[str] = None
    phone: Optional[str] = None
    is_available: Optional[bool] = None
    is_active: Optional[bool] = None
    current_location: Optional[str] = None

class Driver(CamelModel):
    id: str
    name: str
    phone: str
    is_available: bool
    is_active: bool
    current_location: Optional[str] = None
    earnings: float
    created_at: datetime

    @field_validator("created_at", mode="before")
    @classmethod
    def utc(cls, value):
        return ensure_utc(value)

class DriverStats(CamelModel):
    total_orders: int
    completed_orders: int
    active_orders: int
    total_earnings: float
