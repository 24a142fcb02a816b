# delivery/schemas/tracking.py

from datetime import datetime
from typing import Optional, List

from delivery.schemas.base import CamelModel
from delivery.schemas.order import Order

class TrackingStep(CamelModel):
    status: str
    message: str
    timestamp: datetime
    actor: str

class TrackedDriver(CamelModel):
    id: str
    name: str
    phone: str
    current_location: Optional[str] = None

class TrackResponse(CamelModel):
    order: Order
    tracking: List[TrackingStep]
    driver: Optional[TrackedDriver] = None
