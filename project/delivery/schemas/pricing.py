# delivery/schemas/pricing.py

from typing import Optional

from pydantic import Field

from delivery.schemas.base import CamelModel

class FeeQuoteRequest(CamelModel):
    customer_lat: Optional[float] = Field(None, ge=-90, le=90)
    customer_lng: Optional[float] = Field(None, ge=-180, le=180)

class FeeQuoteResponse(CamelModel):
    distance_km: Optional[float] = None
    delivery_fee: float
