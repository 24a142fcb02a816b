# delivery/schemas/order.py

import json
from datetime import datetime
from typing import Optional, List

from pydantic import Field, field_validator

from delivery.schemas.base import CamelModel, ensure_utc

class OrderItem(CamelModel):
    name: str
    quantity: int = Field(1, ge=1)
    price: float = Field(..., ge=0)
    restaurant_id: Optional[str] = None

# ────────────── CREATE ──────────────
class OrderCreate(CamelModel):
    """
    Checkout payload. Contact fields are optional here and checked in the
    service, so an empty or missing value is reported as a 400 with the field names.
    """
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    customer_lat: Optional[float] = Field(None, ge=-90, le=90)
    customer_lng: Optional[float] = Field(None, ge=-180, le=180)
    items: List[OrderItem] = []
    subtotal: Optional[float] = None
    delivery_fee: Optional[float] = None
    total: Optional[float] = None
    payment_method: str = "cash"
    restaurant_id: Optional[str] = None
    notes: Optional[str] = None

# ────────────── UPDATE ──────────────
class OrderUpdate(CamelModel):
    """Admin edit. Money fields are fixed at creation and cannot be changed here."""
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    delivery_address: Optional[str] = None
    customer_lat: Optional[float] = Field(None, ge=-90, le=90)
    customer_lng: Optional[float] = Field(None, ge=-180, le=180)
    payment_method: Optional[str] = None
    restaurant_id: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[str] = None

class StatusUpdate(CamelModel):
    status: Optional[str] = None
    expected_status: Optional[str] = None   # compare-and-swap guard

class AssignDriver(CamelModel):
    driver_id: Optional[str] = None

# ────────────── RESPONSE ──────────────
class Order(CamelModel):
    id: str
    order_number: str
    customer_id: Optional[str] = None
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    delivery_address: str
    customer_lat: Optional[float] = None
    customer_lng: Optional[float] = None
    items: List[OrderItem]
    subtotal: float
    delivery_fee: float
    total: float
    payment_method: str
    status: str
    driver_id: Optional[str] = None
    restaurant_id: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @field_validator("items", mode="before")
    @classmethod
    def parse_items(cls, value):
        if isinstance(value, str):
            return json.loads(value) if value else []
        return value

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def utc(cls, value):
        return ensure_utc(value)

class AssignResponse(CamelModel):
    success: bool
    order: Order

class MessageResponse(CamelModel):
    message: str
