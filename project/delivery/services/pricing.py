# delivery/services/pricing.py

"""
Delivery pricing.

The fee grows with the great-circle distance between the restaurant and
the customer, with a floor. Orders are priced on the server; client totals
are only compared against the quote.
"""

import math
from dataclasses import dataclass

from delivery.config import settings

EARTH_RADIUS_KM = 6371
MONEY_TOLERANCE = 0.01


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def calculate_delivery_fee(
    distance_km: float,
    min_fee: float | None = None,
    per_km_rate: float | None = None,
) -> float:
    """max(min_fee, round(distance_km * per_km_rate)), halves rounded up."""
    min_fee = settings.DELIVERY_MIN_FEE if min_fee is None else min_fee
    per_km_rate = settings.DELIVERY_FEE_PER_KM if per_km_rate is None else per_km_rate
    return float(max(min_fee, math.floor(distance_km * per_km_rate + 0.5)))


@dataclass(frozen=True)
class FeeQuote:
    distance_km: float | None
    delivery_fee: float


def quote_delivery(customer_lat: float | None, customer_lng: float | None) -> FeeQuote:
    """
    Fee for a customer point measured from the configured restaurant.
    Without a point the flat default fee applies.
    """
    if customer_lat is None or customer_lng is None:
        return FeeQuote(distance_km=None, delivery_fee=float(settings.DELIVERY_DEFAULT_FEE))

    distance = calculate_distance(
        settings.RESTAURANT_LAT, settings.RESTAURANT_LNG, customer_lat, customer_lng
    )
    return FeeQuote(distance_km=round(distance, 2), delivery_fee=calculate_delivery_fee(distance))


def items_subtotal(items: list[dict]) -> float:
    return round(sum(float(i.get("price", 0)) * int(i.get("quantity", 1)) for i in items), 2)


def same_amount(a: float, b: float) -> bool:
    return abs(float(a) - float(b)) <= MONEY_TOLERANCE
