# delivery/services/tracking.py

"""
Tracking timeline.

Steps are not stored: they are derived from the order's current status
and creation time every time the timeline is read.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

from delivery.services.lifecycle import OrderStatus, parse_status


class TrackingActor(str, Enum):
    SYSTEM = "system"
    RESTAURANT = "restaurant"
    DRIVER = "driver"


@dataclass(frozen=True)
class TrackingStage:
    message: str
    offset_minutes: int
    actor: TrackingActor


# Ordered: a status shows every stage up to and including its own
TRACKING_STAGES: dict[OrderStatus, TrackingStage] = {
    OrderStatus.PENDING: TrackingStage("Order received", 0, TrackingActor.SYSTEM),
    OrderStatus.CONFIRMED: TrackingStage("Order confirmed by the restaurant", 5, TrackingActor.RESTAURANT),
    OrderStatus.PREPARING: TrackingStage("Your order is being prepared", 10, TrackingActor.RESTAURANT),
    OrderStatus.READY: TrackingStage("Order is ready for pickup", 20, TrackingActor.RESTAURANT),
    OrderStatus.PICKED_UP: TrackingStage("Driver picked up your order", 25, TrackingActor.DRIVER),
    OrderStatus.ON_WAY: TrackingStage("Driver is on the way", 30, TrackingActor.DRIVER),
    OrderStatus.DELIVERED: TrackingStage("Order delivered", 45, TrackingActor.DRIVER),
}


@dataclass(frozen=True)
class TrackingStep:
    status: OrderStatus
    message: str
    timestamp: datetime
    actor: TrackingActor


def stage_for(status) -> TrackingStage | None:
    """The stage of a status, or None when the status has no place on the timeline (cancelled, unknown)."""
    parsed = parse_status(status)
    if parsed is None:
        return None
    return TRACKING_STAGES.get(parsed)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TrackingTimeline:
    """
    Iterable over the steps reached by an order.
    Each iteration starts from scratch, so the same order always yields the same steps.
    """

    def __init__(self, status, created_at: datetime):
        self.status = status
        self.created_at = as_utc(created_at)

    def __iter__(self):
        if stage_for(self.status) is None:
            return
        current = parse_status(self.status)
        for status, stage in TRACKING_STAGES.items():
            yield TrackingStep(
                status=status,
                message=stage.message,
                timestamp=self.created_at + timedelta(minutes=stage.offset_minutes),
                actor=stage.actor,
            )
            if status == current:
                return

    def __len__(self):
        return sum(1 for _ in self)
