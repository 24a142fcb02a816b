# delivery/services/lifecycle.py

"""
Order status machine.

pending → confirmed → preparing → ready → picked_up → on_way → delivered,
plus cancelled, reachable from any non-terminal status. Drivers move an
order forward one step at a time through NEXT_STATUS; admins may set any
status through the status update as long as the order is not terminal.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    PICKED_UP = "picked_up"
    ON_WAY = "on_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

NEXT_STATUS = {
    OrderStatus.CONFIRMED: OrderStatus.PREPARING,
    OrderStatus.PREPARING: OrderStatus.READY,
    OrderStatus.READY: OrderStatus.PICKED_UP,
    OrderStatus.PICKED_UP: OrderStatus.ON_WAY,
    OrderStatus.ON_WAY: OrderStatus.DELIVERED,
}

# Customer-facing notification text per status
STATUS_MESSAGES = {
    OrderStatus.PENDING: "Your order has been received and is waiting for confirmation",
    OrderStatus.CONFIRMED: "Your order has been confirmed by the restaurant",
    OrderStatus.PREPARING: "Your order is being prepared",
    OrderStatus.READY: "Your order is ready for pickup",
    OrderStatus.PICKED_UP: "The driver has picked up your order",
    OrderStatus.ON_WAY: "Your order is on the way",
    OrderStatus.DELIVERED: "Your order has been delivered. Enjoy your meal!",
    OrderStatus.CANCELLED: "Your order has been cancelled",
}

GENERIC_STATUS_MESSAGE = "Your order status has been updated"


def parse_status(value) -> OrderStatus | None:
    """OrderStatus for a raw value, or None when the value is not a known status."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        return None


def is_terminal(status) -> bool:
    return parse_status(status) in TERMINAL_STATUSES


def next_status(status) -> OrderStatus | None:
    """The single status a driver may advance to, or None."""
    parsed = parse_status(status)
    if parsed is None:
        return None
    return NEXT_STATUS.get(parsed)


def status_message(status) -> str:
    parsed = parse_status(status)
    if parsed is None:
        return GENERIC_STATUS_MESSAGE
    return STATUS_MESSAGES.get(parsed, GENERIC_STATUS_MESSAGE)
