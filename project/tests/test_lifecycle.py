# tests/test_lifecycle.py

from delivery.services.lifecycle import (
    GENERIC_STATUS_MESSAGE,
    OrderStatus,
    STATUS_MESSAGES,
    is_terminal,
    next_status,
    parse_status,
    status_message,
)
from delivery.services.order import generate_order_number


def test_driver_flow_is_a_single_chain():
    chain = [OrderStatus.CONFIRMED]
    while next_status(chain[-1]) is not None:
        chain.append(next_status(chain[-1]))
    assert [s.value for s in chain] == ["confirmed", "preparing", "ready", "picked_up", "on_way", "delivered"]


def test_no_next_status_for_pending_and_terminal():
    assert next_status("pending") is None
    assert next_status("delivered") is None
    assert next_status("cancelled") is None
    assert next_status("unknown") is None


def test_terminal_statuses():
    assert is_terminal("delivered")
    assert is_terminal(OrderStatus.CANCELLED)
    assert not is_terminal("on_way")
    assert not is_terminal("bogus")


def test_parse_status():
    assert parse_status("ready") is OrderStatus.READY
    assert parse_status(OrderStatus.READY) is OrderStatus.READY
    assert parse_status("READY") is None
    assert parse_status(None) is None


def test_every_status_has_a_customer_message():
    for status in OrderStatus:
        assert status_message(status) == STATUS_MESSAGES[status]


def test_unknown_status_gets_generic_message():
    assert status_message("teleported") == GENERIC_STATUS_MESSAGE


def test_order_numbers_are_unique_over_rapid_generation():
    numbers = [generate_order_number() for _ in range(1000)]
    assert len(set(numbers)) == len(numbers)
    for number in numbers:
        prefix, millis, suffix = number.split("-")
        assert prefix == "ORD"
        assert millis.isdigit() and len(millis) >= 13
        assert len(suffix) == 6 and suffix.isalnum()
