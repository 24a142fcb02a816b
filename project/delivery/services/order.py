# delivery/services/order.py

import json
import re
import secrets
import string
import time

from fastapi import Request
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from delivery.config import settings
from delivery.models.driver import Driver as DriverModel
from delivery.models.order import Order as OrderModel, utcnow
from delivery.schemas.actor import Actor
from delivery.schemas.order import Order, OrderCreate, OrderUpdate, StatusUpdate
from delivery.schemas.tracking import TrackedDriver, TrackingStep, TrackResponse
from delivery.services.lifecycle import (
    OrderStatus,
    TERMINAL_STATUSES,
    is_terminal,
    next_status,
    parse_status,
)
from delivery.services.notification import (
    driver_assigned_notification,
    notify,
    order_created_notification,
    status_changed_notification,
)
from delivery.services.pricing import items_subtotal, quote_delivery, same_amount
from delivery.services.tracking import TrackingTimeline
from delivery.utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from delivery.utils.metrics import DRIVER_ASSIGNMENTS, ORDERS_CREATED, ORDER_STATUS_CHANGES

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_ATTEMPTS = 3
PHONE_RE = re.compile(r"^\+?[0-9][0-9\s-]{6,19}$")
REQUIRED_FIELDS = (
    ("customer_name", "customerName"),
    ("customer_phone", "customerPhone"),
    ("delivery_address", "deliveryAddress"),
)
# columns that are NOT NULL and may not be blanked by a partial update
NON_EMPTY_FIELDS = REQUIRED_FIELDS + (("payment_method", "paymentMethod"),)
TERMINAL_VALUES = [s.value for s in TERMINAL_STATUSES]


def generate_order_number() -> str:
    """ORD-<epoch ms>-<6 random characters>"""
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(6))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def validate_checkout(order: OrderCreate):
    missing = [alias for name, alias in REQUIRED_FIELDS if not (getattr(order, name) or "").strip()]
    if not order.items:
        missing.append("items")
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", {"fields": missing})

    if not PHONE_RE.match(order.customer_phone.strip()):
        raise ValidationError("Invalid phone number")


def price_order(order: OrderCreate) -> tuple[float, float, float]:
    """
    (subtotal, delivery_fee, total) for a checkout payload.

    With STRICT_PRICING the server figures are authoritative and any client
    figure that disagrees is rejected; otherwise client figures are taken
    as sent and only the total is derived.
    """
    computed_subtotal = items_subtotal([i.model_dump() for i in order.items])
    quote = quote_delivery(order.customer_lat, order.customer_lng)

    if not settings.STRICT_PRICING:
        subtotal = computed_subtotal if order.subtotal is None else round(order.subtotal, 2)
        fee = quote.delivery_fee if order.delivery_fee is None else round(order.delivery_fee, 2)
        return subtotal, fee, round(subtotal + fee, 2)

    if order.subtotal is not None and not same_amount(order.subtotal, computed_subtotal):
        raise ValidationError("Subtotal does not match the items", {"expected": computed_subtotal})

    if order.delivery_fee is not None and not same_amount(order.delivery_fee, quote.delivery_fee):
        raise ValidationError("Delivery fee does not match the delivery distance", {
            "expected": quote.delivery_fee,
            "distance_km": quote.distance_km,
        })

    total = round(computed_subtotal + quote.delivery_fee, 2)
    if order.total is not None and not same_amount(order.total, total):
        raise ValidationError("Total does not match subtotal plus delivery fee", {"expected": total})

    return computed_subtotal, quote.delivery_fee, total


async def get_order_or_404(db, id: str, log, action: str = "") -> OrderModel:
    result = await db.execute(select(OrderModel).where(OrderModel.id == id))
    db_order = result.scalar_one_or_none()
    if db_order is None:
        await log.log_error("order", f"Order not found{action}", {"id": id})
        raise NotFoundError("Order not found")
    return db_order


# ────────────── CREATE ──────────────
async def create_order_service(order: OrderCreate, request: Request, actor: Actor | None = None) -> OrderModel:
    """
    Checkout: validation, pricing, persistence, then an admin notification.
    """
    db = request.state.db
    log = request.app.state.log

    validate_checkout(order)
    subtotal, delivery_fee, total = price_order(order)

    fields = order.model_dump(exclude={"items", "subtotal", "delivery_fee", "total"})
    fields["customer_name"] = fields["customer_name"].strip()
    fields["customer_phone"] = fields["customer_phone"].strip()
    fields["delivery_address"] = fields["delivery_address"].strip()
    if actor and actor.role == "customer" and not fields.get("customer_id"):
        fields["customer_id"] = actor.id

    items = json.dumps([i.model_dump(by_alias=True) for i in order.items], ensure_ascii=False)

    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        now = utcnow()
        db_order = OrderModel(
            **fields,
            order_number=generate_order_number(),
            items=items,
            subtotal=subtotal,
            delivery_fee=delivery_fee,
            total=total,
            status=OrderStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        db.add(db_order)
        try:
            await db.commit()
            break
        except IntegrityError:
            await db.rollback()
            await log.log_warning("order", "Order number collision, regenerating", {"attempt": attempt})
            if attempt == ORDER_NUMBER_ATTEMPTS:
                raise

    ORDERS_CREATED.inc()
    await log.log_info("order", "Order created", {
        "id": db_order.id,
        "order_number": db_order.order_number,
        "total": db_order.total,
    })
    await notify(request, order_created_notification(db_order))
    return db_order


# ────────────── READ ──────────────
async def read_orders_service(
    request: Request,
    status: str | None = None,
    driver_id: str | None = None,
    restaurant_id: str | None = None,
    customer_id: str | None = None,
    unassigned: bool | None = None,
) -> list[OrderModel]:
    """
    Orders matching every given filter, newest first. No pagination.
    """
    db = request.state.db
    log = request.app.state.log

    query = select(OrderModel)
    if status:
        query = query.where(OrderModel.status == status)
    if driver_id:
        query = query.where(OrderModel.driver_id == driver_id)
    if restaurant_id:
        query = query.where(OrderModel.restaurant_id == restaurant_id)
    if customer_id:
        query = query.where(OrderModel.customer_id == customer_id)
    if unassigned is True:
        query = query.where(OrderModel.driver_id.is_(None))
    elif unassigned is False:
        query = query.where(OrderModel.driver_id.is_not(None))
    query = query.order_by(OrderModel.created_at.desc(), OrderModel.order_number.desc())

    result = await db.execute(query)
    orders = result.scalars().all()

    await log.log_info("order", f"{len(orders)} orders loaded", {
        "status": status,
        "driver_id": driver_id,
        "restaurant_id": restaurant_id,
        "customer_id": customer_id,
        "unassigned": unassigned,
    })
    return orders


async def read_available_orders_service(request: Request) -> list[OrderModel]:
    """Confirmed orders nobody has claimed yet."""
    return await read_orders_service(request, status=OrderStatus.CONFIRMED.value, unassigned=True)


async def read_order_service(id: str, request: Request) -> OrderModel:
    db = request.state.db
    log = request.app.state.log

    db_order = await get_order_or_404(db, id, log)
    await log.log_info("order", "Order loaded", {"id": id})
    return db_order


# ────────────── STATUS ──────────────
async def apply_status(
    request: Request,
    db_order: OrderModel,
    new_status: OrderStatus,
    expected: OrderStatus | None = None,
) -> OrderModel:
    """
    Writes a status change and its side effects.

    The UPDATE only matches non-terminal orders, and also the expected
    current status when one is given, so a concurrent change is reported
    as a conflict instead of being overwritten.
    """
    db = request.state.db
    log = request.app.state.log

    # read before any rollback: a rollback expires the instance
    order_id = db_order.id
    current = db_order.status
    driver_id = db_order.driver_id
    delivery_fee = db_order.delivery_fee

    if current == new_status.value:
        return db_order
    check_transition(current, expected)

    conditions = [OrderModel.id == order_id, OrderModel.status.not_in(TERMINAL_VALUES)]
    if expected is not None:
        conditions.append(OrderModel.status == expected.value)

    result = await db.execute(
        update(OrderModel)
        .where(*conditions)
        .values(status=new_status.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        await log.log_warning("order", "Status changed concurrently", {"id": order_id, "to": new_status.value})
        raise ConflictError("Order status changed concurrently")

    # a closed order releases its driver; only a delivery pays
    if new_status in TERMINAL_STATUSES and driver_id:
        values = {"is_available": True}
        if new_status == OrderStatus.DELIVERED:
            values["earnings"] = DriverModel.earnings + delivery_fee
        await db.execute(
            update(DriverModel)
            .where(DriverModel.id == driver_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    await db.commit()
    await db.refresh(db_order)

    ORDER_STATUS_CHANGES.labels(status=new_status.value).inc()
    await log.log_info("order", "Order status updated", {"id": order_id, "from": current, "to": new_status.value})
    await notify(request, status_changed_notification(db_order))
    return db_order


def check_transition(current: str, expected: OrderStatus | None = None):
    if is_terminal(current):
        raise ConflictError(f"Order is already {current}")
    if expected is not None and current != expected.value:
        raise ConflictError(f"Order status is {current}, expected {expected.value}")


def check_driver_owns(db_order: OrderModel, actor: Actor | None):
    if actor and actor.is_driver and db_order.driver_id != actor.id:
        raise ForbiddenError("Order is not assigned to this driver")


def require_status(value: str | None, field: str = "status") -> OrderStatus:
    if value is None or not str(value).strip():
        raise ValidationError("Status is required")
    parsed = parse_status(str(value).strip())
    if parsed is None:
        raise ValidationError(f"Unknown {field}: {value}", {"allowed": [s.value for s in OrderStatus]})
    return parsed


async def update_status_service(id: str, body: StatusUpdate, request: Request, actor: Actor | None = None) -> OrderModel:
    """
    Admin or driver status change. Any non-terminal order may move to any
    status; expectedStatus turns the write into a compare-and-swap.
    """
    db = request.state.db
    log = request.app.state.log

    new_status = require_status(body.status)
    expected = require_status(body.expected_status, "expectedStatus") if body.expected_status else None

    db_order = await get_order_or_404(db, id, log, " for status update")
    check_driver_owns(db_order, actor)

    await log.log_info("order", "Status update requested", {
        "id": id,
        "status": new_status.value,
        "by": actor.id if actor else None,
        "role": actor.role if actor else None,
    })
    return await apply_status(request, db_order, new_status, expected)


async def advance_order_service(id: str, request: Request, actor: Actor | None = None) -> OrderModel:
    """
    Driver flow: moves the order to the single next status, conditional on
    the status it was read with.
    """
    db = request.state.db
    log = request.app.state.log

    db_order = await get_order_or_404(db, id, log, " for advance")
    check_driver_owns(db_order, actor)

    target = next_status(db_order.status)
    if target is None:
        raise ConflictError(f"Order cannot be advanced from {db_order.status}")

    return await apply_status(request, db_order, target, expected=parse_status(db_order.status))


# ────────────── UPDATE ──────────────
async def update_order_service(id: str, order_update: OrderUpdate, request: Request, actor: Actor | None = None) -> OrderModel:
    """
    Partial admin edit. A status in the body follows the status rules.

    Every check runs before anything is written. Field edits and the status
    change share one transaction, so a status conflict leaves the order as it was.
    """
    db = request.state.db
    log = request.app.state.log

    changes = order_update.model_dump(exclude_unset=True)
    new_status = require_status(changes.pop("status")) if "status" in changes else None

    for name, alias in NON_EMPTY_FIELDS:
        if name in changes and not (changes[name] or "").strip():
            raise ValidationError(f"{alias} cannot be empty")

    db_order = await get_order_or_404(db, id, log, " for update")

    status_changes = new_status is not None and new_status.value != db_order.status
    if new_status is not None:
        check_driver_owns(db_order, actor)
    if status_changes:
        check_transition(db_order.status)

    if changes:
        for key, value in changes.items():
            setattr(db_order, key, value)
        db_order.updated_at = utcnow()

    if status_changes:
        await db.flush()
        db_order = await apply_status(request, db_order, new_status)
    elif changes:
        await db.commit()

    if changes:
        await log.log_info("order", "Order updated", {"id": id, "fields": list(changes)})
    return db_order


# ────────────── ASSIGN DRIVER ──────────────
async def assign_driver_service(id: str, driver_id: str | None, request: Request, actor: Actor | None = None) -> OrderModel:
    """
    Claims an order for a driver.

    Checks, in order: order exists, order is open, order has no driver,
    driver exists. The claim itself is one UPDATE matching only orders
    still without a driver, so of two concurrent claims exactly one wins.
    The order moves to preparing and the driver becomes unavailable in the
    same transaction.
    """
    db = request.state.db
    log = request.app.state.log

    if not driver_id or not str(driver_id).strip():
        raise ValidationError("driverId is required")

    db_order = await get_order_or_404(db, id, log, " for assignment")
    if is_terminal(db_order.status):
        DRIVER_ASSIGNMENTS.labels(result="conflict").inc()
        raise ConflictError(f"Order is already {db_order.status}")
    if db_order.driver_id:
        DRIVER_ASSIGNMENTS.labels(result="conflict").inc()
        raise ConflictError("Order already assigned", {"driver_id": db_order.driver_id})

    result = await db.execute(select(DriverModel).where(DriverModel.id == driver_id))
    driver = result.scalar_one_or_none()
    if driver is None:
        await log.log_error("order", "Driver not found for assignment", {"id": id, "driver_id": driver_id})
        raise NotFoundError("Driver not found")
    driver_id = driver.id

    claim = await db.execute(
        update(OrderModel)
        .where(
            OrderModel.id == id,
            OrderModel.driver_id.is_(None),
            OrderModel.status.not_in(TERMINAL_VALUES),
        )
        .values(driver_id=driver_id, status=OrderStatus.PREPARING.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if claim.rowcount != 1:
        await db.rollback()
        DRIVER_ASSIGNMENTS.labels(result="conflict").inc()
        await log.log_warning("order", "Assignment lost to a concurrent claim", {"id": id, "driver_id": driver_id})
        raise ConflictError("Order already assigned")

    await db.execute(
        update(DriverModel)
        .where(DriverModel.id == driver_id)
        .values(is_available=False)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(db_order)
    await db.refresh(driver)

    DRIVER_ASSIGNMENTS.labels(result="assigned").inc()
    await log.log_info("order", "Driver assigned", {
        "id": id,
        "driver_id": driver.id,
        "by": actor.id if actor else None,
    })
    await notify(request, driver_assigned_notification(db_order, driver))
    return db_order


# ────────────── TRACK ──────────────
async def track_order_service(id: str, request: Request) -> TrackResponse:
    """
    Order, its synthesized timeline and the assigned driver's contact card.
    """
    db = request.state.db
    log = request.app.state.log

    db_order = await get_order_or_404(db, id, log, " for tracking")

    timeline = TrackingTimeline(db_order.status, db_order.created_at)
    tracking = [
        TrackingStep(status=step.status.value, message=step.message, timestamp=step.timestamp, actor=step.actor.value)
        for step in timeline
    ]

    driver = None
    if db_order.driver_id:
        result = await db.execute(select(DriverModel).where(DriverModel.id == db_order.driver_id))
        db_driver = result.scalar_one_or_none()
        if db_driver is not None:
            driver = TrackedDriver.model_validate(db_driver)

    await log.log_info("order", "Tracking built", {"id": id, "steps": len(tracking)})
    return TrackResponse(order=Order.model_validate(db_order), tracking=tracking, driver=driver)


# ────────────── DELETE ──────────────
async def delete_order_service(id: str, request: Request) -> None:
    db = request.state.db
    log = request.app.state.log

    db_order = await get_order_or_404(db, id, log, " for deletion")

    await db.delete(db_order)
    await db.commit()
    await log.log_info("order", "Order deleted", {"id": id})
