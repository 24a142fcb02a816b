# delivery/services/driver.py

from fastapi import Request
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from delivery.models.driver import Driver as DriverModel
from delivery.models.order import Order as OrderModel
from delivery.schemas.driver import DriverCreate, DriverStats, DriverUpdate
from delivery.services.lifecycle import OrderStatus, TERMINAL_STATUSES
from delivery.utils.errors import ConflictError, NotFoundError, ValidationError
from delivery.utils.security import hash_password


async def get_driver_or_404(db, id: str, log) -> DriverModel:
    result = await db.execute(select(DriverModel).where(DriverModel.id == id))
    driver = result.scalar_one_or_none()
    if driver is None:
        await log.log_error("driver", "Driver not found", {"id": id})
        raise NotFoundError("Driver not found")
    return driver


async def create_driver_service(driver: DriverCreate, request: Request) -> DriverModel:
    """
    Registers a driver. The password is stored as a passlib hash.
    """
    db = request.state.db
    log = request.app.state.log

    db_driver = DriverModel(
        name=driver.name.strip(),
        phone=driver.phone.strip(),
        password=hash_password(driver.password),
        current_location=driver.current_location,
        is_available=True,
        is_active=True,
        earnings=0.0,
    )
    db.add(db_driver)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        await log.log_warning("driver", "Driver phone already registered", {"phone": driver.phone})
        raise ConflictError("Driver already exists")
    await db.refresh(db_driver)

    await log.log_info("driver", "Driver registered", {"id": db_driver.id})
    return db_driver


async def read_drivers_service(request: Request, available: bool | None = None) -> list[DriverModel]:
    db = request.state.db
    log = request.app.state.log

    query = select(DriverModel)
    if available is not None:
        query = query.where(DriverModel.is_available == available)
    result = await db.execute(query.order_by(DriverModel.created_at.asc()))
    drivers = result.scalars().all()

    await log.log_info("driver", f"{len(drivers)} drivers loaded")
    return drivers


async def read_driver_service(id: str, request: Request) -> DriverModel:
    db = request.state.db
    log = request.app.state.log

    driver = await get_driver_or_404(db, id, log)
    await log.log_info("driver", "Driver loaded", {"id": id})
    return driver


async def update_driver_service(id: str, driver_update: DriverUpdate, request: Request) -> DriverModel:
    """
    Availability toggle, location and profile changes.
    """
    db = request.state.db
    log = request.app.state.log

    changes = driver_update.model_dump(exclude_unset=True)
    for key in ("name", "phone", "is_available", "is_active"):
        if key in changes and (changes[key] is None or (isinstance(changes[key], str) and not changes[key].strip())):
            raise ValidationError(f"{key} cannot be empty")

    driver = await get_driver_or_404(db, id, log)
    for key, value in changes.items():
        setattr(driver, key, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Phone already used by another driver")
    await db.refresh(driver)

    await log.log_info("driver", "Driver updated", {"id": id, "fields": list(changes)})
    return driver


async def driver_stats_service(id: str, request: Request) -> DriverStats:
    """
    Dashboard counters: all orders ever assigned, delivered ones, open ones, earnings.
    """
    db = request.state.db
    log = request.app.state.log

    driver = await get_driver_or_404(db, id, log)

    result = await db.execute(
        select(OrderModel.status, func.count(OrderModel.id))
        .where(OrderModel.driver_id == id)
        .group_by(OrderModel.status)
    )
    by_status = {status: count for status, count in result.all()}

    terminal = {s.value for s in TERMINAL_STATUSES}
    stats = DriverStats(
        total_orders=sum(by_status.values()),
        completed_orders=by_status.get(OrderStatus.DELIVERED.value, 0),
        active_orders=sum(count for status, count in by_status.items() if status not in terminal),
        total_earnings=driver.earnings,
    )

    await log.log_info("driver", "Driver stats computed", {"id": id, "stats": stats})
    return stats
