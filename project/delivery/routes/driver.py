# delivery/routes/driver.py

from typing import List, Optional

from fastapi import APIRouter, Query, Request, status

from delivery.schemas.driver import Driver, DriverCreate, DriverStats, DriverUpdate
from delivery.services.driver import (
    create_driver_service,
    driver_stats_service,
    read_driver_service,
    read_drivers_service,
    update_driver_service,
)

router = APIRouter()

# ────────────── CREATE ──────────────
@router.post(
    "",
    response_model=Driver,
    status_code=status.HTTP_201_CREATED,
    summary="Register a driver",
    responses={
        201: {"description": "Driver registered"},
        400: {"description": "Invalid payload"},
        409: {"description": "Phone already registered"},
    },
)
async def create_driver(request: Request, driver: DriverCreate):
    try:
        return await create_driver_service(driver, request)
    except Exception as e:
        await request.app.state.log.log_error("driver", f"Driver registration failed: {str(e)}")
        raise


# ────────────── READ ──────────────
@router.get(
    "",
    response_model=List[Driver],
    summary="List drivers",
    responses={200: {"description": "Drivers, optionally only (un)available ones"}},
)
async def read_drivers(request: Request, available: Optional[bool] = Query(None)):
    try:
        return await read_drivers_service(request, available)
    except Exception as e:
        await request.app.state.log.log_error("driver", f"Driver list failed: {str(e)}")
        raise


@router.get(
    "/{id}",
    response_model=Driver,
    summary="Get a driver",
    responses={200: {"description": "Driver found"}, 404: {"description": "Driver not found"}},
)
async def read_driver(id: str, request: Request):
    try:
        return await read_driver_service(id, request)
    except Exception as e:
        await request.app.state.log.log_error("driver", f"Driver read failed: {str(e)}", {"id": id})
        raise


@router.get(
    "/{id}/stats",
    response_model=DriverStats,
    summary="Driver dashboard counters",
    responses={200: {"description": "Counters returned"}, 404: {"description": "Driver not found"}},
)
async def read_driver_stats(id: str, request: Request):
    try:
        return await driver_stats_service(id, request)
    except Exception as e:
        await request.app.state.log.log_error("driver", f"Driver stats failed: {str(e)}", {"id": id})
        raise


# ────────────── UPDATE ──────────────
@router.put(
    "/{id}",
    response_model=Driver,
    summary="Update a driver (availability toggle, location)",
    responses={
        200: {"description": "Driver updated"},
        400: {"description": "Invalid field"},
        404: {"description": "Driver not found"},
        409: {"description": "Phone already used"},
    },
)
async def update_driver(id: str, driver_update: DriverUpdate, request: Request):
    try:
        return await update_driver_service(id, driver_update, request)
    except Exception as e:
        await request.app.state.log.log_error("driver", f"Driver update failed: {str(e)}", {"id": id})
        raise
