# delivery/routes/order.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from delivery.routes.auth import get_actor, driver_or_admin
from delivery.schemas.actor import Actor
from delivery.schemas.order import (
    AssignDriver,
    AssignResponse,
    MessageResponse,
    Order,
    OrderCreate,
    OrderUpdate,
    StatusUpdate,
)
from delivery.schemas.tracking import TrackResponse
from delivery.services.order import (
    advance_order_service,
    assign_driver_service,
    create_order_service,
    delete_order_service,
    read_available_orders_service,
    read_order_service,
    read_orders_service,
    track_order_service,
    update_order_service,
    update_status_service,
)

router = APIRouter()

# ────────────── CREATE ──────────────
@router.post(
    "",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    summary="Place an order",
    response_description="The stored order with its generated order number",
    responses={
        201: {"description": "Order created"},
        400: {"description": "Missing required fields or pricing mismatch"},
        500: {"description": "Internal server error"},
    },
)
async def create_order(
    request: Request,
    order: OrderCreate,
    actor: Actor = Depends(get_actor),
):
    try:
        return await create_order_service(order, request, actor)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Order creation failed: {str(e)}")
        raise


# ────────────── READ ALL ──────────────
@router.get(
    "",
    response_model=List[Order],
    status_code=status.HTTP_200_OK,
    summary="List orders",
    response_description="Orders matching every filter, newest first",
    responses={
        200: {"description": "Orders returned"},
        500: {"description": "Internal server error"},
    },
)
async def read_orders(
    request: Request,
    status_filter: Optional[str] = Query(None, alias="status"),
    driver_id: Optional[str] = Query(None, alias="driverId"),
    restaurant_id: Optional[str] = Query(None, alias="restaurantId"),
    customer_id: Optional[str] = Query(None, alias="customerId"),
    unassigned: Optional[bool] = Query(None),
):
    try:
        return await read_orders_service(
            request,
            status=status_filter,
            driver_id=driver_id,
            restaurant_id=restaurant_id,
            customer_id=customer_id,
            unassigned=unassigned,
        )
    except Exception as e:
        await request.app.state.log.log_error("order", f"Order list failed: {str(e)}")
        raise


@router.get(
    "/available",
    response_model=List[Order],
    summary="Orders waiting for a driver",
    responses={200: {"description": "Confirmed orders without a driver"}},
)
async def read_available_orders(request: Request):
    try:
        return await read_available_orders_service(request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Available orders failed: {str(e)}")
        raise


@router.get(
    "/customer/{customer_id}",
    response_model=List[Order],
    summary="Orders of a customer",
    responses={200: {"description": "The customer's orders, newest first"}},
)
async def read_customer_orders(customer_id: str, request: Request):
    try:
        return await read_orders_service(request, customer_id=customer_id)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Customer orders failed: {str(e)}", {"customer_id": customer_id})
        raise


# ────────────── READ ONE ──────────────
@router.get(
    "/{id}",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Get an order",
    responses={
        200: {"description": "Order found"},
        404: {"description": "Order not found"},
        500: {"description": "Internal server error"},
    },
)
async def read_order(id: str, request: Request):
    try:
        return await read_order_service(id, request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Order read failed: {str(e)}", {"id": id})
        raise


# ────────────── UPDATE ──────────────
@router.put(
    "/{id}",
    response_model=Order,
    status_code=status.HTTP_200_OK,
    summary="Edit an order",
    responses={
        200: {"description": "Order updated"},
        400: {"description": "Invalid field or status"},
        404: {"description": "Order not found"},
        409: {"description": "Status change not allowed"},
        500: {"description": "Internal server error"},
    },
)
async def update_order(
    id: str,
    order_update: OrderUpdate,
    request: Request,
    actor: Actor = Depends(get_actor),
):
    try:
        return await update_order_service(id, order_update, request, actor)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Order update failed: {str(e)}", {"id": id})
        raise


@router.patch(
    "/{id}/status",
    response_model=Order,
    summary="Change order status",
    responses={
        200: {"description": "Status updated"},
        400: {"description": "Status missing or unknown"},
        403: {"description": "Driver is not assigned to the order"},
        404: {"description": "Order not found"},
        409: {"description": "Order is terminal or expectedStatus does not match"},
    },
)
async def update_order_status(
    id: str,
    body: StatusUpdate,
    request: Request,
    actor: Actor = Depends(get_actor),
):
    try:
        return await update_status_service(id, body, request, actor)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Status update failed: {str(e)}", {"id": id})
        raise


@router.post(
    "/{id}/advance",
    response_model=Order,
    summary="Move the order to its next status",
    responses={
        200: {"description": "Order advanced"},
        403: {"description": "Driver is not assigned to the order"},
        404: {"description": "Order not found"},
        409: {"description": "No next status, or the status changed meanwhile"},
    },
)
async def advance_order(
    id: str,
    request: Request,
    actor: Actor = Depends(driver_or_admin),
):
    try:
        return await advance_order_service(id, request, actor)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Advance failed: {str(e)}", {"id": id})
        raise


# ────────────── ASSIGN DRIVER ──────────────
@router.put(
    "/{id}/assign-driver",
    response_model=AssignResponse,
    summary="Assign a driver",
    responses={
        200: {"description": "Driver assigned"},
        400: {"description": "driverId missing"},
        404: {"description": "Order or driver not found"},
        409: {"description": "Order already assigned or closed"},
    },
)
async def assign_driver(
    id: str,
    body: AssignDriver,
    request: Request,
    actor: Actor = Depends(get_actor),
):
    try:
        order = await assign_driver_service(id, body.driver_id, request, actor)
        return {"success": True, "order": Order.model_validate(order)}
    except Exception as e:
        await request.app.state.log.log_error("order", f"Assignment failed: {str(e)}", {"id": id})
        raise


# ────────────── TRACK ──────────────
@router.get(
    "/{id}/track",
    response_model=TrackResponse,
    summary="Track an order",
    response_description="Order, synthesized timeline and driver contact",
    responses={
        200: {"description": "Tracking returned"},
        404: {"description": "Order not found"},
    },
)
async def track_order(id: str, request: Request):
    try:
        return await track_order_service(id, request)
    except Exception as e:
        await request.app.state.log.log_error("order", f"Tracking failed: {str(e)}", {"id": id})
        raise


# ────────────── DELETE ──────────────
@router.delete(
    "/{id}",
    response_model=MessageResponse,
    summary="Delete an order",
    responses={
        200: {"description": "Order deleted"},
        404: {"description": "Order not found"},
    },
)
async def delete_order(id: str, request: Request):
    try:
        await delete_order_service(id, request)
        return {"message": "Order deleted"}
    except Exception as e:
        await request.app.state.log.log_error("order", f"Order deletion failed: {str(e)}", {"id": id})
        raise
