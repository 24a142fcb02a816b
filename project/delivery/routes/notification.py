# delivery/routes/notification.py

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from delivery.schemas.notification import Notification
from delivery.services.notification import mark_notification_read_service, read_notifications_service

router = APIRouter()


@router.get(
    "",
    response_model=List[Notification],
    summary="List notifications",
    responses={200: {"description": "Notifications, newest first"}},
)
async def read_notifications(
    request: Request,
    recipient_type: Optional[str] = Query(None, alias="recipientType"),
    recipient_id: Optional[str] = Query(None, alias="recipientId"),
    unread: Optional[bool] = Query(None),
):
    try:
        return await read_notifications_service(request, recipient_type, recipient_id, unread)
    except Exception as e:
        await request.app.state.log.log_error("notification", f"Notification list failed: {str(e)}")
        raise


@router.patch(
    "/{id}/read",
    response_model=Notification,
    summary="Mark a notification as read",
    responses={200: {"description": "Notification updated"}, 404: {"description": "Notification not found"}},
)
async def mark_notification_read(id: str, request: Request):
    try:
        return await mark_notification_read_service(id, request)
    except Exception as e:
        await request.app.state.log.log_error("notification", f"Mark read failed: {str(e)}", {"id": id})
        raise
