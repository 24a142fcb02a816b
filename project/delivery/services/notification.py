# delivery/services/notification.py

import asyncio
from collections import deque
from dataclasses import dataclass, field

from fastapi import Request
from sqlalchemy.future import select

from delivery.models.notification import Notification as NotificationModel
from delivery.schemas.notification import NotificationCreate
from delivery.services.lifecycle import status_message
from delivery.utils.errors import NotFoundError
from delivery.utils.metrics import NOTIFICATIONS_PROCESSED


@dataclass
class NotificationJob:
    notification: NotificationCreate
    errors: list[str] = field(default_factory=list)


class NotificationDispatcher:
    """
    Fire-and-forget notification delivery.

    Request handlers only enqueue; a background worker writes each
    notification with its own session, retries failures with a growing
    delay and moves jobs that keep failing to a bounded dead-letter buffer.
    Nothing here raises into the caller.
    """

    def __init__(
        self,
        session_factory,
        log,
        max_attempts: int = 3,
        retry_delay: float = 0.5,
        queue_size: int = 1000,
        dead_letter_size: int = 100,
    ):
        self.session_factory = session_factory
        self.log = log
        self.max_attempts = max(1, max_attempts)
        self.retry_delay = retry_delay
        self.queue: asyncio.Queue[NotificationJob] = asyncio.Queue(maxsize=queue_size)
        # newest failures only; older ones are still in the error log
        self.dead_letters: deque[NotificationJob] = deque(maxlen=dead_letter_size)
        self._worker: asyncio.Task | None = None

    # ────────────── lifecycle ──────────────
    def start(self):
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")

    async def join(self):
        """Waits until every queued notification is stored or dead-lettered."""
        await self.queue.join()

    async def stop(self, timeout: float = 5.0):
        try:
            await asyncio.wait_for(self.queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            await self.log.log_warning("notification", "Queue not drained before shutdown", {"pending": self.queue.qsize()})

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    # ────────────── producer side ──────────────
    async def emit(self, notification: NotificationCreate) -> bool:
        job = NotificationJob(notification)
        try:
            self.queue.put_nowait(job)
            return True
        except asyncio.QueueFull:
            job.errors.append("queue full")
            await self._dead_letter(job)
            return False
        except Exception as e:
            await self.log.log_error("notification", f"Enqueue failed: {e}", {
                "type": notification.type,
                "order_id": notification.order_id,
            })
            return False

    # ────────────── worker side ──────────────
    async def store(self, notification: NotificationCreate):
        async with self.session_factory() as session:
            session.add(NotificationModel(**notification.model_dump()))
            await session.commit()

    async def _run(self):
        while True:
            job = await self.queue.get()
            try:
                await self._deliver(job)
            except Exception as e:
                job.errors.append(str(e))
                self.dead_letters.append(job)
                await self.log.log_error("notification", f"Worker error: {e}", {"type": job.notification.type})
            finally:
                self.queue.task_done()

    async def _deliver(self, job: NotificationJob):
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.store(job.notification)
                NOTIFICATIONS_PROCESSED.labels(result="stored").inc()
                return
            except Exception as e:
                job.errors.append(str(e))
                NOTIFICATIONS_PROCESSED.labels(result="retry").inc()
                await self.log.log_warning("notification", f"Attempt {attempt} failed: {e}", {
                    "type": job.notification.type,
                    "order_id": job.notification.order_id,
                })
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_delay * attempt)

        await self._dead_letter(job)

    async def _dead_letter(self, job: NotificationJob):
        self.dead_letters.append(job)
        NOTIFICATIONS_PROCESSED.labels(result="dead_letter").inc()
        await self.log.log_error("notification", "Notification dropped", {
            "notification": job.notification,
            "errors": job.errors,
        })


# ────────────── message builders ──────────────
def customer_recipient(order) -> str | None:
    return order.customer_id or order.customer_phone


def order_created_notification(order) -> NotificationCreate:
    return NotificationCreate(
        type="order_created",
        title="New order",
        message=f"New order {order.order_number} from {order.customer_name}, total {order.total:g}",
        recipient_type="admin",
        order_id=order.id,
    )


def status_changed_notification(order) -> NotificationCreate:
    return NotificationCreate(
        type="order_status",
        title=f"Order {order.order_number}",
        message=status_message(order.status),
        recipient_type="customer",
        recipient_id=customer_recipient(order),
        order_id=order.id,
    )


def driver_assigned_notification(order, driver) -> NotificationCreate:
    return NotificationCreate(
        type="driver_assigned",
        title=f"Order {order.order_number}",
        message=f"Driver {driver.name} has accepted your order",
        recipient_type="customer",
        recipient_id=customer_recipient(order),
        order_id=order.id,
    )


async def notify(request: Request, notification: NotificationCreate):
    """Enqueues on the app dispatcher; a missing dispatcher is logged, never raised."""
    dispatcher = getattr(request.app.state, "notifier", None)
    if dispatcher is None:
        await request.app.state.log.log_warning("notification", "Dispatcher not running, notification skipped", {
            "type": notification.type,
            "order_id": notification.order_id,
        })
        return
    await dispatcher.emit(notification)


# ────────────── read side ──────────────
async def read_notifications_service(
    request: Request,
    recipient_type: str | None = None,
    recipient_id: str | None = None,
    unread: bool | None = None,
) -> list[NotificationModel]:
    """
    Notifications for a recipient, newest first.
    """
    db = request.state.db
    log = request.app.state.log

    query = select(NotificationModel)
    if recipient_type:
        query = query.where(NotificationModel.recipient_type == recipient_type)
    if recipient_id:
        query = query.where(NotificationModel.recipient_id == recipient_id)
    if unread is not None:
        query = query.where(NotificationModel.is_read == (not unread))
    query = query.order_by(NotificationModel.created_at.desc())

    result = await db.execute(query)
    notifications = result.scalars().all()

    await log.log_info("notification", f"{len(notifications)} notifications loaded")
    return notifications


async def mark_notification_read_service(id: str, request: Request) -> NotificationModel:
    db = request.state.db
    log = request.app.state.log

    result = await db.execute(select(NotificationModel).where(NotificationModel.id == id))
    notification = result.scalar_one_or_none()
    if notification is None:
        await log.log_error("notification", "Notification not found", {"id": id})
        raise NotFoundError("Notification not found")

    notification.is_read = True
    await db.commit()
    await log.log_info("notification", "Notification marked read", {"id": id})
    return notification
