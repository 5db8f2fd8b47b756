"""
Notification dispatcher

Request handlers never await mail delivery. They hand a Notification to the
dispatcher, which schedules it on FastAPI BackgroundTasks so it runs after the
response has been sent. Each delivery is bounded by EMAIL_SEND_TIMEOUT_SECONDS;
failures and timeouts are written to the dead-letter logger and never retried.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from fastapi import BackgroundTasks, Depends

from . import email_service
from .config import EMAIL_SEND_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)
dead_letter_logger = logging.getLogger("handyhub.notifications.dead_letter")


class NotificationKind(str, Enum):
    VERIFICATION = "verification"
    WELCOME = "welcome"
    PASSWORD_RESET = "password-reset"
    PASSWORD_CHANGED = "password-changed"
    BOOKING_CONFIRMATION = "booking-confirmation"
    BOOKING_NOTIFICATION = "booking-notification"
    BOOKING_STATUS_UPDATE = "booking-status-update"
    WORKER_APPLICATION_RECEIVED = "worker-application-received"
    WORKER_APPROVED = "worker-approved"
    WORKER_REJECTED = "worker-rejected"


@dataclass
class Notification:
    kind: NotificationKind
    recipient_email: str
    recipient_name: str
    context: dict[str, Any] = field(default_factory=dict)


NotificationSender = Callable[[Notification], Awaitable[Any]]


async def send_via_email(notification: Notification) -> Any:
    """Render and send a notification with the matching email template"""
    to = notification.recipient_email
    name = notification.recipient_name
    ctx = notification.context
    kind = notification.kind

    if kind == NotificationKind.VERIFICATION:
        return await email_service.send_email_verification_otp(to, name, ctx["otp"])
    if kind == NotificationKind.WELCOME:
        return await email_service.send_welcome_email(to, name)
    if kind == NotificationKind.PASSWORD_RESET:
        return await email_service.send_password_reset_otp(to, name, ctx["otp"])
    if kind == NotificationKind.PASSWORD_CHANGED:
        return await email_service.send_password_changed_email(to, name)
    if kind == NotificationKind.BOOKING_CONFIRMATION:
        return await email_service.send_booking_confirmation(to, name, ctx["booking"])
    if kind == NotificationKind.BOOKING_NOTIFICATION:
        return await email_service.send_booking_notification(to, name, ctx["booking"])
    if kind == NotificationKind.BOOKING_STATUS_UPDATE:
        return await email_service.send_booking_status_update(to, name, ctx["booking"], ctx["status"])
    if kind == NotificationKind.WORKER_APPLICATION_RECEIVED:
        return await email_service.send_worker_application_received(to, name)
    if kind == NotificationKind.WORKER_APPROVED:
        return await email_service.send_worker_approved(to, name)
    if kind == NotificationKind.WORKER_REJECTED:
        return await email_service.send_worker_rejected(to, name, ctx.get("reason"))
    raise ValueError(f"Unknown notification kind: {kind}")


async def deliver(
    notification: Notification,
    sender: NotificationSender,
    timeout: float = EMAIL_SEND_TIMEOUT_SECONDS,
) -> bool:
    """Run one delivery attempt; returns False (and dead-letters) on failure"""
    try:
        await asyncio.wait_for(sender(notification), timeout=timeout)
        logger.info(f"📧 {notification.kind.value} notification delivered to {notification.recipient_email}")
        return True
    except asyncio.TimeoutError:
        dead_letter_logger.error(
            f"⏱️ {notification.kind.value} notification to {notification.recipient_email} "
            f"timed out after {timeout}s"
        )
    except Exception as e:
        dead_letter_logger.error(
            f"❌ {notification.kind.value} notification to {notification.recipient_email} failed: {e}"
        )
    return False


class NotificationDispatcher:
    """Queues notifications on the request's background tasks"""

    def __init__(self, background_tasks: BackgroundTasks, sender: NotificationSender = send_via_email):
        self.background_tasks = background_tasks
        self.sender = sender

    def dispatch(
        self,
        kind: NotificationKind,
        recipient_email: Optional[str],
        recipient_name: Optional[str],
        **context: Any,
    ) -> None:
        if not recipient_email:
            logger.warning(f"⚠️ Skipping {kind.value} notification: no recipient email")
            return
        notification = Notification(
            kind=kind,
            recipient_email=recipient_email,
            recipient_name=recipient_name or "there",
            context=context,
        )
        self.background_tasks.add_task(deliver, notification, self.sender)


def get_notification_sender() -> NotificationSender:
    """Delivery backend; overridden in tests"""
    return send_via_email


def get_notifier(
    background_tasks: BackgroundTasks,
    sender: NotificationSender = Depends(get_notification_sender),
) -> NotificationDispatcher:
    return NotificationDispatcher(background_tasks, sender)
