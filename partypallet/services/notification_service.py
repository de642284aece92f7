"""
Notification Service
Queues booking and payment emails to go out after the database commit.
A failed delivery is logged and never undoes the booking change that caused it.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

from fastapi import BackgroundTasks

from ..config import ADMIN_NOTIFICATION_EMAIL
from ..email_service import send_template_email

logger = logging.getLogger(__name__)

Sender = Callable[[str, str, dict], Awaitable[dict]]


@dataclass
class Notification:
    template: str
    recipient: str
    data: dict = field(default_factory=dict)


async def deliver_notification(notification: Notification, sender: Sender = send_template_email) -> bool:
    """
    Send one notification, logging instead of raising on failure

    Returns:
        True when the email was handed to the provider
    """
    try:
        logger.info(f"📧 Sending {notification.template} email to {notification.recipient}")
        await sender(notification.template, notification.recipient, notification.data)
        logger.info(f"✅ {notification.template} email sent successfully to {notification.recipient}")
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send {notification.template} email to {notification.recipient}: {e}")
        return False


class NotificationQueue:
    """
    Collects notifications during a request and hands them to FastAPI
    background tasks, which run after the response is sent.

    Services call ``send`` only after their transaction has committed.
    """

    def __init__(self, background_tasks: Optional[BackgroundTasks] = None, sender: Sender = send_template_email):
        self.background_tasks = background_tasks
        self.sender = sender
        self.sent: list[Notification] = []

    def send(self, template: str, recipient: Optional[str], data: dict) -> None:
        if not recipient:
            logger.debug(f"⚠️ No recipient for {template} notification, skipping")
            return

        notification = Notification(template=template, recipient=recipient, data=data)
        self.sent.append(notification)

        if self.background_tasks is not None:
            self.background_tasks.add_task(deliver_notification, notification, self.sender)

    def send_admin(self, template: str, data: dict) -> None:
        """Send to the business inbox when one is configured"""
        self.send(template, ADMIN_NOTIFICATION_EMAIL, data)


def get_notification_queue(background_tasks: BackgroundTasks) -> NotificationQueue:
    """Dependency injection for NotificationQueue"""
    return NotificationQueue(background_tasks)
