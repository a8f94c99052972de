# app/utils/notifications.py
"""
Utility functions for creating notifications through the gateway
"""

import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from app.errors import ValidationError
from app.models.notification import NotificationType
from app.schemas.notification import NotificationCreate
from app.services.gateway import GatewayResult

logger = logging.getLogger(__name__)


async def create_notification(
    gateway,
    user_id: int,
    title: str,
    message: str,
    notification_type: NotificationType,
    link: Optional[str] = None,
    project_id: Optional[int] = None,
    actor_id: Optional[int] = None,
    reminder_key: Optional[str] = None,
) -> GatewayResult:
    """
    Insert a notification for a user

    Args:
        gateway: Persistence gateway
        user_id: ID of the profile to notify
        title: Notification title
        message: Notification message
        notification_type: Type of notification
        link: In-app path the notification points to
        project_id: Related project, if any
        actor_id: Profile that caused the notification, if any
        reminder_key: Deduplication key for reminders

    Returns:
        GatewayResult holding the created row
    """
    try:
        payload = NotificationCreate(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            link=link,
            project_id=project_id,
            actor_id=actor_id,
            reminder_key=reminder_key,
        )
    except PydanticValidationError as e:
        return GatewayResult(error=ValidationError(f"Invalid notification: {e.errors()[0]['msg']}"))

    row = payload.model_dump()
    row["type"] = payload.type.value
    result = await gateway.insert("notifications", row)
    if result.ok:
        logger.info(f"Notification '{title}' created for user {user_id}")
    return result


async def already_notified(gateway, user_id: int, reminder_key: str) -> GatewayResult:
    """GatewayResult whose data is True when a notification with this key exists"""
    result = await gateway.select_one("notifications", {"user_id": user_id, "reminder_key": reminder_key})
    if not result.ok:
        return result
    return GatewayResult(data=result.data is not None)


def project_link(project_id: int) -> str:
    return f"/projects/{project_id}"


def overdue_reminder_text(deliverable_name: str, project_name: str, days_overdue: int):
    title = "Reminder: pending deliverable"
    unit = "day" if days_overdue == 1 else "days"
    message = (
        f'The deliverable "{deliverable_name}" of project "{project_name}" '
        f"is {days_overdue} {unit} overdue."
    )
    return title, message


def due_soon_text(deliverable_name: str, project_name: str, hours_left: int):
    title = "Deliverable due soon"
    message = f'The deliverable "{deliverable_name}" of project "{project_name}" is due in {hours_left} hours.'
    return title, message


def project_start_text(project_name: str):
    return "Project started", f'Work on project "{project_name}" starts today.'


def mention_text(author_name: str):
    return "You were mentioned", f"{author_name or 'Someone'} mentioned you in a comment."


def upcoming_post_text(post_title: str, platform: str, hours_left: int):
    title = "Scheduled post coming up"
    message = f'"{post_title}" goes out on {platform} in {hours_left} hours.'
    return title, message
