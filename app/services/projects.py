# app/services/projects.py
"""
Project lookups and the per-project reminder policy
"""

import logging
from typing import Any, Dict, Optional

from app.errors import NotFoundError, PermissionDeniedError
from app.schemas.profile import CurrentUser
from app.schemas.reminder import ReminderPolicy

logger = logging.getLogger(__name__)


async def get_project(gateway, project_id: int) -> Dict[str, Any]:
    row = (await gateway.select_one("projects", {"id": project_id})).unwrap()
    if row is None:
        raise NotFoundError("Project not found")
    return row


async def load_policy(gateway, project_id: int) -> ReminderPolicy:
    project = await get_project(gateway, project_id)
    return ReminderPolicy.from_settings(project.get("notification_settings"))


async def save_policy(gateway, project_id: int, changes: Dict[str, Any], actor: Optional[CurrentUser]) -> ReminderPolicy:
    """Merge changes into the stored policy; admins only"""
    if actor is None or not actor.is_admin:
        raise PermissionDeniedError("Only admins can change reminder settings")

    project = await get_project(gateway, project_id)
    stored = dict(project.get("notification_settings") or {})
    changes = {k: v for k, v in changes.items() if v is not None}
    if "overdue_reminders" in changes:
        changes["overdue_reminders"] = {
            **(stored.get("overdue_reminders") or {}),
            **changes["overdue_reminders"],
        }
    policy = ReminderPolicy.from_settings({**stored, **changes})

    (await gateway.update("projects", {"id": project_id}, {"notification_settings": policy.model_dump()})).unwrap()
    logger.info(f"Reminder settings of project {project_id} updated by user {actor.id}")
    return policy


async def client_account(gateway, client: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """The portal profile linked to a client, by profile id or else by email"""
    if client is None:
        return None
    if client.get("profile_id") is not None:
        profile = (await gateway.select_one("profiles", {"id": client["profile_id"]})).unwrap()
        if profile is not None:
            return profile
    if client.get("email"):
        return (await gateway.select_one("profiles", {"email": client["email"]})).unwrap()
    return None
