# app/routers/reminder.py
from fastapi import APIRouter, Depends

from app.schemas.profile import CurrentUser
from app.schemas.reminder import ReminderPolicy, ReminderPolicyUpdate
from app.services.projects import load_policy, save_policy
from app.utils.auth import get_current_user, get_gateway

router = APIRouter(prefix="/projects", tags=["reminders"])


@router.get("/{project_id}/reminder-settings", response_model=ReminderPolicy)
async def get_reminder_settings(
    project_id: int,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get the reminder policy of a project"""
    return await load_policy(gateway, project_id)


@router.put("/{project_id}/reminder-settings", response_model=ReminderPolicy)
async def update_reminder_settings(
    project_id: int,
    changes: ReminderPolicyUpdate,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Update the reminder policy of a project (admins only)"""
    return await save_policy(gateway, project_id, changes.model_dump(exclude_unset=True), current_user)
