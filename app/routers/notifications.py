# app/routers/notifications.py
from fastapi import APIRouter, Depends, Query

from app.schemas.notification import NotificationList, NotificationOut
from app.schemas.profile import CurrentUser
from app.services.notification_store import NotificationStore
from app.utils.auth import get_current_user, get_gateway

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=NotificationList)
async def get_user_notifications(
    limit: int = Query(50, ge=1, le=100),
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Get the most recent notifications of the current user"""
    store = NotificationStore(gateway, current_user, page_size=limit)
    await store.initialize()
    return NotificationList(notifications=store.notifications, unread_count=store.unread_count)


@router.patch("/read-all", response_model=dict)
async def mark_all_notifications_as_read(
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Mark all notifications as read for the current user"""
    store = NotificationStore(gateway, current_user)
    updated_count = await store.mark_all_as_read()
    return {
        "message": f"Marked {updated_count} notifications as read",
        "updated_count": updated_count
    }


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_notification_as_read(
    notification_id: int,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Mark a notification as read"""
    store = NotificationStore(gateway, current_user)
    return await store.mark_as_read(notification_id)


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Delete a notification"""
    store = NotificationStore(gateway, current_user)
    await store.delete(notification_id)
    return {"message": "Notification deleted successfully"}


@router.delete("/")
async def clear_notifications(
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(get_current_user)
):
    """Delete every notification of the current user"""
    store = NotificationStore(gateway, current_user)
    deleted_count = await store.clear_all()
    return {"message": f"Deleted {deleted_count} notifications", "deleted_count": deleted_count}
