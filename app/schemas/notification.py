# app/schemas/notification.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from app.models.notification import NotificationType
from app.schemas.base import RowModel


class NotificationCreate(BaseModel):
    user_id: int
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    link: Optional[str] = Field(None, max_length=500)
    project_id: Optional[int] = None
    actor_id: Optional[int] = None
    reminder_key: Optional[str] = Field(None, max_length=120)


class NotificationOut(RowModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    project_id: Optional[int] = None
    actor_id: Optional[int] = None
    is_read: bool = False
    created_at: datetime


class NotificationList(BaseModel):
    notifications: List[NotificationOut]
    unread_count: int
