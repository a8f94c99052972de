# app/schemas/social_post.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, time, datetime

from app.models.social_post import PostStatus, SocialPlatform
from app.schemas.base import RowModel


class SocialPostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    media_urls: List[str] = []
    platform: SocialPlatform
    scheduled_date: date
    scheduled_time: Optional[time] = None
    status: PostStatus = PostStatus.DRAFT
    notify_before_hours: int = Field(2, gt=0)
    hashtags: List[str] = []
    notes: Optional[str] = None


class SocialPostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    media_urls: Optional[List[str]] = None
    platform: Optional[SocialPlatform] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    notify_before_hours: Optional[int] = Field(None, gt=0)
    hashtags: Optional[List[str]] = None
    notes: Optional[str] = None


class StatusUpdate(BaseModel):
    status: PostStatus


class SocialPostOut(RowModel):
    id: int
    project_id: int
    title: str
    content: Optional[str] = None
    media_urls: List[str] = []
    platform: SocialPlatform
    scheduled_date: date
    scheduled_time: Optional[time] = None
    status: PostStatus
    notify_before_hours: int = 2
    notification_sent: bool = False
    hashtags: List[str] = []
    notes: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
