# app/models/social_post.py
from sqlalchemy import Column, Integer, String, Text, Date, Time, DateTime, Boolean, ForeignKey, JSON
from app.utils.dates import utcnow
from app.database import Base
import enum


class SocialPlatform(str, enum.Enum):
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    LINKEDIN = "linkedin"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    OTHER = "other"


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    CANCELLED = "cancelled"


class SocialPost(Base):
    __tablename__ = "social_media_posts"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    media_urls = Column(JSON, nullable=False, default=list)
    platform = Column(String(20), nullable=False)
    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(Time, nullable=True)
    status = Column(String(20), nullable=False, default=PostStatus.DRAFT.value)
    notify_before_hours = Column(Integer, nullable=False, default=2)
    notification_sent = Column(Boolean, nullable=False, default=False)
    hashtags = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    approved_by = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
