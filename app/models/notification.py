# app/models/notification.py
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from app.utils.dates import utcnow
from app.database import Base
import enum


class NotificationType(str, enum.Enum):
    MENTION = "mention"
    COMMENT = "comment"
    FILE_UPLOAD = "file_upload"
    PROJECT_UPDATE = "project_update"
    DEADLINE = "deadline"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(500), nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    actor_id = Column(Integer, ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    # Deduplication key for scheduled and manual reminders
    reminder_key = Column(String(120), nullable=True, index=True)

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, title='{self.title}', type='{self.type}')>"
