# app/models/project.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from app.utils.dates import utcnow
from app.database import Base
import enum


class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(20), nullable=False, default=ProjectStatus.ACTIVE.value)
    progress = Column(Integer, nullable=False, default=0)  # 0-100
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    # Reminder policy, see app/schemas/reminder.py
    notification_settings = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    client = relationship("Client", back_populates="projects")
    deliverables = relationship("Deliverable", back_populates="project", cascade="all, delete-orphan")
