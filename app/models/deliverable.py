# app/models/deliverable.py
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.utils.dates import utcnow
from app.database import Base
import enum


class DeliverableStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    APPROVED = "approved"
    REJECTED = "rejected"


class Deliverable(Base):
    __tablename__ = "deliverables"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=DeliverableStatus.PENDING.value)
    due_date = Column(Date, nullable=True)  # Date only, no time component
    created_at = Column(DateTime(timezone=True), default=utcnow)

    project = relationship("Project", back_populates="deliverables")
