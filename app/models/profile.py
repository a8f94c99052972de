# app/models/profile.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from app.utils.dates import utcnow
from app.database import Base
import enum


class ProfileRole(str, enum.Enum):
    ADMIN = "admin"
    CLIENT = "client"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    avatar_url = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default=ProfileRole.CLIENT.value)
    company_name = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN.value

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}', role='{self.role}')>"
