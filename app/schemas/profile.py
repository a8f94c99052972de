# app/schemas/profile.py
from typing import Optional
from pydantic import BaseModel

from app.models.profile import ProfileRole


class CurrentUser(BaseModel):
    """The signed-in user as resolved from the auth token"""

    id: int
    email: str
    full_name: str = ""
    role: ProfileRole = ProfileRole.CLIENT
    avatar_url: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ProfileRole.ADMIN

    class Config:
        from_attributes = True


class ProfileBasic(BaseModel):
    id: int
    full_name: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
