# app/schemas/comment.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from app.schemas.base import RowModel


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    parent_id: Optional[int] = None
    # Resolved from @names in the content when omitted
    mentions: Optional[List[int]] = None


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentOut(RowModel):
    id: int
    project_id: int
    user_id: int
    parent_id: Optional[int] = None
    content: str
    mentions: List[int] = []
    is_edited: bool = False
    created_at: datetime
    updated_at: datetime
    # Only populated on top-level comments
    replies: List["CommentOut"] = []


CommentOut.model_rebuild()
