# app/schemas/base.py
from datetime import datetime
from pydantic import BaseModel, field_validator

from app.utils.dates import ensure_utc


class RowModel(BaseModel):
    """DTO parsed from a gateway row; naive timestamps are read as UTC"""

    @field_validator("*", mode="after")
    @classmethod
    def _timestamps_in_utc(cls, v):
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v

    class Config:
        from_attributes = True
