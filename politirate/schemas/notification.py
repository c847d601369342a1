"""Schemas for announcement banners."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from politirate.schemas.common import PartialUpdate, UtcDatetime


class NotificationCreate(BaseModel):
    message: str = Field(..., min_length=1)
    link: str | None = Field(default=None, max_length=1024)
    start_time: UtcDatetime | None = None
    end_time: UtcDatetime | None = None
    is_active: bool = True
    poll_id: str | None = None


class NotificationUpdate(PartialUpdate):
    non_nullable = frozenset({"message", "is_active"})

    message: str | None = Field(default=None, min_length=1)
    link: str | None = Field(default=None, max_length=1024)
    start_time: UtcDatetime | None = None
    end_time: UtcDatetime | None = None
    is_active: bool | None = None
    poll_id: str | None = None


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    message: str
    link: str | None
    start_time: datetime | None
    end_time: datetime | None
    is_active: bool
    poll_id: str | None
    created_at: datetime


__all__ = ["NotificationCreate", "NotificationRead", "NotificationUpdate"]
