"""Schemas for support tickets."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from politirate.models.support_ticket import TicketStatus


class SupportTicketCreate(BaseModel):
    """Contact form payload. Name and e-mail default to the signed-in account."""

    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    user_name: str | None = Field(default=None, max_length=255)
    user_email: str | None = Field(default=None, max_length=320)


class SupportTicketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str | None
    user_name: str
    user_email: str
    subject: str
    message: str
    status: TicketStatus
    admin_notes: str | None
    resolved_at: datetime | None
    created_at: datetime
    updated_at: datetime


class SupportTicketStatusUpdate(BaseModel):
    status: TicketStatus
    admin_notes: str | None = None


class SupportTicketStatsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total: int
    open: int
    in_progress: int
    resolved: int
    closed: int
    avg_resolution_hours: float | None


__all__ = ["SupportTicketCreate", "SupportTicketRead", "SupportTicketStatsRead", "SupportTicketStatusUpdate"]
