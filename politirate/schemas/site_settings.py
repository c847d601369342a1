"""Schemas for site settings and the maintenance status."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from politirate.schemas.common import PartialUpdate, UtcDatetime


class SiteSettingsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    maintenance_active: bool
    maintenance_start: datetime | None
    maintenance_end: datetime | None
    maintenance_message: str | None
    contact_email: str | None
    contact_phone: str | None
    contact_twitter: str | None
    contact_linkedin: str | None
    contact_youtube: str | None
    contact_facebook: str | None


class SiteSettingsUpdate(PartialUpdate):
    """Partial update; only the fields present in the request are changed."""

    non_nullable = frozenset({"maintenance_active"})

    maintenance_active: bool | None = None
    maintenance_start: UtcDatetime | None = None
    maintenance_end: UtcDatetime | None = None
    maintenance_message: str | None = None
    contact_email: str | None = Field(default=None, max_length=320)
    contact_phone: str | None = Field(default=None, max_length=32)
    contact_twitter: str | None = Field(default=None, max_length=1024)
    contact_linkedin: str | None = Field(default=None, max_length=1024)
    contact_youtube: str | None = Field(default=None, max_length=1024)
    contact_facebook: str | None = Field(default=None, max_length=1024)


class ContactDetailsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    contact_email: str | None
    contact_phone: str | None
    contact_twitter: str | None
    contact_linkedin: str | None
    contact_youtube: str | None
    contact_facebook: str | None


class MaintenanceStatusRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    under_maintenance: bool
    message: str | None
    start: datetime | None
    end: datetime | None
    checked_at: datetime


__all__ = ["ContactDetailsRead", "MaintenanceStatusRead", "SiteSettingsRead", "SiteSettingsUpdate"]
