"""Site settings ORM model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from politirate.models.base import Base, TimestampMixin

SITE_SETTINGS_ID = 1


class SiteSettings(TimestampMixin, Base):
    """Singleton row holding maintenance and contact configuration."""

    __tablename__ = "site_settings"
    __table_args__ = (CheckConstraint(f"id = {SITE_SETTINGS_ID}", name="singleton"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=SITE_SETTINGS_ID)
    maintenance_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    maintenance_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    maintenance_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    maintenance_message: Mapped[str | None] = mapped_column(Text)
    contact_email: Mapped[str | None] = mapped_column(String(320))
    contact_phone: Mapped[str | None] = mapped_column(String(32))
    contact_twitter: Mapped[str | None] = mapped_column(String(1024))
    contact_linkedin: Mapped[str | None] = mapped_column(String(1024))
    contact_youtube: Mapped[str | None] = mapped_column(String(1024))
    contact_facebook: Mapped[str | None] = mapped_column(String(1024))


__all__ = ["SITE_SETTINGS_ID", "SiteSettings"]
