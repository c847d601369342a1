"""Site settings singleton and the maintenance window gate."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from politirate.core.clock import as_utc, utcnow
from politirate.core.config import Settings, get_settings
from politirate.models import SITE_SETTINGS_ID, SiteSettings

LOGGER = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset(
    {
        "maintenance_active",
        "maintenance_start",
        "maintenance_end",
        "maintenance_message",
        "contact_email",
        "contact_phone",
        "contact_twitter",
        "contact_linkedin",
        "contact_youtube",
        "contact_facebook",
    }
)


class SiteSettingsError(RuntimeError):
    """Base exception for site settings errors."""


class SiteSettingsValidationError(SiteSettingsError):
    """Raised when an update would store an invalid value."""


class InvalidMaintenanceWindowError(SiteSettingsValidationError):
    """Raised when the maintenance window ends before it starts."""


@dataclass(slots=True, frozen=True)
class MaintenanceStatus:
    under_maintenance: bool
    message: str | None
    start: datetime | None = None
    end: datetime | None = None
    checked_at: datetime = field(default_factory=utcnow)


def is_under_maintenance(
    active: bool,
    start: datetime | None,
    end: datetime | None,
    now: datetime,
) -> bool:
    """Return whether public access is currently gated by maintenance.

    * inactive -> never under maintenance, whatever the window says
    * active without a start -> immediately and unconditionally
    * active with a start but no end -> from ``start`` onwards
    * active with both bounds -> inclusive ``start <= now <= end``
    """

    if not active:
        return False
    if start is None:
        return True
    current = as_utc(now)
    if end is None:
        return current >= as_utc(start)
    return as_utc(start) <= current <= as_utc(end)


def _default_settings(settings: Settings) -> SiteSettings:
    return SiteSettings(
        id=SITE_SETTINGS_ID,
        maintenance_active=False,
        maintenance_message=settings.default_maintenance_message,
        contact_email=settings.default_contact_email,
    )


def get_site_settings(session: Session, *, settings: Settings | None = None) -> SiteSettings:
    """Return the settings row, creating it with defaults on first access.

    Storage failures degrade to an unsaved defaults object so that page
    rendering is never blocked by the settings lookup.
    """

    settings = settings or get_settings()
    try:
        row = session.get(SiteSettings, SITE_SETTINGS_ID)
        if row is None:
            row = _default_settings(settings)
            session.add(row)
            session.commit()
            session.refresh(row)
        return row
    except SQLAlchemyError:
        session.rollback()
        LOGGER.exception("failed to load site settings, using defaults")
        return _default_settings(settings)


def update_site_settings(session: Session, changes: dict[str, Any]) -> SiteSettings:
    """Apply a partial update to the settings singleton."""

    if "maintenance_active" in changes and changes["maintenance_active"] is None:
        raise SiteSettingsValidationError("maintenance_active cannot be null")

    row = session.get(SiteSettings, SITE_SETTINGS_ID)
    if row is None:
        row = _default_settings(get_settings())
        session.add(row)

    for field_name, value in changes.items():
        if field_name in _EDITABLE_FIELDS:
            setattr(row, field_name, value)

    if row.maintenance_start is not None and row.maintenance_end is not None:
        if as_utc(row.maintenance_end) < as_utc(row.maintenance_start):
            session.rollback()
            raise InvalidMaintenanceWindowError("Maintenance end must not be before its start")

    session.commit()
    session.refresh(row)
    LOGGER.info(
        "site settings updated",
        extra={"fields": sorted(set(changes) & _EDITABLE_FIELDS), "maintenance_active": row.maintenance_active},
    )
    return row


def get_maintenance_status(session: Session, *, now: datetime | None = None) -> MaintenanceStatus:
    current_time = now or utcnow()
    row = get_site_settings(session)
    active = is_under_maintenance(
        row.maintenance_active, row.maintenance_start, row.maintenance_end, current_time
    )
    return MaintenanceStatus(
        under_maintenance=active,
        message=row.maintenance_message if active else None,
        start=row.maintenance_start,
        end=row.maintenance_end,
        checked_at=current_time,
    )


__all__ = [
    "InvalidMaintenanceWindowError",
    "MaintenanceStatus",
    "SiteSettingsError",
    "SiteSettingsValidationError",
    "get_maintenance_status",
    "get_site_settings",
    "is_under_maintenance",
    "update_site_settings",
]
