"""Maintenance gate applied to the public routers."""
from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.api.routes.auth import AuthenticatedUser, get_optional_user
from politirate.core.config import get_settings
from politirate.services.site_settings import get_maintenance_status

LOGGER = logging.getLogger(__name__)


def require_site_available(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> None:
    """Answer 503 with the maintenance message while the window is active.

    Administrators pass through so they can keep working on the site.
    """

    if user is not None and user.is_admin:
        return
    maintenance = get_maintenance_status(session)
    if maintenance.under_maintenance:
        LOGGER.info("request blocked by maintenance window")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=maintenance.message or get_settings().default_maintenance_message,
        )


__all__ = ["require_site_available"]
