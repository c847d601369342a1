"""Health, readiness and public site status endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.core.config import get_settings
from politirate.schemas import ContactDetailsRead, MaintenanceStatusRead
from politirate.services.site_settings import get_maintenance_status, get_site_settings

router = APIRouter()


@router.get("/healthz", summary="Liveness check")
def health_check() -> dict[str, str]:
    settings = get_settings()
    return {"status": "ok", "service": settings.app_name}


@router.get("/readyz", summary="Readiness check")
def readiness_check(session: Session = Depends(get_db_session)) -> dict[str, str]:
    settings = get_settings()
    session.execute(text("SELECT 1"))
    return {"status": "ready", "service": settings.app_name}


@router.get("/site/maintenance", response_model=MaintenanceStatusRead, summary="Current maintenance status")
def maintenance_status(session: Session = Depends(get_db_session)) -> MaintenanceStatusRead:
    return MaintenanceStatusRead.model_validate(get_maintenance_status(session))


@router.get("/site/contact", response_model=ContactDetailsRead, summary="Public contact details")
def contact_details(session: Session = Depends(get_db_session)) -> ContactDetailsRead:
    return ContactDetailsRead.model_validate(get_site_settings(session))
