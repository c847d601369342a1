"""Public notification banner endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.schemas import NotificationRead
from politirate.services.notifications import get_active_notifications

router = APIRouter(prefix="/notifications")


@router.get("/active", response_model=list[NotificationRead], summary="Banners to display now")
def active_notifications(session: Session = Depends(get_db_session)) -> list[NotificationRead]:
    return [NotificationRead.model_validate(item) for item in get_active_notifications(session)]


__all__ = ["router"]
