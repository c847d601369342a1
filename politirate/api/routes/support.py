"""Contact form endpoint."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.api.routes.auth import AuthenticatedUser, get_optional_user
from politirate.schemas import SupportTicketCreate, SupportTicketRead
from politirate.services.support import SupportTicketValidationError, create_support_ticket
from politirate.services.users import UserNotFoundError, get_user

router = APIRouter(prefix="/support")


@router.post("/tickets", response_model=SupportTicketRead, status_code=status.HTTP_201_CREATED)
def file_ticket(
    payload: SupportTicketCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> SupportTicketRead:
    user_name, user_email = payload.user_name, payload.user_email
    user_id = None
    if user is not None:
        try:
            account = get_user(session, user.user_id)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        user_id = account.id
        user_name = user_name or account.name
        user_email = user_email or account.email

    try:
        ticket = create_support_ticket(
            session,
            user_id=user_id,
            user_name=user_name or "",
            user_email=user_email or "",
            subject=payload.subject,
            message=payload.message,
        )
    except SupportTicketValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return SupportTicketRead.model_validate(ticket)


__all__ = ["router"]
