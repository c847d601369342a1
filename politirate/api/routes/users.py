"""Profile endpoints for the signed-in user."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.api.routes.auth import AuthenticatedUser, get_current_user
from politirate.schemas import UserProfileUpdate, UserRead
from politirate.services.users import UserNotFoundError, get_user, update_user_profile

router = APIRouter(prefix="/profile")


@router.get("", response_model=UserRead)
def read_profile(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> UserRead:
    try:
        return UserRead.model_validate(get_user(session, user.user_id))
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.patch("", response_model=UserRead)
def edit_profile(
    payload: UserProfileUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> UserRead:
    try:
        account = update_user_profile(session, user.user_id, payload.model_dump(exclude_unset=True))
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return UserRead.model_validate(account)


__all__ = ["router"]
