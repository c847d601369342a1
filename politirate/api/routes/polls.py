"""Poll participation endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.api.routes.auth import AuthenticatedUser, get_current_user, get_optional_user
from politirate.db.session import TransactionConflictError
from politirate.schemas import (
    PollParticipationRead,
    PollRead,
    PollResponseCreate,
    PollResponseRead,
    PollSummaryRead,
)
from politirate.services.polls import (
    DuplicateVoteError,
    PollClosedError,
    PollNotFoundError,
    PollValidationError,
    get_active_polls_for_user,
    get_poll_for_participation,
    submit_poll_response,
)
from politirate.services.users import UserNotFoundError

router = APIRouter(prefix="/polls")


@router.get("", response_model=list[PollSummaryRead], summary="Polls open for voting")
def active_polls(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> list[PollSummaryRead]:
    user_id = user.user_id if user is not None else None
    return [PollSummaryRead.model_validate(poll) for poll in get_active_polls_for_user(session, user_id)]


@router.get("/{poll_id}", response_model=PollParticipationRead)
def poll_for_participation(
    poll_id: str,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser | None = Depends(get_optional_user),
) -> PollParticipationRead:
    try:
        participation = get_poll_for_participation(session, poll_id, user.user_id if user else None)
    except PollNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PollParticipationRead(
        poll=PollRead.model_validate(participation.poll),
        user_has_voted=participation.user_has_voted,
        is_open=participation.is_open,
    )


@router.post("/{poll_id}/responses", response_model=PollResponseRead, status_code=status.HTTP_201_CREATED)
def vote(
    poll_id: str,
    payload: PollResponseCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> PollResponseRead:
    """Record the caller's answers; a second vote in the same poll is a conflict."""

    answers = [(answer.question_id, answer.option_id) for answer in payload.answers]
    try:
        response = submit_poll_response(session, poll_id=poll_id, user_id=user.user_id, answers=answers)
    except (PollNotFoundError, UserNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DuplicateVoteError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PollClosedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PollValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except TransactionConflictError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Please try again") from exc

    return PollResponseRead(response_id=response.id, poll_id=poll_id, answers=len(answers))


__all__ = ["router"]
