"""Public leader, rating and review endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.api.routes.auth import AuthenticatedUser, get_current_user
from politirate.db.session import TransactionConflictError
from politirate.models import Rating
from politirate.schemas import (
    ActivityRead,
    BehaviourBucketRead,
    LeaderCreate,
    LeaderRead,
    LeaderUpdate,
    RatingBucketRead,
    RatingSubmission,
    RatingSubmissionResponse,
    ReviewRead,
)
from politirate.services.leaders import (
    LeaderNotFoundError,
    LeaderPermissionError,
    LeaderValidationError,
    add_leader,
    get_leader_by_id,
    get_leaders,
    get_leaders_added_by_user,
    update_leader,
)
from politirate.services.ratings import (
    RatingValidationError,
    get_activities_for_user,
    get_rating_distribution,
    get_reviews_for_leader,
    get_social_behaviour_distribution,
    submit_rating_and_comment,
)
from politirate.services.users import UserNotFoundError

router = APIRouter()


def activity_read(rating: Rating) -> ActivityRead:
    return ActivityRead(
        **ReviewRead.model_validate(rating).model_dump(),
        leader_name=rating.leader.name,
        leader_party=rating.leader.party_name,
    )


def _leader_or_404(session: Session, leader_id: str):
    try:
        return get_leader_by_id(session, leader_id)
    except LeaderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.get("/leaders", response_model=list[LeaderRead], summary="Approved leaders")
def list_leaders(session: Session = Depends(get_db_session)) -> list[LeaderRead]:
    return [LeaderRead.model_validate(leader) for leader in get_leaders(session)]


@router.post("/leaders", response_model=LeaderRead, status_code=status.HTTP_201_CREATED)
def submit_leader(
    payload: LeaderCreate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> LeaderRead:
    """Submit a leader profile for moderation."""

    leader = add_leader(session, payload.model_dump(), user_id=user.user_id)
    return LeaderRead.model_validate(leader)


@router.get("/leaders/mine", response_model=list[LeaderRead], summary="Leaders submitted by the caller")
def my_leaders(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[LeaderRead]:
    return [LeaderRead.model_validate(leader) for leader in get_leaders_added_by_user(session, user.user_id)]


@router.get("/leaders/{leader_id}", response_model=LeaderRead)
def read_leader(leader_id: str, session: Session = Depends(get_db_session)) -> LeaderRead:
    return LeaderRead.model_validate(_leader_or_404(session, leader_id))


@router.patch("/leaders/{leader_id}", response_model=LeaderRead)
def edit_leader(
    leader_id: str,
    payload: LeaderUpdate,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> LeaderRead:
    try:
        leader = update_leader(
            session,
            leader_id,
            payload.model_dump(exclude_unset=True),
            user_id=user.user_id,
            is_admin=user.is_admin,
        )
    except LeaderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except LeaderPermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except LeaderValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return LeaderRead.model_validate(leader)


@router.post("/leaders/{leader_id}/ratings", response_model=RatingSubmissionResponse)
def rate_leader(
    leader_id: str,
    payload: RatingSubmission,
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> RatingSubmissionResponse:
    """Create or overwrite the caller's rating and return the refreshed leader."""

    try:
        leader = submit_rating_and_comment(
            session,
            leader_id=leader_id,
            user_id=user.user_id,
            rating=payload.rating,
            comment=payload.comment,
            social_behaviour=payload.social_behaviour,
        )
    except RatingValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except (LeaderNotFoundError, UserNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except TransactionConflictError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Please try again") from exc
    return RatingSubmissionResponse(leader=LeaderRead.model_validate(leader))


@router.get("/leaders/{leader_id}/reviews", response_model=list[ReviewRead])
def leader_reviews(leader_id: str, session: Session = Depends(get_db_session)) -> list[ReviewRead]:
    _leader_or_404(session, leader_id)
    return [ReviewRead.model_validate(review) for review in get_reviews_for_leader(session, leader_id)]


@router.get("/leaders/{leader_id}/rating-distribution", response_model=list[RatingBucketRead])
def leader_rating_distribution(leader_id: str, session: Session = Depends(get_db_session)) -> list[RatingBucketRead]:
    _leader_or_404(session, leader_id)
    return [RatingBucketRead.model_validate(bucket) for bucket in get_rating_distribution(session, leader_id)]


@router.get("/leaders/{leader_id}/behaviour-distribution", response_model=list[BehaviourBucketRead])
def leader_behaviour_distribution(
    leader_id: str, session: Session = Depends(get_db_session)
) -> list[BehaviourBucketRead]:
    _leader_or_404(session, leader_id)
    return [
        BehaviourBucketRead.model_validate(bucket)
        for bucket in get_social_behaviour_distribution(session, leader_id)
    ]


@router.get("/activities/mine", response_model=list[ActivityRead], summary="The caller's ratings")
def my_activities(
    session: Session = Depends(get_db_session),
    user: AuthenticatedUser = Depends(get_current_user),
) -> list[ActivityRead]:
    return [activity_read(rating) for rating in get_activities_for_user(session, user.user_id)]


__all__ = ["activity_read", "router"]
