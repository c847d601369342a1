"""Administrator endpoints: moderation, polls, tickets, banners and settings."""
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from politirate.api.deps import get_db_session
from politirate.api.routes.auth import require_role
from politirate.api.routes.leaders import activity_read
from politirate.core.config import get_settings
from politirate.models import TicketStatus
from politirate.schemas import (
    ActivityRead,
    CountResponse,
    LeaderAdminRead,
    LeaderRead,
    LeaderStatusUpdate,
    NotificationCreate,
    NotificationRead,
    NotificationUpdate,
    PollRead,
    PollResultsRead,
    PollSummaryRead,
    PollUpsertRequest,
    SiteSettingsRead,
    SiteSettingsUpdate,
    SupportTicketRead,
    SupportTicketStatsRead,
    SupportTicketStatusUpdate,
    UserRead,
)
from politirate.services.leaders import (
    LeaderFilters,
    LeaderNotFoundError,
    approve_leader,
    delete_leader,
    get_leader_count,
    get_leaders_for_admin_panel,
    get_rating_count,
    update_leader_status,
)
from politirate.services.notifications import (
    NotificationNotFoundError,
    NotificationValidationError,
    add_notification,
    delete_notification,
    get_notifications,
    update_notification,
)
from politirate.services.polls import (
    PollNotFoundError,
    PollValidationError,
    delete_poll,
    get_poll_for_edit,
    get_poll_results,
    get_polls_for_admin,
    upsert_poll,
)
from politirate.services.ratings import RatingNotFoundError, delete_rating, get_all_activities
from politirate.services.site_settings import (
    SiteSettingsValidationError,
    get_site_settings,
    update_site_settings,
)
from politirate.services.support import (
    SupportTicketNotFoundError,
    TicketFilters,
    get_support_ticket_stats,
    get_support_tickets,
    update_ticket_status,
)
from politirate.services.users import get_user_count, list_users

router = APIRouter(prefix="/admin", dependencies=[Depends(require_role("ADMIN"))])


def _leader_filters(
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    state: str | None = Query(default=None, max_length=128),
    constituency: str | None = Query(default=None, max_length=255),
    candidate_name: str | None = Query(default=None, max_length=255),
) -> LeaderFilters:
    return LeaderFilters(
        date_from=date_from,
        date_to=date_to,
        state=state,
        constituency=constituency,
        candidate_name=candidate_name,
    )


# leaders and ratings


@router.get("/leaders", response_model=list[LeaderAdminRead])
def admin_leaders(
    filters: LeaderFilters = Depends(_leader_filters),
    session: Session = Depends(get_db_session),
) -> list[LeaderAdminRead]:
    return [LeaderAdminRead.model_validate(leader) for leader in get_leaders_for_admin_panel(session, filters)]


@router.post("/leaders/{leader_id}/approve", response_model=LeaderRead)
def approve(leader_id: str, session: Session = Depends(get_db_session)) -> LeaderRead:
    try:
        return LeaderRead.model_validate(approve_leader(session, leader_id))
    except LeaderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.put("/leaders/{leader_id}/status", response_model=LeaderRead)
def set_leader_status(
    leader_id: str,
    payload: LeaderStatusUpdate,
    session: Session = Depends(get_db_session),
) -> LeaderRead:
    try:
        leader = update_leader_status(session, leader_id, payload.status, payload.admin_comment)
    except LeaderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return LeaderRead.model_validate(leader)


@router.delete("/leaders/{leader_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_leader(leader_id: str, session: Session = Depends(get_db_session)) -> Response:
    try:
        delete_leader(session, leader_id)
    except LeaderNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/activities", response_model=list[ActivityRead])
def all_activities(session: Session = Depends(get_db_session)) -> list[ActivityRead]:
    return [activity_read(rating) for rating in get_all_activities(session)]


@router.delete("/leaders/{leader_id}/ratings/{user_id}", response_model=LeaderRead)
def remove_rating(leader_id: str, user_id: str, session: Session = Depends(get_db_session)) -> LeaderRead:
    """Delete one user's rating of a leader and return the recomputed leader."""

    try:
        leader = delete_rating(session, user_id=user_id, leader_id=leader_id)
    except (LeaderNotFoundError, RatingNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return LeaderRead.model_validate(leader)


# dashboard


@router.get("/users", response_model=list[UserRead])
def users(session: Session = Depends(get_db_session)) -> list[UserRead]:
    return [UserRead.model_validate(user) for user in list_users(session)]


@router.get("/stats/users", response_model=CountResponse)
def user_count(
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    state: str | None = Query(default=None, max_length=128),
    session: Session = Depends(get_db_session),
) -> CountResponse:
    return CountResponse(count=get_user_count(session, start_date=start_date, end_date=end_date, state=state))


@router.get("/stats/leaders", response_model=CountResponse)
def leader_count(
    filters: LeaderFilters = Depends(_leader_filters),
    session: Session = Depends(get_db_session),
) -> CountResponse:
    return CountResponse(count=get_leader_count(session, filters))


@router.get("/stats/ratings", response_model=CountResponse)
def rating_count(
    filters: LeaderFilters = Depends(_leader_filters),
    session: Session = Depends(get_db_session),
) -> CountResponse:
    return CountResponse(count=get_rating_count(session, filters))


# polls


@router.get("/polls", response_model=list[PollSummaryRead])
def admin_polls(session: Session = Depends(get_db_session)) -> list[PollSummaryRead]:
    return [PollSummaryRead.model_validate(poll) for poll in get_polls_for_admin(session)]


@router.put("/polls", response_model=PollRead)
def save_poll(payload: PollUpsertRequest, session: Session = Depends(get_db_session)) -> PollRead:
    """Create a poll, or reconcile an existing one when ``id`` is given."""

    settings = get_settings()
    try:
        poll = upsert_poll(
            session,
            payload.to_draft(),
            max_questions=settings.max_poll_questions,
            max_options=settings.max_poll_options,
        )
    except PollNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PollValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return PollRead.model_validate(poll)


@router.get("/polls/{poll_id}", response_model=PollRead)
def poll_for_edit(poll_id: str, session: Session = Depends(get_db_session)) -> PollRead:
    try:
        return PollRead.model_validate(get_poll_for_edit(session, poll_id))
    except PollNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.delete("/polls/{poll_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_poll(poll_id: str, session: Session = Depends(get_db_session)) -> Response:
    try:
        delete_poll(session, poll_id)
    except PollNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/polls/{poll_id}/results", response_model=PollResultsRead)
def poll_results(poll_id: str, session: Session = Depends(get_db_session)) -> PollResultsRead:
    try:
        return PollResultsRead.model_validate(get_poll_results(session, poll_id))
    except PollNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


# notifications


@router.get("/notifications", response_model=list[NotificationRead])
def notifications(session: Session = Depends(get_db_session)) -> list[NotificationRead]:
    return [NotificationRead.model_validate(item) for item in get_notifications(session)]


@router.post("/notifications", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
def create_notification(payload: NotificationCreate, session: Session = Depends(get_db_session)) -> NotificationRead:
    try:
        return NotificationRead.model_validate(add_notification(session, payload.model_dump()))
    except NotificationValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.patch("/notifications/{notification_id}", response_model=NotificationRead)
def edit_notification(
    notification_id: str,
    payload: NotificationUpdate,
    session: Session = Depends(get_db_session),
) -> NotificationRead:
    try:
        notification = update_notification(session, notification_id, payload.model_dump(exclude_unset=True))
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except NotificationValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return NotificationRead.model_validate(notification)


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_notification(notification_id: str, session: Session = Depends(get_db_session)) -> Response:
    try:
        delete_notification(session, notification_id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# support tickets


@router.get("/tickets", response_model=list[SupportTicketRead])
def tickets(
    ticket_status: TicketStatus | None = Query(default=None, alias="status"),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    search: str | None = Query(default=None, max_length=255),
    session: Session = Depends(get_db_session),
) -> list[SupportTicketRead]:
    filters = TicketFilters(status=ticket_status, date_from=date_from, date_to=date_to, search=search)
    return [SupportTicketRead.model_validate(ticket) for ticket in get_support_tickets(session, filters)]


@router.get("/tickets/stats", response_model=SupportTicketStatsRead)
def ticket_stats(session: Session = Depends(get_db_session)) -> SupportTicketStatsRead:
    return SupportTicketStatsRead.model_validate(get_support_ticket_stats(session))


@router.put("/tickets/{ticket_id}/status", response_model=SupportTicketRead)
def set_ticket_status(
    ticket_id: str,
    payload: SupportTicketStatusUpdate,
    session: Session = Depends(get_db_session),
) -> SupportTicketRead:
    try:
        ticket = update_ticket_status(session, ticket_id, payload.status, payload.admin_notes)
    except SupportTicketNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return SupportTicketRead.model_validate(ticket)


# site settings


@router.get("/settings", response_model=SiteSettingsRead)
def site_settings(session: Session = Depends(get_db_session)) -> SiteSettingsRead:
    return SiteSettingsRead.model_validate(get_site_settings(session))


@router.patch("/settings", response_model=SiteSettingsRead)
def edit_site_settings(payload: SiteSettingsUpdate, session: Session = Depends(get_db_session)) -> SiteSettingsRead:
    try:
        row = update_site_settings(session, payload.model_dump(exclude_unset=True))
    except SiteSettingsValidationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    return SiteSettingsRead.model_validate(row)


__all__ = ["router"]
