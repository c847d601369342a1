"""Leader profiles: submission, moderation and listing."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from politirate.models import Leader, LeaderStatus, Rating

LOGGER = logging.getLogger(__name__)

PENDING_REAPPROVAL_COMMENT = "User updated details. Pending re-approval."
APPROVED_COMMENT = "Approved by admin."

_PROFILE_FIELDS = frozenset(
    {
        "name",
        "party_name",
        "gender",
        "age",
        "photo_url",
        "constituency",
        "native_address",
        "election_type",
        "location",
        "previous_elections",
        "manifesto_url",
        "twitter_url",
    }
)
_REQUIRED_FIELDS = frozenset(
    {"name", "party_name", "gender", "age", "constituency", "election_type", "location", "previous_elections"}
)


class LeaderError(RuntimeError):
    """Base exception for leader service errors."""


class LeaderNotFoundError(LeaderError):
    """Raised when a leader identifier does not exist."""


class LeaderPermissionError(LeaderError):
    """Raised when a user edits a leader they did not submit."""


class LeaderValidationError(LeaderError):
    """Raised when an edit would clear a required profile field."""


@dataclass(slots=True, frozen=True)
class LeaderFilters:
    date_from: datetime | None = None
    date_to: datetime | None = None
    state: str | None = None
    constituency: str | None = None
    candidate_name: str | None = None


def _apply_filters(statement: Select, filters: LeaderFilters) -> Select:
    if filters.date_from is not None:
        statement = statement.where(Leader.created_at >= filters.date_from)
    if filters.date_to is not None:
        statement = statement.where(Leader.created_at <= filters.date_to)
    if filters.state:
        statement = statement.where(Leader.location["state"].as_string() == filters.state)
    if filters.constituency:
        statement = statement.where(Leader.constituency.ilike(f"%{filters.constituency}%"))
    if filters.candidate_name:
        statement = statement.where(Leader.name.ilike(f"%{filters.candidate_name}%"))
    return statement


def _profile_changes(changes: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in changes.items() if key in _PROFILE_FIELDS}


def add_leader(session: Session, data: dict[str, Any], *, user_id: str | None) -> Leader:
    """Submit a new leader; it stays hidden until an admin approves it."""

    leader = Leader(
        **_profile_changes(data),
        added_by_user_id=user_id,
        status=LeaderStatus.PENDING,
        rating=0.0,
        review_count=0,
    )
    session.add(leader)
    session.commit()
    session.refresh(leader)
    LOGGER.info("leader submitted", extra={"leader_id": leader.id, "user_id": user_id})
    return leader


def get_leaders(session: Session) -> list[Leader]:
    """Approved leaders for the public listing; empty on storage failure."""

    try:
        statement = select(Leader).where(Leader.status == LeaderStatus.APPROVED).order_by(Leader.name)
        return list(session.scalars(statement).all())
    except SQLAlchemyError:
        session.rollback()
        LOGGER.exception("could not fetch leaders for listing")
        return []


def get_leader_by_id(session: Session, leader_id: str) -> Leader:
    leader = session.get(Leader, leader_id)
    if leader is None:
        raise LeaderNotFoundError(f"Leader '{leader_id}' was not found")
    return leader


def update_leader(
    session: Session,
    leader_id: str,
    changes: dict[str, Any],
    *,
    user_id: str | None,
    is_admin: bool,
) -> Leader:
    """Edit a leader profile.

    Only the submitting user or an admin may edit. A non-admin edit sends the
    leader back to moderation. Aggregate rating fields are never editable here.
    """

    leader = get_leader_by_id(session, leader_id)
    if not is_admin and leader.added_by_user_id != user_id:
        raise LeaderPermissionError("You are not authorized to edit this leader")

    profile = _profile_changes(changes)
    cleared = sorted(name for name in _REQUIRED_FIELDS.intersection(profile) if profile[name] is None)
    if cleared:
        raise LeaderValidationError(f"These fields cannot be cleared: {', '.join(cleared)}")

    for field_name, value in profile.items():
        setattr(leader, field_name, value)
    if not is_admin:
        leader.status = LeaderStatus.PENDING
        leader.admin_comment = PENDING_REAPPROVAL_COMMENT

    session.commit()
    session.refresh(leader)
    return leader


def get_leaders_added_by_user(session: Session, user_id: str) -> list[Leader]:
    statement = select(Leader).where(Leader.added_by_user_id == user_id).order_by(Leader.name)
    return list(session.scalars(statement).all())


def get_leaders_for_admin_panel(session: Session, filters: LeaderFilters | None = None) -> list[Leader]:
    statement = select(Leader).options(selectinload(Leader.added_by))
    statement = _apply_filters(statement, filters or LeaderFilters())
    return list(session.scalars(statement.order_by(Leader.created_at.desc())).all())


def update_leader_status(
    session: Session, leader_id: str, status: LeaderStatus, admin_comment: str | None
) -> Leader:
    leader = get_leader_by_id(session, leader_id)
    leader.status = status
    leader.admin_comment = admin_comment
    session.commit()
    session.refresh(leader)
    LOGGER.info("leader moderated", extra={"leader_id": leader_id, "status": status.value})
    return leader


def approve_leader(session: Session, leader_id: str) -> Leader:
    return update_leader_status(session, leader_id, LeaderStatus.APPROVED, APPROVED_COMMENT)


def delete_leader(session: Session, leader_id: str) -> None:
    leader = get_leader_by_id(session, leader_id)
    session.delete(leader)
    session.commit()
    LOGGER.info("leader deleted", extra={"leader_id": leader_id})


def get_leader_count(session: Session, filters: LeaderFilters | None = None) -> int:
    statement = _apply_filters(select(func.count(Leader.id)), filters or LeaderFilters())
    return int(session.scalar(statement) or 0)


def get_rating_count(session: Session, filters: LeaderFilters | None = None) -> int:
    """Count ratings, filtered by rating date and the rated leader's location."""

    filters = filters or LeaderFilters()
    statement = select(func.count(Rating.id)).join(Leader, Rating.leader_id == Leader.id)
    if filters.date_from is not None:
        statement = statement.where(Rating.created_at >= filters.date_from)
    if filters.date_to is not None:
        statement = statement.where(Rating.created_at <= filters.date_to)
    if filters.state:
        statement = statement.where(Leader.location["state"].as_string() == filters.state)
    if filters.constituency:
        statement = statement.where(Leader.constituency.ilike(f"%{filters.constituency}%"))
    return int(session.scalar(statement) or 0)


__all__ = [
    "APPROVED_COMMENT",
    "LeaderError",
    "LeaderFilters",
    "LeaderNotFoundError",
    "LeaderPermissionError",
    "LeaderValidationError",
    "PENDING_REAPPROVAL_COMMENT",
    "add_leader",
    "approve_leader",
    "delete_leader",
    "get_leader_by_id",
    "get_leader_count",
    "get_leaders",
    "get_leaders_added_by_user",
    "get_leaders_for_admin_panel",
    "get_rating_count",
    "update_leader",
    "update_leader_status",
]
