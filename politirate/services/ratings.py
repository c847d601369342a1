"""Leader rating aggregation.

Each (user, leader) pair owns at most one rating row. Submitting again
overwrites that row in place. After every write the leader's ``rating`` and
``review_count`` are recomputed from scratch over the current rows inside the
same transaction, so the aggregate is always the plain mean and count of what
is stored and never depends on tracking deltas across overwrites.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, joinedload

from politirate.core.clock import utcnow
from politirate.db.session import run_serializable
from politirate.models import Leader, Rating, User
from politirate.models.base import new_id
from politirate.obs import RATING_SUBMISSION_COUNTER, service_span
from politirate.services.leaders import LeaderNotFoundError
from politirate.services.users import UserNotFoundError

LOGGER = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class RatingError(RuntimeError):
    """Base exception for rating service errors."""


class RatingValidationError(RatingError):
    """Raised when a submission is incomplete or out of range."""


class RatingNotFoundError(RatingError):
    """Raised when deleting a rating that does not exist."""


@dataclass(slots=True, frozen=True)
class LeaderAggregate:
    rating: float
    review_count: int


@dataclass(slots=True, frozen=True)
class RatingBucket:
    rating: int
    count: int


@dataclass(slots=True, frozen=True)
class BehaviourBucket:
    name: str
    count: int


def validate_rating_submission(rating: object, comment: str | None, social_behaviour: str | None) -> None:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise RatingValidationError("Rating must be a whole number between 1 and 5")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise RatingValidationError("Rating must be a whole number between 1 and 5")
    if comment is None or not comment.strip():
        raise RatingValidationError("A comment is required")
    if social_behaviour is None or not social_behaviour.strip():
        raise RatingValidationError("A social behaviour selection is required")


def compute_leader_aggregate(session: Session, leader_id: str) -> LeaderAggregate:
    """Mean and count over every current rating row of the leader."""

    average, count = session.execute(
        select(func.avg(Rating.rating), func.count(Rating.id)).where(Rating.leader_id == leader_id)
    ).one()
    return LeaderAggregate(rating=float(average or 0.0), review_count=int(count or 0))


def _recompute_leader_aggregate(session: Session, leader: Leader) -> LeaderAggregate:
    aggregate = compute_leader_aggregate(session, leader.id)
    leader.rating = aggregate.rating
    leader.review_count = aggregate.review_count
    session.flush()
    return aggregate


def _upsert_rating(
    session: Session,
    *,
    leader_id: str,
    user_id: str,
    user_name: str,
    rating: int,
    comment: str,
    social_behaviour: str,
) -> None:
    now = utcnow()
    dialect = session.get_bind().dialect.name
    insert = _UPSERT_INSERTS.get(dialect)

    if insert is None:
        # Generic path: the enclosing serializable transaction keeps this safe.
        existing = session.scalars(
            select(Rating).where(Rating.user_id == user_id, Rating.leader_id == leader_id)
        ).one_or_none()
        if existing is None:
            existing = Rating(id=new_id(), user_id=user_id, leader_id=leader_id, created_at=now)
            session.add(existing)
        existing.user_name = user_name
        existing.rating = rating
        existing.comment = comment
        existing.social_behaviour = social_behaviour
        existing.updated_at = now
        session.flush()
        return

    statement = insert(Rating).values(
        id=new_id(),
        user_id=user_id,
        leader_id=leader_id,
        user_name=user_name,
        rating=rating,
        comment=comment,
        social_behaviour=social_behaviour,
        created_at=now,
        updated_at=now,
    )
    statement = statement.on_conflict_do_update(
        index_elements=["user_id", "leader_id"],
        set_={
            "user_name": statement.excluded.user_name,
            "rating": statement.excluded.rating,
            "comment": statement.excluded.comment,
            "social_behaviour": statement.excluded.social_behaviour,
            "updated_at": statement.excluded.updated_at,
        },
    )
    session.execute(statement)


def submit_rating_and_comment(
    session: Session,
    *,
    leader_id: str,
    user_id: str,
    rating: int,
    comment: str,
    social_behaviour: str,
) -> Leader:
    """Record (or overwrite) a user's rating of a leader and return the leader.

    Validation happens before anything is written. The upsert and the
    aggregate recomputation commit together or not at all.
    """

    validate_rating_submission(rating, comment, social_behaviour)

    user = session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(f"User '{user_id}' was not found")
    leader = session.get(Leader, leader_id)
    if leader is None:
        raise LeaderNotFoundError(f"Leader '{leader_id}' was not found")
    user_name = user.name or "Anonymous"

    with service_span("ratings.submit", leader_id=leader_id, user_id=user_id):

        def write() -> tuple[bool, LeaderAggregate]:
            already_rated = session.scalar(
                select(Rating.id).where(Rating.user_id == user_id, Rating.leader_id == leader_id)
            )
            _upsert_rating(
                session,
                leader_id=leader_id,
                user_id=user_id,
                user_name=user_name,
                rating=rating,
                comment=comment.strip(),
                social_behaviour=social_behaviour.strip(),
            )
            return already_rated is not None, _recompute_leader_aggregate(session, leader)

        already_rated, aggregate = run_serializable(session, write)

    session.refresh(leader)
    outcome = "updated" if already_rated else "created"
    RATING_SUBMISSION_COUNTER.labels(outcome=outcome).inc()
    LOGGER.info(
        "rating %s",
        outcome,
        extra={
            "leader_id": leader_id,
            "user_id": user_id,
            "leader_rating": aggregate.rating,
            "review_count": aggregate.review_count,
        },
    )
    return leader


def delete_rating(session: Session, *, user_id: str, leader_id: str) -> Leader:
    """Remove a rating (moderation) and recompute the leader aggregate."""

    leader = session.get(Leader, leader_id)
    if leader is None:
        raise LeaderNotFoundError(f"Leader '{leader_id}' was not found")

    def remove() -> None:
        result = session.execute(
            delete(Rating).where(Rating.user_id == user_id, Rating.leader_id == leader_id)
        )
        if not result.rowcount:
            raise RatingNotFoundError(f"No rating by user '{user_id}' for leader '{leader_id}'")
        _recompute_leader_aggregate(session, leader)

    run_serializable(session, remove)

    session.refresh(leader)
    LOGGER.info("rating deleted", extra={"leader_id": leader_id, "user_id": user_id})
    return leader


def get_reviews_for_leader(session: Session, leader_id: str) -> list[Rating]:
    statement = select(Rating).where(Rating.leader_id == leader_id).order_by(Rating.updated_at.desc())
    return list(session.scalars(statement).all())


def get_rating_distribution(session: Session, leader_id: str) -> list[RatingBucket]:
    """Rating counts for every star value, zero-filled."""

    rows = session.execute(
        select(Rating.rating, func.count(Rating.id))
        .where(Rating.leader_id == leader_id)
        .group_by(Rating.rating)
    ).all()
    counts = {int(value): int(count) for value, count in rows}
    return [RatingBucket(rating=value, count=counts.get(value, 0)) for value in range(MIN_RATING, MAX_RATING + 1)]


def format_behaviour_name(tag: str) -> str:
    """``very-helpful`` -> ``Very helpful``."""

    label = tag.replace("-", " ").strip()
    return label[:1].upper() + label[1:]


def get_social_behaviour_distribution(session: Session, leader_id: str) -> list[BehaviourBucket]:
    rows = session.execute(
        select(Rating.social_behaviour, func.count(Rating.id))
        .where(Rating.leader_id == leader_id, Rating.social_behaviour.is_not(None))
        .group_by(Rating.social_behaviour)
        .order_by(func.count(Rating.id).desc(), Rating.social_behaviour)
    ).all()
    return [BehaviourBucket(name=format_behaviour_name(tag), count=int(count)) for tag, count in rows]


def get_activities_for_user(session: Session, user_id: str) -> list[Rating]:
    statement = (
        select(Rating)
        .options(joinedload(Rating.leader))
        .where(Rating.user_id == user_id)
        .order_by(Rating.updated_at.desc())
    )
    return list(session.scalars(statement).all())


def get_all_activities(session: Session) -> list[Rating]:
    statement = select(Rating).options(joinedload(Rating.leader)).order_by(Rating.updated_at.desc())
    return list(session.scalars(statement).all())


__all__ = [
    "BehaviourBucket",
    "LeaderAggregate",
    "MAX_RATING",
    "MIN_RATING",
    "RatingBucket",
    "RatingError",
    "RatingNotFoundError",
    "RatingValidationError",
    "compute_leader_aggregate",
    "delete_rating",
    "format_behaviour_name",
    "get_activities_for_user",
    "get_all_activities",
    "get_rating_distribution",
    "get_reviews_for_leader",
    "get_social_behaviour_distribution",
    "submit_rating_and_comment",
    "validate_rating_submission",
]
