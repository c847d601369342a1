from __future__ import annotations

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import TextClause

from politirate.db.session import TransactionConflictError
from politirate.models import Leader, Rating, User
from politirate.services import ratings as ratings_service
from politirate.services.leaders import LeaderNotFoundError
from politirate.services.ratings import (
    RatingNotFoundError,
    RatingValidationError,
    compute_leader_aggregate,
    delete_rating,
    format_behaviour_name,
    get_activities_for_user,
    get_rating_distribution,
    get_reviews_for_leader,
    get_social_behaviour_distribution,
    submit_rating_and_comment,
)


def _rate(session: Session, leader: Leader, user: User, stars: int, behaviour: str = "helpful") -> Leader:
    return submit_rating_and_comment(
        session,
        leader_id=leader.id,
        user_id=user.id,
        rating=stars,
        comment=f"{stars} stars from {user.name}",
        social_behaviour=behaviour,
    )


def _rating_rows(session: Session, leader_id: str) -> int:
    return session.scalar(select(func.count(Rating.id)).where(Rating.leader_id == leader_id))


def test_aggregate_follows_submit_and_resubmit_sequence(db_session: Session, leader, user_factory) -> None:
    alice = user_factory("alice@example.com", name="Alice")
    bob = user_factory("bob@example.com", name="Bob")

    aggregate = compute_leader_aggregate(db_session, leader.id)
    assert (aggregate.rating, aggregate.review_count) == (0.0, 0)

    updated = _rate(db_session, leader, alice, 5)
    assert (updated.rating, updated.review_count) == (5.0, 1)

    updated = _rate(db_session, leader, bob, 3)
    assert (updated.rating, updated.review_count) == (4.0, 2)

    updated = _rate(db_session, leader, alice, 1)
    assert (updated.rating, updated.review_count) == (2.0, 2)
    assert _rating_rows(db_session, leader.id) == 2


def test_resubmission_overwrites_the_existing_row(db_session: Session, leader, citizen) -> None:
    _rate(db_session, leader, citizen, 2, behaviour="rude")
    updated = submit_rating_and_comment(
        db_session,
        leader_id=leader.id,
        user_id=citizen.id,
        rating=4,
        comment="  Much better this year  ",
        social_behaviour="helpful",
    )

    assert updated.review_count == 1
    review = get_reviews_for_leader(db_session, leader.id)[0]
    assert review.rating == 4
    assert review.comment == "Much better this year"
    assert review.social_behaviour == "helpful"
    assert review.user_name == "Citizen A"


@pytest.mark.parametrize(
    ("stars", "comment", "behaviour"),
    [
        (0, "fine", "helpful"),
        (6, "fine", "helpful"),
        (True, "fine", "helpful"),
        (3.5, "fine", "helpful"),
        (3, "   ", "helpful"),
        (3, "fine", ""),
    ],
)
def test_invalid_submission_writes_nothing(db_session: Session, leader, citizen, stars, comment, behaviour) -> None:
    with pytest.raises(RatingValidationError):
        submit_rating_and_comment(
            db_session,
            leader_id=leader.id,
            user_id=citizen.id,
            rating=stars,
            comment=comment,
            social_behaviour=behaviour,
        )

    assert _rating_rows(db_session, leader.id) == 0
    db_session.refresh(leader)
    assert (leader.rating, leader.review_count) == (0.0, 0)


def test_unknown_leader_is_rejected(db_session: Session, citizen) -> None:
    with pytest.raises(LeaderNotFoundError):
        submit_rating_and_comment(
            db_session,
            leader_id="missing",
            user_id=citizen.id,
            rating=3,
            comment="ok",
            social_behaviour="helpful",
        )


def test_submission_runs_in_serializable_transaction(db_session: Session, leader, citizen, monkeypatch) -> None:
    statements: list[str] = []
    original_execute = Session.execute

    def tracking_execute(self: Session, statement, *args, **kwargs):
        if isinstance(statement, TextClause):
            statements.append(str(statement))
        return original_execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(Session, "execute", tracking_execute)

    _rate(db_session, leader, citizen, 4)

    assert any("BEGIN IMMEDIATE" in statement for statement in statements)


def test_submission_counter_distinguishes_new_and_updated_rows(db_session: Session, leader, citizen) -> None:
    def sample(outcome: str) -> float:
        return REGISTRY.get_sample_value("leader_rating_submissions_total", {"outcome": outcome}) or 0.0

    created_before, updated_before = sample("created"), sample("updated")

    _rate(db_session, leader, citizen, 4)
    _rate(db_session, leader, citizen, 2)

    assert sample("created") == created_before + 1
    assert sample("updated") == updated_before + 1


def test_delete_rating_recomputes_aggregate(db_session: Session, leader, user_factory) -> None:
    alice = user_factory("alice@example.com", name="Alice")
    bob = user_factory("bob@example.com", name="Bob")
    _rate(db_session, leader, alice, 5)
    _rate(db_session, leader, bob, 2)

    updated = delete_rating(db_session, user_id=alice.id, leader_id=leader.id)

    assert (updated.rating, updated.review_count) == (2.0, 1)
    with pytest.raises(RatingNotFoundError):
        delete_rating(db_session, user_id=alice.id, leader_id=leader.id)


def test_distributions_are_zero_filled_and_labelled(db_session: Session, leader, user_factory) -> None:
    voters = [user_factory(f"voter{index}@example.com") for index in range(3)]
    _rate(db_session, leader, voters[0], 5, behaviour="very-helpful")
    _rate(db_session, leader, voters[1], 5, behaviour="very-helpful")
    _rate(db_session, leader, voters[2], 1, behaviour="rude")

    distribution = get_rating_distribution(db_session, leader.id)
    assert [(bucket.rating, bucket.count) for bucket in distribution] == [(1, 1), (2, 0), (3, 0), (4, 0), (5, 2)]

    behaviours = get_social_behaviour_distribution(db_session, leader.id)
    assert [(bucket.name, bucket.count) for bucket in behaviours] == [("Very helpful", 2), ("Rude", 1)]


def test_format_behaviour_name() -> None:
    assert format_behaviour_name("very-helpful") == "Very helpful"
    assert format_behaviour_name("rude") == "Rude"


def test_activities_include_the_rated_leader(db_session: Session, leader, citizen) -> None:
    _rate(db_session, leader, citizen, 3)

    activities = get_activities_for_user(db_session, citizen.id)

    assert len(activities) == 1
    assert activities[0].leader.name == leader.name


class _SerializationFailure(Exception):
    sqlstate = "40001"


def _serialization_error() -> OperationalError:
    return OperationalError("INSERT INTO ratings ...", {}, _SerializationFailure("could not serialize access"))


def test_failed_recompute_leaves_no_partial_rating(db_session: Session, leader, user_factory, monkeypatch) -> None:
    alice = user_factory("alice@example.com", name="Alice")
    bob = user_factory("bob@example.com", name="Bob")
    _rate(db_session, leader, alice, 5)

    def broken_recompute(session: Session, target: Leader):
        raise RuntimeError("aggregate query failed")

    monkeypatch.setattr(ratings_service, "_recompute_leader_aggregate", broken_recompute)

    with pytest.raises(RuntimeError, match="aggregate query failed"):
        _rate(db_session, leader, bob, 1)

    assert _rating_rows(db_session, leader.id) == 1
    db_session.refresh(leader)
    assert (leader.rating, leader.review_count) == (5.0, 1)


def test_serialization_failure_is_retried(db_session: Session, leader, citizen, monkeypatch) -> None:
    original_upsert = ratings_service._upsert_rating
    calls: list[int] = []

    def flaky_upsert(session: Session, **kwargs) -> None:
        calls.append(1)
        if len(calls) == 1:
            raise _serialization_error()
        original_upsert(session, **kwargs)

    monkeypatch.setattr(ratings_service, "_upsert_rating", flaky_upsert)

    updated = _rate(db_session, leader, citizen, 4)

    assert len(calls) == 2
    assert (updated.rating, updated.review_count) == (4.0, 1)
    assert _rating_rows(db_session, leader.id) == 1


def test_persistent_serialization_failure_gives_up(db_session: Session, leader, citizen, monkeypatch) -> None:
    calls: list[int] = []

    def always_conflicting(session: Session, **kwargs) -> None:
        calls.append(1)
        raise _serialization_error()

    monkeypatch.setattr(ratings_service, "_upsert_rating", always_conflicting)

    with pytest.raises(TransactionConflictError):
        _rate(db_session, leader, citizen, 4)

    assert len(calls) == 3
    assert _rating_rows(db_session, leader.id) == 0
    db_session.refresh(leader)
    assert (leader.rating, leader.review_count) == (0.0, 0)


def test_other_database_errors_are_not_retried(db_session: Session, leader, citizen, monkeypatch) -> None:
    calls: list[int] = []

    def disk_full(session: Session, **kwargs) -> None:
        calls.append(1)
        raise OperationalError("INSERT INTO ratings ...", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ratings_service, "_upsert_rating", disk_full)

    with pytest.raises(OperationalError):
        _rate(db_session, leader, citizen, 4)

    assert len(calls) == 1
