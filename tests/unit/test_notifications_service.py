from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from politirate.models import PollQuestionType
from politirate.services.notifications import (
    NotificationNotFoundError,
    NotificationValidationError,
    add_notification,
    delete_notification,
    get_active_notifications,
    get_notifications,
    update_notification,
)
from politirate.services.polls import PollDraft, QuestionDraft, delete_poll, upsert_poll

NOW = datetime(2026, 7, 1, 8, 0, tzinfo=timezone.utc)
DAY = timedelta(days=1)


def test_active_banners_respect_window_and_flag(db_session: Session) -> None:
    add_notification(db_session, {"message": "Always on"})
    add_notification(db_session, {"message": "Running", "start_time": NOW - DAY, "end_time": NOW + DAY})
    add_notification(db_session, {"message": "Future", "start_time": NOW + DAY})
    add_notification(db_session, {"message": "Expired", "end_time": NOW - DAY})
    add_notification(db_session, {"message": "Switched off", "is_active": False})

    active = get_active_notifications(db_session, now=NOW)

    assert sorted(item.message for item in active) == ["Always on", "Running"]


def test_active_banners_degrade_to_empty(db_session: Session, monkeypatch: pytest.MonkeyPatch) -> None:
    add_notification(db_session, {"message": "Always on"})

    def _broken(*args, **kwargs):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(db_session, "scalars", _broken)

    assert get_active_notifications(db_session, now=NOW) == []


def test_validation_and_crud(db_session: Session) -> None:
    with pytest.raises(NotificationValidationError):
        add_notification(db_session, {"message": "   "})
    with pytest.raises(NotificationValidationError):
        add_notification(db_session, {"message": "Vote", "poll_id": "missing"})

    banner = add_notification(db_session, {"message": "Hello", "link": "/polls", "unknown": 1})
    updated = update_notification(db_session, banner.id, {"message": "Hello again", "is_active": False})

    assert updated.message == "Hello again"
    assert updated.is_active is False
    assert [item.id for item in get_notifications(db_session)] == [banner.id]

    delete_notification(db_session, banner.id)
    with pytest.raises(NotificationNotFoundError):
        delete_notification(db_session, banner.id)


def test_banner_may_promote_a_poll(db_session: Session) -> None:
    poll = upsert_poll(
        db_session,
        PollDraft(title="Promoted", questions=(QuestionDraft(text="Q?", question_type=PollQuestionType.YES_NO),)),
    )

    banner = add_notification(db_session, {"message": "Take the poll", "poll_id": poll.id})

    assert banner.poll_id == poll.id
    assert banner.poll.title == "Promoted"

    delete_poll(db_session, poll.id)
    db_session.refresh(banner)
    assert banner.poll_id is None


def test_inverted_window_is_rejected_on_create(db_session: Session) -> None:
    with pytest.raises(NotificationValidationError, match="end before it starts"):
        add_notification(db_session, {"message": "Backwards", "start_time": NOW + 2 * DAY, "end_time": NOW})

    assert get_notifications(db_session) == []


def test_update_window_is_checked_against_stored_bounds(db_session: Session) -> None:
    banner = add_notification(db_session, {"message": "Week", "start_time": NOW, "end_time": NOW + 7 * DAY})

    with pytest.raises(NotificationValidationError):
        update_notification(db_session, banner.id, {"end_time": NOW - DAY})
    with pytest.raises(NotificationValidationError):
        update_notification(db_session, banner.id, {"start_time": NOW + 8 * DAY})

    moved = update_notification(db_session, banner.id, {"start_time": NOW + 8 * DAY, "end_time": NOW + 9 * DAY})
    assert moved.start_time.replace(tzinfo=timezone.utc) == NOW + 8 * DAY

    open_ended = update_notification(db_session, banner.id, {"end_time": None})
    assert open_ended.end_time is None


def test_null_active_flag_is_rejected(db_session: Session) -> None:
    banner = add_notification(db_session, {"message": "Flag"})

    with pytest.raises(NotificationValidationError):
        update_notification(db_session, banner.id, {"is_active": None})

    db_session.refresh(banner)
    assert banner.is_active is True
