from __future__ import annotations

from datetime import timedelta

import pytest
from prometheus_client import REGISTRY
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from politirate.core.clock import utcnow
from politirate.models import Gender, Notification, Poll, PollAnswer, PollQuestionType, PollResponse
from politirate.models.base import new_id
from politirate.services.polls import (
    DuplicateVoteError,
    IncompletePollResponseError,
    PollClosedError,
    PollDraft,
    PollNotFoundError,
    PollValidationError,
    QuestionDraft,
    OptionDraft,
    delete_poll,
    get_active_polls_for_user,
    get_poll_for_participation,
    get_poll_results,
    get_polls_for_admin,
    is_poll_open,
    submit_poll_response,
    upsert_poll,
)

YES_NO = PollQuestionType.YES_NO
CHOICE = PollQuestionType.MULTIPLE_CHOICE


def _yes_no_poll(session: Session, **overrides) -> Poll:
    draft = PollDraft(
        title=overrides.pop("title", "Bus routes"),
        is_active=overrides.pop("is_active", True),
        questions=(QuestionDraft(text="More bus routes?", question_type=YES_NO),),
        **overrides,
    )
    return upsert_poll(session, draft)


def _two_question_poll(session: Session) -> Poll:
    draft = PollDraft(
        title="City budget",
        is_active=True,
        questions=(
            QuestionDraft(text="Fund parks?", question_type=YES_NO),
            QuestionDraft(
                text="Top priority",
                question_type=CHOICE,
                options=(OptionDraft(text="Roads"), OptionDraft(text="Schools"), OptionDraft(text="Water")),
            ),
        ),
    )
    return upsert_poll(session, draft)


def _count(session: Session, model, **where) -> int:
    statement = select(func.count(model.id))
    for column, value in where.items():
        statement = statement.where(getattr(model, column) == value)
    return session.scalar(statement)


def _ids(poll: Poll) -> list[tuple[str, list[str]]]:
    return [(question.id, [option.id for option in question.options]) for question in poll.questions]


def test_yes_no_vote_then_second_attempt_conflicts(db_session: Session, citizen) -> None:
    poll = _yes_no_poll(db_session)
    [(question_id, (yes_id, _no_id))] = _ids(poll)
    conflicts_before = REGISTRY.get_sample_value("poll_vote_conflicts_total") or 0.0

    submit_poll_response(db_session, poll_id=poll.id, user_id=citizen.id, answers=[(question_id, yes_id)])

    with pytest.raises(DuplicateVoteError):
        submit_poll_response(db_session, poll_id=poll.id, user_id=citizen.id, answers=[(question_id, yes_id)])

    assert _count(db_session, PollResponse, poll_id=poll.id) == 1
    assert _count(db_session, PollAnswer) == 1
    assert REGISTRY.get_sample_value("poll_vote_conflicts_total") == conflicts_before + 1


def test_vote_committed_by_another_session_conflicts(db_session: Session, citizen) -> None:
    poll = _yes_no_poll(db_session)
    [(question_id, (yes_id, no_id))] = _ids(poll)
    poll_id, citizen_id = poll.id, citizen.id
    db_session.commit()

    with Session(bind=db_session.get_bind()) as other:
        winner = PollResponse(id=new_id(), poll_id=poll_id, user_id=citizen_id)
        winner.answers.append(PollAnswer(id=new_id(), question_id=question_id, option_id=yes_id))
        other.add(winner)
        other.commit()

    with pytest.raises(DuplicateVoteError):
        submit_poll_response(db_session, poll_id=poll_id, user_id=citizen_id, answers=[(question_id, no_id)])

    assert _count(db_session, PollResponse, poll_id=poll_id) == 1
    assert _count(db_session, PollAnswer, option_id=no_id) == 0


def test_incomplete_response_writes_nothing(db_session: Session, citizen) -> None:
    poll = _two_question_poll(db_session)
    (first_question, first_options), _ = _ids(poll)

    with pytest.raises(IncompletePollResponseError):
        submit_poll_response(
            db_session, poll_id=poll.id, user_id=citizen.id, answers=[(first_question, first_options[0])]
        )

    assert _count(db_session, PollResponse) == 0
    assert _count(db_session, PollAnswer) == 0


@pytest.mark.parametrize("mode", ["foreign_option", "foreign_question", "repeated_question"])
def test_malformed_answers_are_rejected(db_session: Session, citizen, mode: str) -> None:
    poll = _two_question_poll(db_session)
    (q1, q1_options), (q2, q2_options) = _ids(poll)

    answers = {
        "foreign_option": [(q1, q2_options[0]), (q2, q2_options[1])],
        "foreign_question": [(q1, q1_options[0]), (q2, q2_options[0]), ("elsewhere", q2_options[0])],
        "repeated_question": [(q1, q1_options[0]), (q1, q1_options[1]), (q2, q2_options[0])],
    }[mode]

    with pytest.raises(PollValidationError):
        submit_poll_response(db_session, poll_id=poll.id, user_id=citizen.id, answers=answers)
    assert _count(db_session, PollResponse) == 0


def test_closed_and_missing_polls_reject_votes(db_session: Session, citizen) -> None:
    inactive = _yes_no_poll(db_session, title="Inactive", is_active=False)
    expired = _yes_no_poll(db_session, title="Expired", active_until=utcnow() - timedelta(hours=1))

    for poll in (inactive, expired):
        [(question_id, options)] = _ids(poll)
        with pytest.raises(PollClosedError):
            submit_poll_response(db_session, poll_id=poll.id, user_id=citizen.id, answers=[(question_id, options[0])])

    with pytest.raises(PollNotFoundError):
        submit_poll_response(db_session, poll_id="missing", user_id=citizen.id, answers=[("q", "o")])


def test_is_poll_open_respects_deadline() -> None:
    now = utcnow()
    assert is_poll_open(Poll(is_active=True, active_until=None), now)
    assert is_poll_open(Poll(is_active=True, active_until=now + timedelta(minutes=5)), now)
    assert not is_poll_open(Poll(is_active=True, active_until=now), now)
    assert not is_poll_open(Poll(is_active=False, active_until=None), now)


def test_results_tally_every_option_and_gender(db_session: Session, user_factory) -> None:
    poll = _two_question_poll(db_session)
    (q1, (yes_id, no_id)), (q2, (roads, schools, water)) = _ids(poll)
    voters = [
        (user_factory("m@example.com", gender=Gender.MALE), [(q1, yes_id), (q2, roads)]),
        (user_factory("f@example.com", gender=Gender.FEMALE), [(q1, yes_id), (q2, roads)]),
        (user_factory("u@example.com"), [(q1, no_id), (q2, schools)]),
    ]
    for voter, answers in voters:
        submit_poll_response(db_session, poll_id=poll.id, user_id=voter.id, answers=answers)

    results = get_poll_results(db_session, poll.id)

    assert results.title == "City budget"
    assert results.total_responses == 3
    first, second = results.questions
    assert [(tally.option_text, tally.count) for tally in first.options] == [("Yes", 2), ("No", 1)]
    assert [(tally.option_text, tally.count) for tally in second.options] == [
        ("Roads", 2),
        ("Schools", 1),
        ("Water", 0),
    ]
    assert [(bucket.name, bucket.count) for bucket in results.gender_distribution] == [
        ("Male", 1),
        ("Female", 1),
        ("Unknown", 1),
    ]


def test_results_for_poll_without_votes(db_session: Session) -> None:
    poll = _yes_no_poll(db_session)

    results = get_poll_results(db_session, poll.id)

    assert results.total_responses == 0
    assert [tally.count for tally in results.questions[0].options] == [0, 0]
    assert results.gender_distribution == []


def test_participation_and_active_listing_flag_voters(db_session: Session, citizen, user_factory) -> None:
    poll = _yes_no_poll(db_session)
    _yes_no_poll(db_session, title="Hidden", is_active=False)
    [(question_id, options)] = _ids(poll)
    submit_poll_response(db_session, poll_id=poll.id, user_id=citizen.id, answers=[(question_id, options[0])])
    other = user_factory("other@example.com")

    mine = get_active_polls_for_user(db_session, citizen.id)
    theirs = get_active_polls_for_user(db_session, other.id)
    anonymous = get_active_polls_for_user(db_session, None)

    assert [(item.title, item.response_count, item.user_has_voted) for item in mine] == [("Bus routes", 1, True)]
    assert [item.user_has_voted for item in theirs] == [False]
    assert [item.user_has_voted for item in anonymous] == [False]

    participation = get_poll_for_participation(db_session, poll.id, citizen.id)
    assert participation.user_has_voted is True
    assert participation.is_open is True


def test_admin_listing_reports_promotion(db_session: Session) -> None:
    promoted = _yes_no_poll(db_session, title="Promoted")
    _yes_no_poll(db_session, title="Quiet")
    db_session.add(Notification(message="Vote now", poll_id=promoted.id))
    db_session.commit()

    listing = {item.title: item for item in get_polls_for_admin(db_session)}

    assert listing["Promoted"].is_promoted is True
    assert listing["Quiet"].is_promoted is False
    assert listing["Quiet"].response_count == 0


def test_delete_poll_cascades_to_responses(db_session: Session, citizen) -> None:
    poll = _yes_no_poll(db_session)
    [(question_id, options)] = _ids(poll)
    submit_poll_response(db_session, poll_id=poll.id, user_id=citizen.id, answers=[(question_id, options[1])])

    delete_poll(db_session, poll.id)

    assert _count(db_session, Poll) == 0
    assert _count(db_session, PollResponse) == 0
    assert _count(db_session, PollAnswer) == 0
