"""Polls: authoring, vote recording and result aggregation.

Saving an edited poll is expressed as an explicit reconciliation plan of
``Insert``/``Update``/``Delete`` steps computed by diffing the stored
question and option identifiers against the submitted ones. The plan is then
applied inside a single serializable transaction, so a failed save leaves the
stored poll untouched.

A vote is one ``PollResponse`` row with one ``PollAnswer`` per question. The
response and all of its answers are flushed together; the unique
``(poll_id, user_id)`` constraint turns a second vote into
:class:`DuplicateVoteError` rather than a partial write.
"""
from __future__ import annotations

import enum
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import exists, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from politirate.core.clock import as_utc, utcnow
from politirate.db.session import run_serializable, serializable_transaction
from politirate.models import (
    Gender,
    Notification,
    Poll,
    PollAnswer,
    PollOption,
    PollQuestion,
    PollQuestionType,
    PollResponse,
    User,
)
from politirate.models.base import new_id
from politirate.obs import POLL_VOTE_CONFLICT_COUNTER, POLL_VOTE_COUNTER, service_span
from politirate.services.users import UserNotFoundError

LOGGER = logging.getLogger(__name__)

YES_NO_OPTIONS = ("Yes", "No")
MIN_CHOICE_OPTIONS = 2

_GENDER_LABELS = {
    Gender.MALE: "Male",
    Gender.FEMALE: "Female",
    Gender.OTHER: "Other",
    None: "Unknown",
}


class PollError(RuntimeError):
    """Base exception for poll service errors."""


class PollNotFoundError(PollError):
    """Raised when a poll identifier does not exist."""


class PollValidationError(PollError):
    """Raised when a poll definition or a vote is malformed."""


class IncompletePollResponseError(PollValidationError):
    """Raised when a vote does not answer every question of the poll."""


class PollClosedError(PollError):
    """Raised when voting on an inactive or expired poll."""


class DuplicateVoteError(PollError):
    """Raised when the user has already voted in the poll."""


# -- authoring drafts -------------------------------------------------------


@dataclass(slots=True, frozen=True)
class OptionDraft:
    text: str
    id: str | None = None


@dataclass(slots=True, frozen=True)
class QuestionDraft:
    text: str
    question_type: PollQuestionType
    options: tuple[OptionDraft, ...] = ()
    id: str | None = None


@dataclass(slots=True, frozen=True)
class PollDraft:
    title: str
    questions: tuple[QuestionDraft, ...]
    description: str | None = None
    is_active: bool = False
    active_until: datetime | None = None
    id: str | None = None


class PlanEntity(str, enum.Enum):
    QUESTION = "question"
    OPTION = "option"


@dataclass(slots=True, frozen=True)
class Insert:
    """Create a question or option.

    ``key`` names a new question so that its options can refer to it through
    ``parent_key`` before it has an identifier. Options of an existing question
    use that question's id as ``parent_key``.
    """

    entity: PlanEntity
    key: str
    text: str
    order: int
    parent_key: str | None = None
    question_type: PollQuestionType | None = None


@dataclass(slots=True, frozen=True)
class Update:
    entity: PlanEntity
    entity_id: str
    text: str
    order: int
    question_type: PollQuestionType | None = None


@dataclass(slots=True, frozen=True)
class Delete:
    entity: PlanEntity
    entity_id: str


PlanStep = Insert | Update | Delete


@dataclass(slots=True, frozen=True)
class OptionTally:
    option_id: str
    option_text: str
    count: int


@dataclass(slots=True, frozen=True)
class QuestionResult:
    question_id: str
    question_text: str
    question_type: PollQuestionType
    options: list[OptionTally]


@dataclass(slots=True, frozen=True)
class GenderBucket:
    name: str
    count: int


@dataclass(slots=True, frozen=True)
class PollResults:
    poll_id: str
    title: str
    total_responses: int
    questions: list[QuestionResult]
    gender_distribution: list[GenderBucket]


@dataclass(slots=True)
class PollSummary:
    id: str
    title: str
    description: str | None
    is_active: bool
    active_until: datetime | None
    created_at: datetime
    response_count: int = 0
    is_promoted: bool = False
    user_has_voted: bool = False


@dataclass(slots=True)
class PollParticipation:
    poll: Poll
    user_has_voted: bool
    is_open: bool = field(default=True)


# -- helpers ----------------------------------------------------------------


def is_poll_open(poll: Poll, now: datetime | None = None) -> bool:
    """A poll accepts votes while active and before ``active_until`` (if set)."""

    if not poll.is_active:
        return False
    if poll.active_until is None:
        return True
    return as_utc(now or utcnow()) < as_utc(poll.active_until)


def _get_poll(session: Session, poll_id: str) -> Poll:
    poll = session.get(Poll, poll_id)
    if poll is None:
        raise PollNotFoundError(f"Poll '{poll_id}' was not found")
    return poll


def normalise_question(draft: QuestionDraft) -> QuestionDraft:
    """Validate a question draft and settle its option list.

    Yes/no questions always carry exactly the ``Yes`` and ``No`` options;
    submitted option ids are reused positionally so existing votes survive an
    edit. Multiple-choice questions keep their non-blank options and need at
    least two of them.
    """

    text = (draft.text or "").strip()
    if not text:
        raise PollValidationError("Every question needs text")

    if draft.question_type == PollQuestionType.YES_NO:
        ids = [option.id for option in draft.options]
        options = tuple(
            OptionDraft(text=label, id=ids[index] if index < len(ids) else None)
            for index, label in enumerate(YES_NO_OPTIONS)
        )
    else:
        options = tuple(
            OptionDraft(text=option.text.strip(), id=option.id)
            for option in draft.options
            if option.text and option.text.strip()
        )
        if len(options) < MIN_CHOICE_OPTIONS:
            raise PollValidationError(
                f"Multiple choice question '{text}' needs at least {MIN_CHOICE_OPTIONS} options"
            )

    return QuestionDraft(text=text, question_type=draft.question_type, options=options, id=draft.id)


def normalise_poll_draft(draft: PollDraft, *, max_questions: int, max_options: int) -> PollDraft:
    title = (draft.title or "").strip()
    if not title:
        raise PollValidationError("A poll needs a title")
    if not draft.questions:
        raise PollValidationError("A poll needs at least one question")
    if len(draft.questions) > max_questions:
        raise PollValidationError(f"A poll may have at most {max_questions} questions")

    questions = tuple(normalise_question(question) for question in draft.questions)
    for question in questions:
        if len(question.options) > max_options:
            raise PollValidationError(f"A question may have at most {max_options} options")

    description = draft.description.strip() if draft.description else None
    return PollDraft(
        title=title,
        questions=questions,
        description=description or None,
        is_active=draft.is_active,
        active_until=draft.active_until,
        id=draft.id,
    )


def plan_poll_reconciliation(
    stored: Mapping[str, set[str]], questions: Sequence[QuestionDraft]
) -> list[PlanStep]:
    """Diff the stored tree against the submitted questions.

    ``stored`` maps each persisted question id to its option ids. Orders are
    rewritten from submission position. Deletes come first; deleting a
    question implies deleting its options and their answers.
    """

    seen_questions: set[str] = set()
    seen_options: set[str] = set()
    deletes: list[PlanStep] = []
    writes: list[PlanStep] = []

    for position, question in enumerate(questions):
        if question.id is None:
            key = f"new-question-{position}"
            writes.append(
                Insert(
                    entity=PlanEntity.QUESTION,
                    key=key,
                    text=question.text,
                    order=position,
                    question_type=question.question_type,
                )
            )
            stored_options: set[str] = set()
        else:
            if question.id not in stored:
                raise PollValidationError(f"Question '{question.id}' does not belong to this poll")
            if question.id in seen_questions:
                raise PollValidationError(f"Question '{question.id}' was submitted twice")
            seen_questions.add(question.id)
            key = question.id
            stored_options = stored[question.id]
            writes.append(
                Update(
                    entity=PlanEntity.QUESTION,
                    entity_id=question.id,
                    text=question.text,
                    order=position,
                    question_type=question.question_type,
                )
            )

        kept_options: set[str] = set()
        for option_position, option in enumerate(question.options):
            if option.id is None:
                writes.append(
                    Insert(
                        entity=PlanEntity.OPTION,
                        key=f"{key}:new-option-{option_position}",
                        text=option.text,
                        order=option_position,
                        parent_key=key,
                    )
                )
                continue
            if option.id not in stored_options:
                raise PollValidationError(f"Option '{option.id}' does not belong to its question")
            if option.id in seen_options:
                raise PollValidationError(f"Option '{option.id}' was submitted twice")
            seen_options.add(option.id)
            kept_options.add(option.id)
            writes.append(
                Update(
                    entity=PlanEntity.OPTION,
                    entity_id=option.id,
                    text=option.text,
                    order=option_position,
                )
            )

        for option_id in sorted(stored_options - kept_options):
            deletes.append(Delete(entity=PlanEntity.OPTION, entity_id=option_id))

    for question_id in sorted(set(stored) - seen_questions):
        deletes.append(Delete(entity=PlanEntity.QUESTION, entity_id=question_id))

    return deletes + writes


def apply_reconciliation_plan(poll: Poll, plan: Sequence[PlanStep]) -> None:
    questions: dict[str, PollQuestion] = {question.id: question for question in poll.questions}
    options: dict[str, PollOption] = {
        option.id: option for question in poll.questions for option in question.options
    }

    for step in plan:
        if isinstance(step, Delete):
            if step.entity is PlanEntity.QUESTION:
                poll.questions.remove(questions.pop(step.entity_id))
            else:
                option = options.pop(step.entity_id)
                option.question.options.remove(option)
        elif isinstance(step, Update):
            if step.entity is PlanEntity.QUESTION:
                question = questions[step.entity_id]
                question.question_text = step.text
                question.question_order = step.order
                if step.question_type is not None:
                    question.question_type = step.question_type
            else:
                option = options[step.entity_id]
                option.option_text = step.text
                option.option_order = step.order
        elif step.entity is PlanEntity.QUESTION:
            question = PollQuestion(
                id=new_id(),
                question_text=step.text,
                question_type=step.question_type,
                question_order=step.order,
            )
            poll.questions.append(question)
            questions[step.key] = question
        else:
            questions[step.parent_key].options.append(
                PollOption(id=new_id(), option_text=step.text, option_order=step.order)
            )


# -- authoring --------------------------------------------------------------


def upsert_poll(
    session: Session,
    draft: PollDraft,
    *,
    max_questions: int = 50,
    max_options: int = 20,
) -> Poll:
    """Create a poll, or reconcile an existing one with the submitted draft."""

    draft = normalise_poll_draft(draft, max_questions=max_questions, max_options=max_options)

    with service_span("polls.upsert", poll_id=draft.id):
        with serializable_transaction(session):
            if draft.id is None:
                poll = Poll(id=new_id())
                session.add(poll)
            else:
                poll = _get_poll(session, draft.id)

            poll.title = draft.title
            poll.description = draft.description
            poll.is_active = draft.is_active
            poll.active_until = draft.active_until

            stored = {question.id: {option.id for option in question.options} for question in poll.questions}
            plan = plan_poll_reconciliation(stored, draft.questions)
            apply_reconciliation_plan(poll, plan)
            session.flush()
            poll_id = poll.id

    LOGGER.info(
        "poll saved",
        extra={
            "poll_id": poll_id,
            "created": draft.id is None,
            "inserts": sum(isinstance(step, Insert) for step in plan),
            "updates": sum(isinstance(step, Update) for step in plan),
            "deletes": sum(isinstance(step, Delete) for step in plan),
        },
    )
    return get_poll_for_edit(session, poll_id)


def get_poll_for_edit(session: Session, poll_id: str) -> Poll:
    statement = (
        select(Poll)
        .options(selectinload(Poll.questions).selectinload(PollQuestion.options))
        .where(Poll.id == poll_id)
        .execution_options(populate_existing=True)
    )
    poll = session.scalars(statement).one_or_none()
    if poll is None:
        raise PollNotFoundError(f"Poll '{poll_id}' was not found")
    return poll


def delete_poll(session: Session, poll_id: str) -> None:
    poll = _get_poll(session, poll_id)
    session.delete(poll)
    session.commit()
    LOGGER.info("poll deleted", extra={"poll_id": poll_id})


def _response_count_subquery():
    return (
        select(func.count(PollResponse.id))
        .where(PollResponse.poll_id == Poll.id)
        .correlate(Poll)
        .scalar_subquery()
    )


def _summary(poll: Poll, response_count: int, **flags: bool) -> PollSummary:
    return PollSummary(
        id=poll.id,
        title=poll.title,
        description=poll.description,
        is_active=poll.is_active,
        active_until=poll.active_until,
        created_at=poll.created_at,
        response_count=int(response_count or 0),
        **flags,
    )


def get_polls_for_admin(session: Session) -> list[PollSummary]:
    promoted = exists().where(Notification.poll_id == Poll.id).correlate(Poll)
    statement = select(Poll, _response_count_subquery(), promoted).order_by(Poll.created_at.desc())
    return [
        _summary(poll, count, is_promoted=bool(is_promoted))
        for poll, count, is_promoted in session.execute(statement).all()
    ]


def get_active_polls_for_user(
    session: Session, user_id: str | None, *, now: datetime | None = None
) -> list[PollSummary]:
    """Polls currently open for voting, flagged with whether ``user_id`` voted."""

    current_time = now or utcnow()
    voted = (
        exists().where(PollResponse.poll_id == Poll.id, PollResponse.user_id == user_id).correlate(Poll)
        if user_id
        else None
    )
    columns = [Poll, _response_count_subquery()]
    if voted is not None:
        columns.append(voted)
    statement = select(*columns).where(Poll.is_active.is_(True)).order_by(Poll.created_at.desc())

    summaries: list[PollSummary] = []
    for row in session.execute(statement).all():
        poll, count = row[0], row[1]
        if not is_poll_open(poll, current_time):
            continue
        has_voted = bool(row[2]) if voted is not None else False
        summaries.append(_summary(poll, count, user_has_voted=has_voted))
    return summaries


def has_user_voted(session: Session, poll_id: str, user_id: str) -> bool:
    statement = select(PollResponse.id).where(PollResponse.poll_id == poll_id, PollResponse.user_id == user_id)
    return session.scalar(statement) is not None


def get_poll_for_participation(
    session: Session, poll_id: str, user_id: str | None, *, now: datetime | None = None
) -> PollParticipation:
    poll = get_poll_for_edit(session, poll_id)
    voted = has_user_voted(session, poll_id, user_id) if user_id else False
    return PollParticipation(poll=poll, user_has_voted=voted, is_open=is_poll_open(poll, now))


# -- voting -----------------------------------------------------------------


def _check_answers(poll: Poll, answers: Mapping[str, str]) -> list[tuple[str, str]]:
    """Return ``(question_id, option_id)`` pairs in question order.

    Every question must be answered exactly once, with an option of that
    question, and nothing outside the poll may be referenced.
    """

    options_by_question = {question.id: {option.id for option in question.options} for question in poll.questions}

    unknown = set(answers) - set(options_by_question)
    if unknown:
        raise PollValidationError(f"Answers reference questions outside this poll: {sorted(unknown)}")
    missing = set(options_by_question) - set(answers)
    if missing:
        raise IncompletePollResponseError("Please answer all questions before submitting")

    ordered: list[tuple[str, str]] = []
    for question in poll.questions:
        option_id = answers[question.id]
        if option_id not in options_by_question[question.id]:
            raise PollValidationError(f"Option '{option_id}' is not a choice of question '{question.id}'")
        ordered.append((question.id, option_id))
    return ordered


def submit_poll_response(
    session: Session,
    *,
    poll_id: str,
    user_id: str,
    answers: Sequence[tuple[str, str]],
    now: datetime | None = None,
) -> PollResponse:
    """Record a user's vote: one response row plus one answer per question.

    Either the response and all its answers are stored, or nothing is.
    """

    answer_map: dict[str, str] = {}
    for question_id, option_id in answers:
        if question_id in answer_map:
            raise PollValidationError(f"Question '{question_id}' was answered more than once")
        answer_map[question_id] = option_id
    if not answer_map:
        raise IncompletePollResponseError("Please answer all questions before submitting")

    if session.get(User, user_id) is None:
        raise UserNotFoundError(f"User '{user_id}' was not found")

    with service_span("polls.submit_response", poll_id=poll_id, user_id=user_id):

        def record() -> tuple[PollResponse, int]:
            poll = _get_poll(session, poll_id)
            if not is_poll_open(poll, now):
                raise PollClosedError("This poll is no longer accepting responses")
            ordered = _check_answers(poll, answer_map)

            response = PollResponse(id=new_id(), poll_id=poll_id, user_id=user_id)
            for question_id, option_id in ordered:
                response.answers.append(PollAnswer(id=new_id(), question_id=question_id, option_id=option_id))
            session.add(response)
            try:
                session.flush()
            except IntegrityError as exc:
                POLL_VOTE_CONFLICT_COUNTER.inc()
                raise DuplicateVoteError("You have already voted in this poll") from exc
            return response, len(ordered)

        response, answer_count = run_serializable(session, record)
        response_id = response.id

    POLL_VOTE_COUNTER.inc()
    LOGGER.info(
        "poll response recorded",
        extra={"poll_id": poll_id, "user_id": user_id, "response_id": response_id, "answers": answer_count},
    )
    return response


# -- results ----------------------------------------------------------------


def get_poll_results(session: Session, poll_id: str) -> PollResults:
    """Per-option tallies (zero-filled) and the voter gender breakdown."""

    poll = get_poll_for_edit(session, poll_id)

    total = session.scalar(select(func.count(PollResponse.id)).where(PollResponse.poll_id == poll_id)) or 0

    tally_rows = session.execute(
        select(PollAnswer.option_id, func.count(PollAnswer.id))
        .join(PollResponse, PollAnswer.response_id == PollResponse.id)
        .where(PollResponse.poll_id == poll_id)
        .group_by(PollAnswer.option_id)
    ).all()
    tallies = {option_id: int(count) for option_id, count in tally_rows}

    questions = [
        QuestionResult(
            question_id=question.id,
            question_text=question.question_text,
            question_type=question.question_type,
            options=[
                OptionTally(option_id=option.id, option_text=option.option_text, count=tallies.get(option.id, 0))
                for option in question.options
            ],
        )
        for question in poll.questions
    ]

    gender_rows = session.execute(
        select(User.gender, func.count(PollResponse.id))
        .join(User, PollResponse.user_id == User.id)
        .where(PollResponse.poll_id == poll_id)
        .group_by(User.gender)
    ).all()
    gender_counts = {gender: int(count) for gender, count in gender_rows}
    gender_distribution = [
        GenderBucket(name=label, count=gender_counts[gender])
        for gender, label in _GENDER_LABELS.items()
        if gender_counts.get(gender)
    ]

    return PollResults(
        poll_id=poll.id,
        title=poll.title,
        total_responses=int(total),
        questions=questions,
        gender_distribution=gender_distribution,
    )


__all__ = [
    "Delete",
    "DuplicateVoteError",
    "GenderBucket",
    "IncompletePollResponseError",
    "Insert",
    "OptionDraft",
    "OptionTally",
    "PlanEntity",
    "PlanStep",
    "PollClosedError",
    "PollDraft",
    "PollError",
    "PollNotFoundError",
    "PollParticipation",
    "PollResults",
    "PollSummary",
    "PollValidationError",
    "QuestionDraft",
    "QuestionResult",
    "Update",
    "YES_NO_OPTIONS",
    "apply_reconciliation_plan",
    "delete_poll",
    "get_active_polls_for_user",
    "get_poll_for_edit",
    "get_poll_for_participation",
    "get_poll_results",
    "get_polls_for_admin",
    "has_user_voted",
    "is_poll_open",
    "normalise_poll_draft",
    "normalise_question",
    "plan_poll_reconciliation",
    "submit_poll_response",
    "upsert_poll",
]
