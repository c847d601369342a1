"""Schemas for poll authoring, voting and results."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from politirate.models.poll import PollQuestionType
from politirate.schemas.common import UtcDatetime
from politirate.services.polls import OptionDraft, PollDraft, QuestionDraft


class PollOptionPayload(BaseModel):
    id: str | None = Field(default=None, description="Existing option id; omit to add an option")
    option_text: str = Field(..., max_length=512)


class PollQuestionPayload(BaseModel):
    id: str | None = Field(default=None, description="Existing question id; omit to add a question")
    question_text: str
    question_type: PollQuestionType
    options: list[PollOptionPayload] = Field(default_factory=list)


class PollUpsertRequest(BaseModel):
    """Full poll tree as edited by an administrator.

    Stored questions and options missing from the payload are deleted; entries
    without an id are created. Order follows list position.
    """

    id: str | None = None
    title: str = Field(..., max_length=255)
    description: str | None = None
    is_active: bool = False
    active_until: UtcDatetime | None = None
    questions: list[PollQuestionPayload]

    def to_draft(self) -> PollDraft:
        return PollDraft(
            id=self.id,
            title=self.title,
            description=self.description,
            is_active=self.is_active,
            active_until=self.active_until,
            questions=tuple(
                QuestionDraft(
                    id=question.id,
                    text=question.question_text,
                    question_type=question.question_type,
                    options=tuple(OptionDraft(id=option.id, text=option.option_text) for option in question.options),
                )
                for question in self.questions
            ),
        )


class PollOptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    option_text: str
    option_order: int


class PollQuestionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    question_text: str
    question_type: PollQuestionType
    question_order: int
    options: list[PollOptionRead]


class PollRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None
    is_active: bool
    active_until: datetime | None
    created_at: datetime
    questions: list[PollQuestionRead]


class PollParticipationRead(BaseModel):
    poll: PollRead
    user_has_voted: bool
    is_open: bool


class PollSummaryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None
    is_active: bool
    active_until: datetime | None
    created_at: datetime
    response_count: int
    is_promoted: bool
    user_has_voted: bool


class PollAnswerPayload(BaseModel):
    question_id: str
    option_id: str


class PollResponseCreate(BaseModel):
    answers: list[PollAnswerPayload]


class PollResponseRead(BaseModel):
    response_id: str
    poll_id: str
    answers: int


class OptionTallyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    option_id: str
    option_text: str
    count: int


class QuestionResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: str
    question_text: str
    question_type: PollQuestionType
    options: list[OptionTallyRead]


class GenderBucketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    count: int


class PollResultsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    poll_id: str
    title: str
    total_responses: int
    questions: list[QuestionResultRead]
    gender_distribution: list[GenderBucketRead]


__all__ = [
    "GenderBucketRead",
    "OptionTallyRead",
    "PollAnswerPayload",
    "PollOptionPayload",
    "PollOptionRead",
    "PollParticipationRead",
    "PollQuestionPayload",
    "PollQuestionRead",
    "PollRead",
    "PollResponseCreate",
    "PollResponseRead",
    "PollResultsRead",
    "PollSummaryRead",
    "PollUpsertRequest",
    "QuestionResultRead",
]
