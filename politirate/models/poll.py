"""Poll, question, option, response and answer ORM models."""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from politirate.models.base import Base, TimestampMixin, enum_values, new_id


class PollQuestionType(str, enum.Enum):
    YES_NO = "yes_no"
    MULTIPLE_CHOICE = "multiple_choice"


class Poll(TimestampMixin, Base):
    """An admin-authored questionnaire open to one response per user."""

    __tablename__ = "polls"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    questions = relationship(
        "PollQuestion",
        back_populates="poll",
        cascade="all, delete-orphan",
        order_by="PollQuestion.question_order",
    )
    responses = relationship("PollResponse", back_populates="poll", cascade="all")
    notifications = relationship("Notification", back_populates="poll")


class PollQuestion(Base):
    __tablename__ = "poll_questions"
    __table_args__ = (Index("ix_poll_questions_poll_id", "poll_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    poll_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[PollQuestionType] = mapped_column(
        Enum(PollQuestionType, name="poll_question_type", values_callable=enum_values), nullable=False
    )
    question_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    poll = relationship("Poll", back_populates="questions")
    options = relationship(
        "PollOption",
        back_populates="question",
        cascade="all, delete-orphan",
        order_by="PollOption.option_order",
    )
    answers = relationship("PollAnswer", back_populates="question", cascade="all")


class PollOption(Base):
    __tablename__ = "poll_options"
    __table_args__ = (Index("ix_poll_options_question_id", "question_id"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    question_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("poll_questions.id", ondelete="CASCADE"), nullable=False
    )
    option_text: Mapped[str] = mapped_column(String(512), nullable=False)
    option_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    question = relationship("PollQuestion", back_populates="options")
    answers = relationship("PollAnswer", back_populates="option", cascade="all")


class PollResponse(TimestampMixin, Base):
    """A user's final vote in a poll; at most one per (poll, user)."""

    __tablename__ = "poll_responses"
    __table_args__ = (
        UniqueConstraint("poll_id", "user_id", name="uq_poll_responses_poll_user"),
        Index("ix_poll_responses_poll_id", "poll_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    poll_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    poll = relationship("Poll", back_populates="responses")
    user = relationship("User", back_populates="poll_responses")
    answers = relationship("PollAnswer", back_populates="response", cascade="all, delete-orphan")


class PollAnswer(Base):
    __tablename__ = "poll_answers"
    __table_args__ = (
        UniqueConstraint("response_id", "question_id", name="uq_poll_answers_response_question"),
        Index("ix_poll_answers_option_id", "option_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    response_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("poll_responses.id", ondelete="CASCADE"), nullable=False
    )
    question_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("poll_questions.id", ondelete="CASCADE"), nullable=False
    )
    option_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("poll_options.id", ondelete="CASCADE"), nullable=False
    )

    response = relationship("PollResponse", back_populates="answers")
    question = relationship("PollQuestion", back_populates="answers")
    option = relationship("PollOption", back_populates="answers")


__all__ = ["Poll", "PollAnswer", "PollOption", "PollQuestion", "PollQuestionType", "PollResponse"]
