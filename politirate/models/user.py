"""User ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from politirate.models.base import Base, TimestampMixin, enum_values, new_id


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class Gender(str, enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class User(TimestampMixin, Base):
    """A registered citizen or administrator."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role"), nullable=False, default=UserRole.USER
    )
    gender: Mapped[Gender | None] = mapped_column(
        Enum(Gender, name="gender", values_callable=enum_values)
    )
    age: Mapped[int | None] = mapped_column(Integer)
    state: Mapped[str | None] = mapped_column(String(128))
    mp_constituency: Mapped[str | None] = mapped_column(String(255))
    mla_constituency: Mapped[str | None] = mapped_column(String(255))
    panchayat: Mapped[str | None] = mapped_column(String(255))

    ratings = relationship("Rating", back_populates="user", cascade="all")
    poll_responses = relationship("PollResponse", back_populates="user", cascade="all")


__all__ = ["Gender", "User", "UserRole"]
