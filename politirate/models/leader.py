"""Leader ORM model."""
from __future__ import annotations

import enum

from sqlalchemy import Enum, Float, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from politirate.models.base import Base, TimestampMixin, enum_values, new_id
from politirate.models.user import Gender


class ElectionType(str, enum.Enum):
    NATIONAL = "national"
    STATE = "state"
    PANCHAYAT = "panchayat"


class LeaderStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Leader(TimestampMixin, Base):
    """An elected-official profile open to citizen ratings.

    ``rating`` and ``review_count`` are derived from the ``ratings`` table and
    are only ever written by the rating aggregator.
    """

    __tablename__ = "leaders"
    __table_args__ = (
        Index("ix_leaders_status", "status"),
        Index("ix_leaders_added_by_user_id", "added_by_user_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    party_name: Mapped[str] = mapped_column(String(255), nullable=False)
    gender: Mapped[Gender] = mapped_column(
        Enum(Gender, name="gender", values_callable=enum_values), nullable=False
    )
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    photo_url: Mapped[str | None] = mapped_column(String(1024))
    constituency: Mapped[str] = mapped_column(String(255), nullable=False)
    native_address: Mapped[str | None] = mapped_column(Text)
    election_type: Mapped[ElectionType] = mapped_column(
        Enum(ElectionType, name="election_type", values_callable=enum_values), nullable=False
    )
    location: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    previous_elections: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    manifesto_url: Mapped[str | None] = mapped_column(String(1024))
    twitter_url: Mapped[str | None] = mapped_column(String(1024))
    added_by_user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[LeaderStatus] = mapped_column(
        Enum(LeaderStatus, name="leader_status", values_callable=enum_values),
        nullable=False,
        default=LeaderStatus.PENDING,
    )
    admin_comment: Mapped[str | None] = mapped_column(Text)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    added_by = relationship("User")
    ratings = relationship("Rating", back_populates="leader", cascade="all")

    @property
    def state(self) -> str | None:
        return (self.location or {}).get("state")

    @property
    def added_by_name(self) -> str:
        if self.added_by is None:
            return "Admin/System"
        return self.added_by.name or "Admin/System"


__all__ = ["ElectionType", "Leader", "LeaderStatus"]
