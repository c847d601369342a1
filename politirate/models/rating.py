"""Rating ORM model."""
from __future__ import annotations

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from politirate.models.base import Base, TimestampMixin, new_id


class Rating(TimestampMixin, Base):
    """One user's star rating and review of one leader."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "leader_id", name="uq_ratings_user_leader"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),
        Index("ix_ratings_leader_id", "leader_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    leader_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("leaders.id", ondelete="CASCADE"), nullable=False
    )
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Anonymous")
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    social_behaviour: Mapped[str] = mapped_column(String(64), nullable=False)

    user = relationship("User", back_populates="ratings")
    leader = relationship("Leader", back_populates="ratings")


__all__ = ["Rating"]
