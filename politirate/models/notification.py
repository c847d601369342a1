"""Site notification ORM model."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from politirate.models.base import Base, TimestampMixin, new_id


class Notification(TimestampMixin, Base):
    """Announcement banner shown to visitors during an optional time window."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    link: Mapped[str | None] = mapped_column(String(1024))
    start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    poll_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("polls.id", ondelete="SET NULL"), nullable=True
    )

    poll = relationship("Poll", back_populates="notifications")


__all__ = ["Notification"]
