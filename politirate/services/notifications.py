"""Site-wide announcement banners."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from politirate.core.clock import as_utc, utcnow
from politirate.models import Notification, Poll

LOGGER = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset({"message", "link", "start_time", "end_time", "is_active", "poll_id"})


class NotificationError(RuntimeError):
    """Base exception for notification errors."""


class NotificationNotFoundError(NotificationError):
    """Raised when a notification identifier does not exist."""


class NotificationValidationError(NotificationError):
    """Raised for an empty message, an inverted window or an unknown poll."""


def _validate(session: Session, values: dict[str, Any], current: Notification | None = None) -> None:
    """Check a create payload, or an update merged over the stored banner."""

    if "message" in values and (not values["message"] or not str(values["message"]).strip()):
        raise NotificationValidationError("A notification needs a message")
    if "is_active" in values and values["is_active"] is None:
        raise NotificationValidationError("is_active cannot be null")
    poll_id = values.get("poll_id")
    if poll_id and session.get(Poll, poll_id) is None:
        raise NotificationValidationError(f"Poll '{poll_id}' does not exist")

    start_time = values["start_time"] if "start_time" in values else getattr(current, "start_time", None)
    end_time = values["end_time"] if "end_time" in values else getattr(current, "end_time", None)
    if start_time is not None and end_time is not None and as_utc(end_time) < as_utc(start_time):
        raise NotificationValidationError("A notification cannot end before it starts")


def get_notifications(session: Session) -> list[Notification]:
    return list(session.scalars(select(Notification).order_by(Notification.created_at.desc())).all())


def get_active_notifications(session: Session, *, now: datetime | None = None) -> list[Notification]:
    """Banners to show right now; empty on storage failure."""

    current_time = now or utcnow()
    statement = (
        select(Notification)
        .where(
            Notification.is_active.is_(True),
            or_(Notification.start_time.is_(None), Notification.start_time <= current_time),
            or_(Notification.end_time.is_(None), Notification.end_time >= current_time),
        )
        .order_by(Notification.created_at.desc())
    )
    try:
        return list(session.scalars(statement).all())
    except SQLAlchemyError:
        session.rollback()
        LOGGER.exception("could not fetch active notifications")
        return []


def get_notification(session: Session, notification_id: str) -> Notification:
    notification = session.get(Notification, notification_id)
    if notification is None:
        raise NotificationNotFoundError(f"Notification '{notification_id}' was not found")
    return notification


def add_notification(session: Session, values: dict[str, Any]) -> Notification:
    values = {key: value for key, value in values.items() if key in _EDITABLE_FIELDS}
    if "message" not in values:
        raise NotificationValidationError("A notification needs a message")
    _validate(session, values)

    notification = Notification(**values)
    session.add(notification)
    session.commit()
    session.refresh(notification)
    LOGGER.info("notification added", extra={"notification_id": notification.id, "poll_id": notification.poll_id})
    return notification


def update_notification(session: Session, notification_id: str, changes: dict[str, Any]) -> Notification:
    notification = get_notification(session, notification_id)
    changes = {key: value for key, value in changes.items() if key in _EDITABLE_FIELDS}
    _validate(session, changes, notification)
    for field_name, value in changes.items():
        setattr(notification, field_name, value)
    session.commit()
    session.refresh(notification)
    return notification


def delete_notification(session: Session, notification_id: str) -> None:
    notification = get_notification(session, notification_id)
    session.delete(notification)
    session.commit()
    LOGGER.info("notification deleted", extra={"notification_id": notification_id})


__all__ = [
    "NotificationError",
    "NotificationNotFoundError",
    "NotificationValidationError",
    "add_notification",
    "delete_notification",
    "get_active_notifications",
    "get_notification",
    "get_notifications",
    "update_notification",
]
