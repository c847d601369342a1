"""Account registration, authentication and profile management."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import bcrypt
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from politirate.models import User, UserRole

LOGGER = logging.getLogger(__name__)

_PROFILE_FIELDS = frozenset(
    {"name", "gender", "age", "state", "mp_constituency", "mla_constituency", "panchayat"}
)


class UserError(RuntimeError):
    """Base exception for user service errors."""


class DuplicateEmailError(UserError):
    """Raised when registering an e-mail address that is already taken."""


class InvalidCredentialsError(UserError):
    """Raised when an e-mail/password pair does not match an account."""


class UserNotFoundError(UserError):
    """Raised when a user identifier does not exist."""


def hash_password(raw_password: str) -> str:
    return bcrypt.hashpw(raw_password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(raw_password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(raw_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:  # pragma: no cover - invalid hash format
        return False


def display_name_from_email(email: str) -> str:
    """``jane.doe@example.com`` -> ``Jane.doe``."""

    local_part = email.split("@", 1)[0]
    return local_part[:1].upper() + local_part[1:]


def _normalise_profile(changes: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for key, value in changes.items():
        if key not in _PROFILE_FIELDS:
            continue
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value
    return cleaned


def register_user(
    session: Session,
    *,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
    **profile: Any,
) -> User:
    normalised_email = email.strip().lower()
    user = User(
        email=normalised_email,
        hashed_password=hash_password(password),
        role=role,
        **_normalise_profile(profile),
    )
    if not user.name:
        user.name = display_name_from_email(normalised_email)

    session.add(user)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateEmailError(f"An account for '{normalised_email}' already exists") from exc
    session.refresh(user)
    LOGGER.info("user registered", extra={"user_id": user.id, "role": user.role.value})
    return user


def authenticate_user(session: Session, *, email: str, password: str) -> User:
    statement = select(User).where(User.email == email.strip().lower())
    user = session.scalars(statement).one_or_none()
    if user is None or not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError("Invalid credentials")
    return user


def get_user(session: Session, user_id: str) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise UserNotFoundError(f"User '{user_id}' was not found")
    return user


def update_user_profile(session: Session, user_id: str, changes: dict[str, Any]) -> User:
    """Apply profile changes; blank strings are stored as null."""

    user = get_user(session, user_id)
    for field_name, value in _normalise_profile(changes).items():
        setattr(user, field_name, value)
    session.commit()
    session.refresh(user)
    return user


def list_users(session: Session) -> list[User]:
    return list(session.scalars(select(User).order_by(User.created_at.desc())).all())


def get_user_count(
    session: Session,
    *,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    state: str | None = None,
) -> int:
    statement = select(func.count(User.id))
    if start_date is not None:
        statement = statement.where(User.created_at >= start_date)
    if end_date is not None:
        statement = statement.where(User.created_at <= end_date)
    if state:
        statement = statement.where(User.state == state)
    return int(session.scalar(statement) or 0)


__all__ = [
    "DuplicateEmailError",
    "InvalidCredentialsError",
    "UserError",
    "UserNotFoundError",
    "authenticate_user",
    "display_name_from_email",
    "get_user",
    "get_user_count",
    "hash_password",
    "list_users",
    "register_user",
    "update_user_profile",
    "verify_password",
]
