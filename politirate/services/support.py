"""Support ticket lifecycle."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from politirate.core.clock import as_utc, utcnow
from politirate.models import RESOLVING_STATUSES, SupportTicket, TicketStatus
from politirate.obs import SUPPORT_TICKET_COUNTER

LOGGER = logging.getLogger(__name__)


class SupportTicketError(RuntimeError):
    """Base exception for support ticket errors."""


class SupportTicketNotFoundError(SupportTicketError):
    """Raised when a ticket identifier does not exist."""


class SupportTicketValidationError(SupportTicketError):
    """Raised when a ticket is filed with missing fields."""


@dataclass(slots=True, frozen=True)
class TicketFilters:
    status: TicketStatus | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    search: str | None = None


@dataclass(slots=True, frozen=True)
class SupportTicketStats:
    total: int
    open: int
    in_progress: int
    resolved: int
    closed: int
    avg_resolution_hours: float | None


def create_support_ticket(
    session: Session,
    *,
    user_name: str,
    user_email: str,
    subject: str,
    message: str,
    user_id: str | None = None,
) -> SupportTicket:
    fields = {"user_name": user_name, "user_email": user_email, "subject": subject, "message": message}
    missing = sorted(name for name, value in fields.items() if not value or not value.strip())
    if missing:
        raise SupportTicketValidationError(f"Missing required fields: {', '.join(missing)}")

    ticket = SupportTicket(
        user_id=user_id,
        status=TicketStatus.OPEN,
        **{name: value.strip() for name, value in fields.items()},
    )
    session.add(ticket)
    session.commit()
    session.refresh(ticket)
    SUPPORT_TICKET_COUNTER.inc()
    LOGGER.info("support ticket created", extra={"ticket_id": ticket.id, "user_id": user_id})
    return ticket


def get_support_tickets(session: Session, filters: TicketFilters | None = None) -> list[SupportTicket]:
    filters = filters or TicketFilters()
    statement = select(SupportTicket)
    if filters.status is not None:
        statement = statement.where(SupportTicket.status == filters.status)
    if filters.date_from is not None:
        statement = statement.where(SupportTicket.created_at >= filters.date_from)
    if filters.date_to is not None:
        statement = statement.where(SupportTicket.created_at <= filters.date_to)
    if filters.search and filters.search.strip():
        pattern = f"%{filters.search.strip()}%"
        statement = statement.where(
            or_(
                SupportTicket.user_name.ilike(pattern),
                SupportTicket.user_email.ilike(pattern),
                SupportTicket.subject.ilike(pattern),
            )
        )
    statement = statement.order_by(SupportTicket.updated_at.desc(), SupportTicket.created_at.desc())
    return list(session.scalars(statement).all())


def get_support_ticket(session: Session, ticket_id: str) -> SupportTicket:
    ticket = session.get(SupportTicket, ticket_id)
    if ticket is None:
        raise SupportTicketNotFoundError(f"Support ticket '{ticket_id}' was not found")
    return ticket


def update_ticket_status(
    session: Session,
    ticket_id: str,
    status: TicketStatus,
    admin_notes: str | None = None,
    *,
    now: datetime | None = None,
) -> SupportTicket:
    """Move a ticket to ``status``.

    Any status may follow any other. ``resolved_at`` is stamped when the
    new status is resolved or closed and is left in place afterwards, even if
    the ticket is reopened.
    """

    current_time = now or utcnow()
    ticket = get_support_ticket(session, ticket_id)
    previous = ticket.status

    ticket.status = status
    ticket.admin_notes = admin_notes
    ticket.updated_at = current_time
    if status in RESOLVING_STATUSES:
        ticket.resolved_at = current_time

    session.commit()
    session.refresh(ticket)
    LOGGER.info(
        "support ticket status changed",
        extra={"ticket_id": ticket_id, "from_status": previous.value, "to_status": status.value},
    )
    return ticket


def get_support_ticket_stats(session: Session) -> SupportTicketStats:
    counts = dict(
        session.execute(select(SupportTicket.status, func.count(SupportTicket.id)).group_by(SupportTicket.status)).all()
    )

    resolved_rows = session.execute(
        select(SupportTicket.created_at, SupportTicket.resolved_at).where(SupportTicket.resolved_at.is_not(None))
    ).all()
    durations = [
        (as_utc(resolved_at) - as_utc(created_at)).total_seconds() / 3600 for created_at, resolved_at in resolved_rows
    ]
    average = sum(durations) / len(durations) if durations else None

    return SupportTicketStats(
        total=sum(int(count) for count in counts.values()),
        open=int(counts.get(TicketStatus.OPEN, 0)),
        in_progress=int(counts.get(TicketStatus.IN_PROGRESS, 0)),
        resolved=int(counts.get(TicketStatus.RESOLVED, 0)),
        closed=int(counts.get(TicketStatus.CLOSED, 0)),
        avg_resolution_hours=average,
    )


__all__ = [
    "SupportTicketError",
    "SupportTicketNotFoundError",
    "SupportTicketStats",
    "SupportTicketValidationError",
    "TicketFilters",
    "create_support_ticket",
    "get_support_ticket",
    "get_support_ticket_stats",
    "get_support_tickets",
    "update_ticket_status",
]
