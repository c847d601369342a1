"""ORM models package."""
from .base import Base, TimestampMixin
from .leader import ElectionType, Leader, LeaderStatus
from .notification import Notification
from .poll import Poll, PollAnswer, PollOption, PollQuestion, PollQuestionType, PollResponse
from .rating import Rating
from .site_settings import SITE_SETTINGS_ID, SiteSettings
from .support_ticket import RESOLVING_STATUSES, SupportTicket, TicketStatus
from .user import Gender, User, UserRole

__all__ = [
    "Base",
    "ElectionType",
    "Gender",
    "Leader",
    "LeaderStatus",
    "Notification",
    "Poll",
    "PollAnswer",
    "PollOption",
    "PollQuestion",
    "PollQuestionType",
    "PollResponse",
    "RESOLVING_STATUSES",
    "Rating",
    "SITE_SETTINGS_ID",
    "SiteSettings",
    "SupportTicket",
    "TicketStatus",
    "TimestampMixin",
    "User",
    "UserRole",
]
