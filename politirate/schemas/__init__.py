"""Pydantic schemas package."""

from .leader import LeaderAdminRead, LeaderCreate, LeaderRead, LeaderStatusUpdate, LeaderUpdate
from .notification import NotificationCreate, NotificationRead, NotificationUpdate
from .poll import (
    PollParticipationRead,
    PollRead,
    PollResponseCreate,
    PollResponseRead,
    PollResultsRead,
    PollSummaryRead,
    PollUpsertRequest,
)
from .rating import (
    ActivityRead,
    BehaviourBucketRead,
    RatingBucketRead,
    RatingSubmission,
    RatingSubmissionResponse,
    ReviewRead,
)
from .site_settings import ContactDetailsRead, MaintenanceStatusRead, SiteSettingsRead, SiteSettingsUpdate
from .support import SupportTicketCreate, SupportTicketRead, SupportTicketStatsRead, SupportTicketStatusUpdate
from .user import CountResponse, SignupRequest, UserProfileUpdate, UserRead

__all__ = [
    "ActivityRead",
    "BehaviourBucketRead",
    "ContactDetailsRead",
    "CountResponse",
    "LeaderAdminRead",
    "LeaderCreate",
    "LeaderRead",
    "LeaderStatusUpdate",
    "LeaderUpdate",
    "MaintenanceStatusRead",
    "NotificationCreate",
    "NotificationRead",
    "NotificationUpdate",
    "PollParticipationRead",
    "PollRead",
    "PollResponseCreate",
    "PollResponseRead",
    "PollResultsRead",
    "PollSummaryRead",
    "PollUpsertRequest",
    "RatingBucketRead",
    "RatingSubmission",
    "RatingSubmissionResponse",
    "ReviewRead",
    "SignupRequest",
    "SiteSettingsRead",
    "SiteSettingsUpdate",
    "SupportTicketCreate",
    "SupportTicketRead",
    "SupportTicketStatsRead",
    "SupportTicketStatusUpdate",
    "UserProfileUpdate",
    "UserRead",
]
