"""Schemas for ratings, reviews and rating distributions."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from politirate.schemas.leader import LeaderRead


class RatingSubmission(BaseModel):
    """A user's star rating and review of a leader.

    Range and completeness are checked by the rating service so that the same
    rules apply to every caller.
    """

    rating: int = Field(..., description="Whole number of stars from 1 to 5")
    comment: str = Field(..., max_length=5000)
    social_behaviour: str = Field(..., max_length=64)


class ReviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    leader_id: str
    user_name: str
    rating: int
    comment: str
    social_behaviour: str
    created_at: datetime
    updated_at: datetime


class ActivityRead(ReviewRead):
    leader_name: str
    leader_party: str


class RatingBucketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rating: int
    count: int


class BehaviourBucketRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    count: int


class RatingSubmissionResponse(BaseModel):
    leader: LeaderRead


__all__ = [
    "ActivityRead",
    "BehaviourBucketRead",
    "RatingBucketRead",
    "RatingSubmission",
    "RatingSubmissionResponse",
    "ReviewRead",
]
