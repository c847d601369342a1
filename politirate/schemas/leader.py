"""Schemas for leader profiles and moderation."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from politirate.schemas.common import PartialUpdate

from politirate.models.leader import ElectionType, LeaderStatus
from politirate.models.user import Gender


class LeaderLocation(BaseModel):
    state: str | None = None
    district: str | None = None


class PreviousElection(BaseModel):
    year: int | None = None
    constituency: str | None = None
    result: str | None = None


class LeaderCreate(BaseModel):
    """Payload for submitting a leader for moderation."""

    name: str = Field(..., min_length=1, max_length=255)
    party_name: str = Field(..., min_length=1, max_length=255)
    gender: Gender
    age: int = Field(..., ge=18, le=120)
    photo_url: str | None = Field(default=None, max_length=1024)
    constituency: str = Field(..., min_length=1, max_length=255)
    native_address: str | None = None
    election_type: ElectionType
    location: LeaderLocation = Field(default_factory=LeaderLocation)
    previous_elections: list[PreviousElection] = Field(default_factory=list)
    manifesto_url: str | None = Field(default=None, max_length=1024)
    twitter_url: str | None = Field(default=None, max_length=1024)


class LeaderUpdate(PartialUpdate):
    """Partial edit of a leader profile. Rating aggregates are not accepted."""

    non_nullable = frozenset(
        {"name", "party_name", "gender", "age", "constituency", "election_type", "location", "previous_elections"}
    )

    name: str | None = Field(default=None, min_length=1, max_length=255)
    party_name: str | None = Field(default=None, min_length=1, max_length=255)
    gender: Gender | None = None
    age: int | None = Field(default=None, ge=18, le=120)
    photo_url: str | None = Field(default=None, max_length=1024)
    constituency: str | None = Field(default=None, min_length=1, max_length=255)
    native_address: str | None = None
    election_type: ElectionType | None = None
    location: LeaderLocation | None = None
    previous_elections: list[PreviousElection] | None = None
    manifesto_url: str | None = Field(default=None, max_length=1024)
    twitter_url: str | None = Field(default=None, max_length=1024)


class LeaderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    party_name: str
    gender: Gender
    age: int
    photo_url: str | None
    constituency: str
    native_address: str | None
    election_type: ElectionType
    location: dict
    previous_elections: list
    manifesto_url: str | None
    twitter_url: str | None
    status: LeaderStatus
    admin_comment: str | None
    rating: float
    review_count: int
    added_by_user_id: str | None
    created_at: datetime
    updated_at: datetime


class LeaderAdminRead(LeaderRead):
    added_by_name: str


class LeaderStatusUpdate(BaseModel):
    status: LeaderStatus
    admin_comment: str | None = Field(default=None, max_length=2000)


__all__ = [
    "LeaderAdminRead",
    "LeaderCreate",
    "LeaderLocation",
    "LeaderRead",
    "LeaderStatusUpdate",
    "LeaderUpdate",
    "PreviousElection",
]
