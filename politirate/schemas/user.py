"""Schemas for accounts and profiles."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from politirate.models.user import Gender, UserRole


class SignupRequest(BaseModel):
    """Payload for creating an account."""

    email: str = Field(..., max_length=320)
    password: str = Field(..., min_length=6, max_length=128)
    name: str | None = Field(default=None, max_length=255)
    gender: Gender | None = None
    age: int | None = Field(default=None, ge=13, le=120)
    state: str | None = Field(default=None, max_length=128)
    mp_constituency: str | None = Field(default=None, max_length=255)
    mla_constituency: str | None = Field(default=None, max_length=255)
    panchayat: str | None = Field(default=None, max_length=255)


class UserProfileUpdate(BaseModel):
    """Partial profile update; blank strings clear a field."""

    name: str | None = Field(default=None, max_length=255)
    gender: Gender | None = None
    age: int | None = Field(default=None, ge=13, le=120)
    state: str | None = Field(default=None, max_length=128)
    mp_constituency: str | None = Field(default=None, max_length=255)
    mla_constituency: str | None = Field(default=None, max_length=255)
    panchayat: str | None = Field(default=None, max_length=255)


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str | None
    role: UserRole
    gender: Gender | None
    age: int | None
    state: str | None
    mp_constituency: str | None
    mla_constituency: str | None
    panchayat: str | None
    created_at: datetime


class CountResponse(BaseModel):
    count: int


__all__ = ["CountResponse", "SignupRequest", "UserProfileUpdate", "UserRead"]
