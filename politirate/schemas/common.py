"""Shared schema types."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, ClassVar

from pydantic import AfterValidator, BaseModel, model_validator

from politirate.core.clock import as_utc

UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
"""A datetime normalised to UTC; naive input is read as UTC."""


class PartialUpdate(BaseModel):
    """Base for PATCH payloads.

    Omitted fields are left alone. Fields listed in ``non_nullable`` back
    NOT NULL columns, so an explicit ``null`` for them is a validation error.
    """

    non_nullable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_explicit_nulls(self) -> "PartialUpdate":
        cleared = sorted(name for name in self.model_fields_set & self.non_nullable if getattr(self, name) is None)
        if cleared:
            raise ValueError(f"These fields cannot be null: {', '.join(cleared)}")
        return self


__all__ = ["PartialUpdate", "UtcDatetime"]
