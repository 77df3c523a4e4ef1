"""Pydantic schemas for absences and absence types."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.enums import AbsenceStatus


def _assume_utc(v: datetime | None) -> datetime | None:
    """Naive timestamps are taken as UTC; aware ones keep their offset."""
    if v is None or v.tzinfo is not None:
        return v
    return v.replace(tzinfo=timezone.utc)


# ── Absence types ───────────────────────────────────────────────────
class AbsenceTypeCreate(BaseModel):
    name: str
    has_hours: bool = False

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be empty")
        if len(v) > 100:
            raise ValueError("Name must not exceed 100 characters")
        return v


class AbsenceTypeRead(BaseModel):
    id: int
    name: str
    has_hours: bool

    model_config = {"from_attributes": True}


# ── Absences ────────────────────────────────────────────────────────
class AbsenceCreate(BaseModel):
    """Payload of the "Request time off" form.

    Unknown keys (``person_id``, ``status``, ``approved_by``...) are
    dropped, never applied.
    """

    absence_type_id: int = Field(gt=0, lt=2**31)
    start_date: datetime
    end_date: datetime | None = None
    estimated_end_date: datetime | None = None
    is_medically_certified: bool = False
    occupational: bool = False
    is_paid: bool = False
    notes: str | None = Field(default=None, max_length=2000)

    model_config = {"extra": "ignore"}

    @field_validator("start_date", "end_date", "estimated_end_date")
    @classmethod
    def _tz(cls, v: datetime | None) -> datetime | None:
        return _assume_utc(v)

    @model_validator(mode="after")
    def _chronological(self) -> "AbsenceCreate":
        for name in ("end_date", "estimated_end_date"):
            value = getattr(self, name)
            if value is not None and value < self.start_date:
                raise ValueError(f"{name} must not be before start_date")
        return self


class AbsenceRead(BaseModel):
    id: int
    person_id: int
    absence_type_id: int
    start_date: datetime
    end_date: datetime | None
    estimated_end_date: datetime | None
    status: AbsenceStatus
    is_medically_certified: bool
    occupational: bool
    is_paid: bool
    approved_by: int | None
    approved_at: datetime | None
    notes: str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}
