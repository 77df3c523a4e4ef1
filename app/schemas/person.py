"""Pydantic schemas for people (employee identities)."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from app.models.enums import PersonType


class PersonCreate(BaseModel):
    first_name: str
    last_name: str
    email: str | None = None
    type: PersonType = PersonType.EMPLOYEE

    @field_validator("first_name", "last_name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be empty")
        if len(v) > 100:
            raise ValueError("Name must not exceed 100 characters")
        return v


class PersonRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str | None
    type: PersonType
    created_at: datetime | None

    model_config = {"from_attributes": True}
