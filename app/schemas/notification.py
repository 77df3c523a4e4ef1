"""Pydantic schemas for in-app notifications."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: int
    absence_id: int
    event: str
    message: str
    created_at: datetime | None
    read_at: datetime | None

    model_config = {"from_attributes": True}
