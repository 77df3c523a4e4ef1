"""
Absence & AbsenceType models — time-off requests and their categories.

Absences are never physically removed by the API; ``deleted_at`` hides a
record from every default query.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (Boolean, Column, DateTime, ForeignKey, Index, Integer,
                        String, Text)

from app.db.base import Base
from app.models.enums import AbsenceStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AbsenceType(Base):
    __tablename__ = "absence_types"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(100), unique=True, nullable=False)  # type: ignore[assignment]
    # False means full-day only: stored timestamps are forced to midnight.
    has_hours: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]


class Absence(Base):
    __tablename__ = "absences"
    __table_args__ = (
        Index("ix_absence_person_status", "person_id", "status"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    person_id: int = Column(Integer, ForeignKey("people.id"), nullable=False)  # type: ignore[assignment]
    absence_type_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("absence_types.id"), nullable=False
    )
    start_date: datetime = Column(DateTime(timezone=True), nullable=False)  # type: ignore[assignment]
    end_date: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    estimated_end_date: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20),
        nullable=False,
        default=AbsenceStatus.REQUESTED.value,
        index=True,
    )  # requested | approved | denied
    is_medically_certified: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    occupational: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    is_paid: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    approved_by: int | None = Column(Integer, ForeignKey("users.id"), nullable=True)  # type: ignore[assignment]
    approved_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )
    deleted_at: datetime | None = Column(DateTime(timezone=True), nullable=True, index=True)  # type: ignore[assignment]
