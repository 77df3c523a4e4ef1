"""
Notification model — in-app inbox rows written by event handlers.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String

from app.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notification_user_read", "user_id", "read_at"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    absence_id: int = Column(Integer, ForeignKey("absences.id"), nullable=False)  # type: ignore[assignment]
    event: str = Column(String(50), nullable=False)  # type: ignore[assignment]
    # absence_requested | absence_status_updated
    message: str = Column(String(500), nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    read_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
