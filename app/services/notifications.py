"""
Default event handlers: turn absence events into in-app notifications.

- ``AbsenceRequested``      → every user holding the administrative role.
- ``AbsenceStatusUpdated``  → every user linked to the requesting person.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.absence import Absence
from app.models.notification import Notification
from app.models.user import User
from app.services.events import (AbsenceEvent, AbsenceRequested,
                                 AbsenceStatusUpdated, EventDispatcher)
from app.services.recipients import (get_absence_owner_users,
                                     get_notification_recipients)

logger = logging.getLogger(__name__)


async def _store(db: AsyncSession, event: AbsenceEvent, users: list[User], message: str) -> None:
    for user in users:
        db.add(
            Notification(
                user_id=user.id,
                absence_id=event.absence_id,
                event=event.name,
                message=message,
            )
        )
    await db.commit()
    logger.info("Notified %d user(s) of %s for absence %d", len(users), event.name, event.absence_id)


async def notify_absence_requested(event: AbsenceEvent, db: AsyncSession) -> None:
    recipients = await get_notification_recipients(db)
    await _store(
        db,
        event,
        recipients,
        f"Absence #{event.absence_id} was requested and awaits a decision.",
    )


async def notify_absence_status_updated(event: AbsenceEvent, db: AsyncSession) -> None:
    absence = await db.get(Absence, event.absence_id)
    if absence is None:
        logger.warning("Absence %d vanished before notification", event.absence_id)
        return
    owners = await get_absence_owner_users(db, absence)
    status = getattr(event, "status", None) or absence.status
    await _store(
        db,
        event,
        owners,
        f"Your absence #{event.absence_id} is now {status}.",
    )


def register_default_handlers(target: EventDispatcher) -> EventDispatcher:
    target.subscribe(AbsenceRequested, notify_absence_requested)
    target.subscribe(AbsenceStatusUpdated, notify_absence_status_updated)
    return target
