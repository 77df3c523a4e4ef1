"""
Who gets told about absence activity.

Every lookup hits the database; results are never cached because role
assignments change independently of absences.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NoRecipientFound
from app.models.absence import Absence
from app.models.user import User


def _users_with_roles(roles: Iterable[str]):
    return (
        select(User)
        .where(User.role.in_(list(roles)), User.is_active.is_(True))
        .order_by(User.id)
    )


async def get_notification_recipient(db: AsyncSession, role: str | None = None) -> User:
    """Return the first active user holding the administrative role."""
    role = role or settings.NOTIFICATION_RECIPIENT_ROLE
    result = await db.execute(_users_with_roles([role]).limit(1))
    recipient = result.scalar_one_or_none()
    if recipient is None:
        raise NoRecipientFound(f"No user with the {role} role found")
    return recipient


async def get_notification_recipients(db: AsyncSession, role: str | None = None) -> list[User]:
    """Return every active user holding the administrative role."""
    role = role or settings.NOTIFICATION_RECIPIENT_ROLE
    result = await db.execute(_users_with_roles([role]))
    recipients = list(result.scalars().all())
    if not recipients:
        raise NoRecipientFound(f"No users with the {role} role found")
    return recipients


async def get_absence_managers(
    db: AsyncSession, roles: Iterable[str] | None = None
) -> list[User]:
    """All active users able to decide absences. May be empty."""
    result = await db.execute(
        _users_with_roles(settings.ABSENCE_MANAGER_ROLES if roles is None else roles)
    )
    return list(result.scalars().all())


async def get_absence_owner_users(db: AsyncSession, absence: Absence) -> list[User]:
    result = await db.execute(
        select(User).where(User.person_id == absence.person_id, User.is_active.is_(True))
    )
    return list(result.scalars().all())
