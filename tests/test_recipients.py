"""Tests for notification recipient resolution and the event dispatcher."""

from datetime import datetime

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NoRecipientFound
from app.models.absence import Absence
from app.models.enums import UserRole
from app.models.notification import Notification
from app.services.absences import create_absence
from app.services.events import (AbsenceRequested, AbsenceStatusUpdated,
                                 EventDispatcher)
from app.services.notifications import register_default_handlers
from app.services.recipients import (get_absence_managers,
                                     get_absence_owner_users,
                                     get_notification_recipient,
                                     get_notification_recipients)


@pytest.mark.asyncio
async def test_single_recipient_fails_when_nobody_matches(db_session: AsyncSession, manager):
    with pytest.raises(NoRecipientFound):
        await get_notification_recipient(db_session)


@pytest.mark.asyncio
async def test_recipients_fail_when_nobody_matches(db_session: AsyncSession, manager):
    with pytest.raises(NoRecipientFound):
        await get_notification_recipients(db_session)


@pytest.mark.asyncio
async def test_single_recipient_returns_first_admin(db_session: AsyncSession, make_user):
    first = await make_user(UserRole.SUPER_ADMIN)
    await make_user(UserRole.SUPER_ADMIN)
    recipient = await get_notification_recipient(db_session)
    assert recipient.id == first.id


@pytest.mark.asyncio
async def test_recipients_return_every_active_admin(db_session: AsyncSession, make_user):
    a = await make_user(UserRole.SUPER_ADMIN)
    b = await make_user(UserRole.SUPER_ADMIN)
    await make_user(UserRole.SUPER_ADMIN, is_active=False)
    await make_user(UserRole.HR_MANAGER)

    recipients = await get_notification_recipients(db_session)
    assert [u.id for u in recipients] == [a.id, b.id]


@pytest.mark.asyncio
async def test_absence_managers_include_both_roles(db_session: AsyncSession, make_user, employee):
    hr = await make_user(UserRole.HR_MANAGER)
    boss = await make_user(UserRole.SUPER_ADMIN)
    managers = await get_absence_managers(db_session)
    assert {u.id for u in managers} == {hr.id, boss.id}


@pytest.mark.asyncio
async def test_absence_managers_may_be_empty(db_session: AsyncSession, employee):
    assert await get_absence_managers(db_session) == []


@pytest.mark.asyncio
async def test_owner_users(db_session: AsyncSession, employee, vacation):
    result = await create_absence(
        db_session,
        employee,
        {"absence_type_id": vacation.id, "start_date": datetime(2026, 8, 3)},
    )
    owners = await get_absence_owner_users(db_session, result.absence)
    assert [u.id for u in owners] == [employee.id]


# ── Dispatcher ──────────────────────────────────────────────────────
async def _notifications(db: AsyncSession) -> list[Notification]:
    result = await db.execute(select(Notification).order_by(Notification.id))
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_requested_event_notifies_admins(db_session: AsyncSession, employee, admin, vacation):
    result = await create_absence(
        db_session,
        employee,
        {"absence_type_id": vacation.id, "start_date": datetime(2026, 8, 3)},
    )
    failures = await register_default_handlers(EventDispatcher()).dispatch(result.events, db_session)

    assert failures == 0
    rows = await _notifications(db_session)
    assert [(n.user_id, n.event) for n in rows] == [(admin.id, "absence_requested")]


@pytest.mark.asyncio
async def test_missing_recipient_does_not_undo_creation(db_session: AsyncSession, employee, vacation):
    """With no super_admin the notification fails but the absence survives."""
    result = await create_absence(
        db_session,
        employee,
        {"absence_type_id": vacation.id, "start_date": datetime(2026, 8, 3)},
    )
    absence_id = result.absence.id

    failures = await register_default_handlers(EventDispatcher()).dispatch(result.events, db_session)

    assert failures == 1
    assert await _notifications(db_session) == []
    assert await db_session.get(Absence, absence_id) is not None


@pytest.mark.asyncio
async def test_status_event_notifies_owner(db_session: AsyncSession, employee, vacation):
    result = await create_absence(
        db_session,
        employee,
        {"absence_type_id": vacation.id, "start_date": datetime(2026, 8, 3)},
    )
    event = AbsenceStatusUpdated(result.absence.id, employee.person_id, status="approved")

    await register_default_handlers(EventDispatcher()).dispatch([event], db_session)

    rows = await _notifications(db_session)
    assert len(rows) == 1
    assert rows[0].user_id == employee.id
    assert "approved" in rows[0].message


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others(db_session: AsyncSession):
    calls = []

    async def broken(event, db):
        raise RuntimeError("smtp down")

    async def working(event, db):
        calls.append(event)

    events = EventDispatcher()
    events.subscribe(AbsenceRequested, broken)
    events.subscribe(AbsenceRequested, working)
    # Subscribing twice is a no-op
    events.subscribe(AbsenceRequested, working)

    failures = await events.dispatch([AbsenceRequested(1, 1)], db_session)

    assert failures == 1
    assert calls == [AbsenceRequested(1, 1)]


@pytest.mark.asyncio
async def test_unsubscribed_event_is_ignored(db_session: AsyncSession):
    assert await EventDispatcher().dispatch([AbsenceStatusUpdated(1, 1, status="denied")], db_session) == 0
