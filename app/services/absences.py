"""
Absence record store and approval workflow.

Every operation takes the acting ``User`` explicitly and returns a
``WorkflowResult``: the persisted absence plus the events the caller has
to publish once the change is committed.

Lifecycle::

    requested ──approve──▶ approved   (approve again re-stamps)
        │
        └────deny────────▶ denied     (deny again is a no-op)

Approved and denied are terminal; crossing between them is rejected.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from typing import Any

from sqlalchemy import false, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (AbsenceValidationError, InvalidTransition,
                                 NotAuthenticated, Unauthorized)
from app.models.absence import Absence, AbsenceType
from app.models.enums import AbsenceStatus, PersonType
from app.models.person import Person
from app.models.user import User
from app.schemas.absence import AbsenceCreate
from app.services.events import (AbsenceEvent, AbsenceRequested,
                                 AbsenceStatusUpdated)
from app.services.policy import AbsencePolicy, default_policy

logger = logging.getLogger(__name__)

_TIMESTAMP_FIELDS = ("start_date", "end_date", "estimated_end_date")


@dataclass
class WorkflowResult:
    absence: Absence
    events: list[AbsenceEvent] = field(default_factory=list)


# ── Queries ─────────────────────────────────────────────────────────
def active_absences():
    """Base query hiding soft-deleted rows."""
    return select(Absence).where(Absence.deleted_at.is_(None))


def absences_for_person(person_id: int | None):
    """Absences of one person; matches nothing when there is no person."""
    query = active_absences()
    if person_id is None:
        return query.where(false())
    return query.where(Absence.person_id == person_id)


async def get_absence(db: AsyncSession, absence_id: int) -> Absence | None:
    result = await db.execute(active_absences().where(Absence.id == absence_id))
    return result.scalar_one_or_none()


async def list_absences(
    db: AsyncSession,
    *,
    person_id: int | None = None,
    status: AbsenceStatus | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Absence]:
    query = active_absences()
    if person_id is not None:
        query = query.where(Absence.person_id == person_id)
    if status is not None:
        query = query.where(Absence.status == status.value)
    query = query.order_by(Absence.start_date.desc(), Absence.id.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


# ── Normalisation & persistence ─────────────────────────────────────
def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _midnight(value: datetime) -> datetime:
    # The calendar date as written, before any offset is applied.
    return datetime.combine(value.date(), time.min, tzinfo=timezone.utc)


def normalize_timestamps(absence: Absence, absence_type: AbsenceType) -> Absence:
    """Store timestamps in UTC, zeroing the time of day on full-day types.

    Full-day values keep the date they were submitted with, so a stored
    midnight survives being reloaded and saved again.
    """
    normalize = _to_utc if absence_type.has_hours else _midnight
    for name in _TIMESTAMP_FIELDS:
        value = getattr(absence, name)
        if value is not None:
            setattr(absence, name, normalize(value))
    return absence


async def _load_absence_type(db: AsyncSession, absence_type_id: int) -> AbsenceType:
    absence_type = await db.get(AbsenceType, absence_type_id)
    if absence_type is None:
        raise AbsenceValidationError(f"Unknown absence type {absence_type_id}")
    return absence_type


async def save_absence(
    db: AsyncSession,
    absence: Absence,
    absence_type: AbsenceType | None = None,
) -> Absence:
    """Normalise, commit and reload *absence*.

    All mutating operations persist through here so full-day types are
    normalised on every save, not only on creation.
    """
    if absence_type is None:
        absence_type = await _load_absence_type(db, absence.absence_type_id)
    normalize_timestamps(absence, absence_type)
    db.add(absence)
    await db.commit()
    await db.refresh(absence)
    return absence


# ── Authorisation predicates ────────────────────────────────────────
def is_owned_by(absence: Absence, user: User | None) -> bool:
    """True when *user* is linked to the person who requested *absence*."""
    if user is None or user.person_id is None:
        return False
    return user.person_id == absence.person_id


def can_be_managed_by(
    absence: Absence,
    user: User | None,
    policy: AbsencePolicy | None = None,
) -> bool:
    """True when *user* may decide *absence*.

    Only the role is consulted; absences have no assigned manager yet.
    """
    return (policy or default_policy).can_manage_absences(user)


def _ensure_manager(absence: Absence, actor: User, policy: AbsencePolicy | None) -> None:
    if not can_be_managed_by(absence, actor, policy):
        raise Unauthorized()


def _ensure_not_deleted(absence: Absence) -> None:
    if absence.deleted_at is not None:
        raise InvalidTransition("Deleted absences cannot change status")


# ── Workflow operations ─────────────────────────────────────────────
async def create_absence(
    db: AsyncSession,
    actor: User | None,
    payload: AbsenceCreate | Mapping[str, Any],
) -> WorkflowResult:
    """Record a new request for the actor's own person.

    Any ``person_id`` or ``status`` in the payload is discarded.
    """
    if actor is None or actor.person_id is None:
        raise NotAuthenticated()
    person = await db.get(Person, actor.person_id)
    if person is None or person.type != PersonType.EMPLOYEE.value:
        raise NotAuthenticated()

    if not isinstance(payload, AbsenceCreate):
        payload = AbsenceCreate.model_validate(dict(payload))
    absence_type = await _load_absence_type(db, payload.absence_type_id)

    absence = Absence(
        **payload.model_dump(),
        person_id=person.id,
        status=AbsenceStatus.REQUESTED.value,
    )
    await save_absence(db, absence, absence_type)
    logger.info(
        "Absence %d requested by person %d (%s)",
        absence.id,
        person.id,
        absence_type.name,
    )
    return WorkflowResult(absence, [AbsenceRequested(absence.id, absence.person_id)])


async def approve(
    db: AsyncSession,
    absence: Absence,
    actor: User,
    policy: AbsencePolicy | None = None,
    now: datetime | None = None,
) -> WorkflowResult:
    _ensure_manager(absence, actor, policy)
    _ensure_not_deleted(absence)
    if absence.status == AbsenceStatus.DENIED.value:
        raise InvalidTransition("A denied absence cannot be approved")

    absence.status = AbsenceStatus.APPROVED.value
    absence.approved_by = actor.id
    absence.approved_at = now or datetime.now(timezone.utc)
    await save_absence(db, absence)
    logger.info("Absence %d approved by user %d", absence.id, actor.id)
    return WorkflowResult(
        absence,
        [AbsenceStatusUpdated(absence.id, absence.person_id, status=absence.status)],
    )


async def deny(
    db: AsyncSession,
    absence: Absence,
    actor: User,
    policy: AbsencePolicy | None = None,
) -> WorkflowResult:
    """Deny *absence*. ``approved_by`` / ``approved_at`` are left as they are."""
    _ensure_manager(absence, actor, policy)
    _ensure_not_deleted(absence)
    if absence.status == AbsenceStatus.APPROVED.value:
        raise InvalidTransition("An approved absence cannot be denied")

    absence.status = AbsenceStatus.DENIED.value
    await save_absence(db, absence)
    logger.info("Absence %d denied by user %d", absence.id, actor.id)
    return WorkflowResult(
        absence,
        [AbsenceStatusUpdated(absence.id, absence.person_id, status=absence.status)],
    )


async def soft_delete(
    db: AsyncSession,
    absence: Absence,
    actor: User,
    policy: AbsencePolicy | None = None,
) -> Absence:
    _ensure_manager(absence, actor, policy)
    absence.deleted_at = datetime.now(timezone.utc)
    await save_absence(db, absence)
    logger.info("Soft-deleted absence %d (user %d)", absence.id, actor.id)
    return absence
