"""
Absence endpoints.

- ``/my-absences``: the employee-facing side. Every query is scoped to the
  caller's own person; creation is the "Request time off" form.
- ``/absences``: the manager-facing side — listing, approve, deny and
  soft delete. Requires the absence-manager capability, except for reading
  a single absence, which its owner may also do.

State changes are committed before their events are dispatched, so a
notification failure never reaches the caller.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import (get_absence_policy, get_current_active_user,
                             get_db, get_event_dispatcher,
                             require_absence_manager)
from app.models.absence import Absence
from app.models.enums import AbsenceStatus
from app.models.user import User
from app.schemas.absence import AbsenceCreate, AbsenceRead
from app.schemas.common import DeleteResponse
from app.services import absences as workflow
from app.services.events import EventDispatcher
from app.services.policy import AbsencePolicy

router = APIRouter(tags=["absences"])
logger = logging.getLogger(__name__)

REQUEST_TITLE = "Request time off"


async def _load_or_404(db: AsyncSession, absence_id: int) -> Absence:
    absence = await workflow.get_absence(db, absence_id)
    if absence is None:
        raise HTTPException(status_code=404, detail="Absence not found")
    return absence


async def _publish(
    result: workflow.WorkflowResult,
    db: AsyncSession,
    events: EventDispatcher,
) -> AbsenceRead:
    # Serialise first: a failing handler rolls the session back and
    # expires the absence.
    body = AbsenceRead.model_validate(result.absence)
    await events.dispatch(result.events, db)
    return body


# ── Own absences ────────────────────────────────────────────────────
@router.post(
    "/my-absences",
    response_model=AbsenceRead,
    status_code=201,
    summary=REQUEST_TITLE,
)
async def request_absence(
    body: AbsenceCreate,
    db: AsyncSession = Depends(get_db),
    events: EventDispatcher = Depends(get_event_dispatcher),
    user: User = Depends(get_current_active_user),
) -> AbsenceRead:
    """Create an absence request for the caller's own person in *requested* state."""
    result = await workflow.create_absence(db, user, body)
    return await _publish(result, db, events)


@router.get("/my-absences", response_model=list[AbsenceRead])
async def list_my_absences(
    status: AbsenceStatus | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> list[Absence]:
    query = workflow.absences_for_person(user.person_id)
    if status is not None:
        query = query.where(Absence.status == status.value)
    query = query.order_by(Absence.start_date.desc(), Absence.id.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/my-absences/{absence_id}", response_model=AbsenceRead)
async def get_my_absence(
    absence_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_active_user),
) -> Absence:
    absence = await _load_or_404(db, absence_id)
    # Someone else's absence is reported as missing, not forbidden.
    if not workflow.is_owned_by(absence, user):
        raise HTTPException(status_code=404, detail="Absence not found")
    return absence


# ── Managed absences ────────────────────────────────────────────────
@router.get("/absences", response_model=list[AbsenceRead])
async def list_absences(
    status: AbsenceStatus | None = None,
    person_id: int | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_absence_manager),
) -> list[Absence]:
    return await workflow.list_absences(
        db, person_id=person_id, status=status, skip=skip, limit=limit
    )


@router.get("/absences/{absence_id}", response_model=AbsenceRead)
async def get_absence(
    absence_id: int,
    db: AsyncSession = Depends(get_db),
    policy: AbsencePolicy = Depends(get_absence_policy),
    user: User = Depends(get_current_active_user),
) -> Absence:
    absence = await _load_or_404(db, absence_id)
    if not (
        workflow.is_owned_by(absence, user)
        or workflow.can_be_managed_by(absence, user, policy)
    ):
        raise HTTPException(status_code=403, detail="Not allowed to view this absence")
    return absence


@router.post("/absences/{absence_id}/approve", response_model=AbsenceRead)
async def approve_absence(
    absence_id: int,
    db: AsyncSession = Depends(get_db),
    policy: AbsencePolicy = Depends(get_absence_policy),
    events: EventDispatcher = Depends(get_event_dispatcher),
    manager: User = Depends(require_absence_manager),
) -> AbsenceRead:
    absence = await _load_or_404(db, absence_id)
    result = await workflow.approve(db, absence, manager, policy)
    return await _publish(result, db, events)


@router.post("/absences/{absence_id}/deny", response_model=AbsenceRead)
async def deny_absence(
    absence_id: int,
    db: AsyncSession = Depends(get_db),
    policy: AbsencePolicy = Depends(get_absence_policy),
    events: EventDispatcher = Depends(get_event_dispatcher),
    manager: User = Depends(require_absence_manager),
) -> AbsenceRead:
    absence = await _load_or_404(db, absence_id)
    result = await workflow.deny(db, absence, manager, policy)
    return await _publish(result, db, events)


@router.delete("/absences/{absence_id}", response_model=DeleteResponse)
async def delete_absence(
    absence_id: int,
    db: AsyncSession = Depends(get_db),
    policy: AbsencePolicy = Depends(get_absence_policy),
    manager: User = Depends(require_absence_manager),
) -> DeleteResponse:
    """Soft-delete an absence. The row is kept but hidden from every listing."""
    absence = await _load_or_404(db, absence_id)
    await workflow.soft_delete(db, absence, manager, policy)
    return DeleteResponse(success=True, message=f"Absence {absence_id} deleted")
