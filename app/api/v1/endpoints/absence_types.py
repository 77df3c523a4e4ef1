"""
Absence type catalogue — readable by everyone, writable by super_admin.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_current_active_user, get_db, require_super_admin
from app.models.absence import AbsenceType
from app.models.user import User
from app.schemas.absence import AbsenceTypeCreate, AbsenceTypeRead

router = APIRouter(prefix="/absence-types", tags=["absence-types"])
logger = logging.getLogger(__name__)


@router.get("", response_model=list[AbsenceTypeRead])
async def list_absence_types(
    db: AsyncSession = Depends(get_db),
    _user: User = Depends(get_current_active_user),
) -> list[AbsenceType]:
    result = await db.execute(select(AbsenceType).order_by(AbsenceType.name))
    return list(result.scalars().all())


@router.post("", response_model=AbsenceTypeRead, status_code=201)
async def create_absence_type(
    body: AbsenceTypeCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_super_admin),
) -> AbsenceType:
    existing = await db.execute(select(AbsenceType).where(AbsenceType.name == body.name))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail=f"Absence type '{body.name}' already exists")

    absence_type = AbsenceType(**body.model_dump())
    db.add(absence_type)
    await db.commit()
    await db.refresh(absence_type)
    logger.info("Created absence type %s (hourly=%s)", absence_type.name, absence_type.has_hours)
    return absence_type
