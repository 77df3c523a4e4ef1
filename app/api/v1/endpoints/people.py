"""
People endpoints — employee identities that user accounts link to.

- POST requires super_admin.
- GET requires the absence-manager capability.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_db, require_absence_manager, require_super_admin
from app.models.enums import PersonType
from app.models.person import Person
from app.models.user import User
from app.schemas.person import PersonCreate, PersonRead

router = APIRouter(prefix="/people", tags=["people"])
logger = logging.getLogger(__name__)


@router.post("", response_model=PersonRead, status_code=201)
async def create_person(
    body: PersonCreate,
    db: AsyncSession = Depends(get_db),
    _admin: User = Depends(require_super_admin),
) -> Person:
    person = Person(
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        type=body.type.value,
    )
    db.add(person)
    await db.commit()
    await db.refresh(person)
    logger.info("Created person %d (%s)", person.id, person.full_name)
    return person


@router.get("", response_model=list[PersonRead])
async def list_people(
    type: PersonType | None = None,
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_absence_manager),
) -> list[Person]:
    query = select(Person).order_by(Person.last_name, Person.first_name).offset(skip).limit(limit)
    if type is not None:
        query = query.where(Person.type == type.value)
    result = await db.execute(query)
    return list(result.scalars().all())


@router.get("/{person_id}", response_model=PersonRead)
async def get_person(
    person_id: int,
    db: AsyncSession = Depends(get_db),
    _manager: User = Depends(require_absence_manager),
) -> Person:
    person = await db.get(Person, person_id)
    if person is None:
        raise HTTPException(status_code=404, detail="Person not found")
    return person
