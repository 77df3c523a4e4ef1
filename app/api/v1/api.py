"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (absence_types, absences, auth, notifications,
                                  people, system)

api_router = APIRouter()

# Auth (login, refresh, user management)
api_router.include_router(auth.router)

# Employee identities and the absence type catalogue
api_router.include_router(people.router)
api_router.include_router(absence_types.router)

# Absence requests and the approval workflow
api_router.include_router(absences.router)

# In-app notifications
api_router.include_router(notifications.router)

# Health
api_router.include_router(system.router)
