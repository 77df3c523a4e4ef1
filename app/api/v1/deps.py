"""
FastAPI dependencies — database session, auth guards, workflow collaborators.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.security import decode_access_token
from app.db.session import async_session_factory
from app.models.enums import UserRole
from app.models.user import User
from app.services.events import EventDispatcher, dispatcher
from app.services.policy import AbsencePolicy, default_policy

# auto_error=False so the HttpOnly cookie can be tried when the header is missing
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/login", auto_error=False
)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Workflow collaborators ──────────────────────────────────────────
def get_absence_policy() -> AbsencePolicy:
    return default_policy


def get_event_dispatcher() -> EventDispatcher:
    return dispatcher


# ── Auth dependencies ───────────────────────────────────────────────
def _bearer_from_cookie(access_token: str | None) -> str | None:
    if not access_token:
        return None
    # auth.py stores the cookie as "Bearer <token>"
    if access_token.startswith("Bearer "):
        return access_token.split(" ", 1)[1]
    return access_token


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT from Header OR Cookie, look up user."""
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    final_token = token or _bearer_from_cookie(access_token)
    if not final_token:
        raise credentials_exc

    payload = decode_access_token(final_token)
    if payload is None:
        raise credentials_exc

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise credentials_exc

    user = await db.get(User, int(subject))
    if user is None:
        raise credentials_exc
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject inactive accounts."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


async def require_super_admin(
    current_user: User = Depends(get_current_active_user),
) -> User:
    """Only allow the top-level administrative role to proceed."""
    if current_user.role != UserRole.SUPER_ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator privileges required",
        )
    return current_user


async def require_absence_manager(
    current_user: User = Depends(get_current_active_user),
    policy: AbsencePolicy = Depends(get_absence_policy),
) -> User:
    if not policy.can_manage_absences(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Absence manager privileges required",
        )
    return current_user
