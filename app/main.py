"""
Absence Management — application entry point.

This is the **only** file that assembles the app.  All business logic
lives in the `services/`, `api/`, `models/` and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.api import api_router
from app.api.v1.endpoints.auth import limiter
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.security import get_password_hash
from app.db.base import Base
from app.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from app.models.absence import Absence, AbsenceType  # noqa: F401
from app.models.enums import UserRole
from app.models.notification import Notification  # noqa: F401
from app.models.person import Person  # noqa: F401
from app.models.user import User
from app.services.events import dispatcher
from app.services.notifications import register_default_handlers

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)

# name -> has_hours
DEFAULT_ABSENCE_TYPES = {
    "Vacation": False,
    "Sick leave": False,
    "Medical appointment": True,
}


async def seed_first_admin(session: AsyncSession) -> None:
    result = await session.execute(
        select(User).where(User.email == settings.FIRST_ADMIN_EMAIL)
    )
    if result.scalar_one_or_none() is not None:
        return
    session.add(
        User(
            email=settings.FIRST_ADMIN_EMAIL,
            hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
            full_name="System Administrator",
            role=UserRole.SUPER_ADMIN.value,
        )
    )
    await session.commit()
    logger.info(
        "Default admin created: %s (password: <redacted>)",
        settings.FIRST_ADMIN_EMAIL,
    )


async def seed_absence_types(session: AsyncSession) -> None:
    result = await session.execute(select(AbsenceType.name))
    existing = set(result.scalars().all())
    missing = [name for name in DEFAULT_ABSENCE_TYPES if name not in existing]
    for name in missing:
        session.add(AbsenceType(name=name, has_hours=DEFAULT_ABSENCE_TYPES[name]))
    if missing:
        await session.commit()
        logger.info("Seeded absence types: %s", ", ".join(missing))


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    async with async_session_factory() as session:
        await seed_first_admin(session)
        if settings.SEED_ABSENCE_TYPES:
            await seed_absence_types(session)

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Employee absence requests and approval workflow",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    register_default_handlers(dispatcher)

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return application


app = create_app()
