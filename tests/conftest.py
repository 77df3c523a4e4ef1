"""
Shared test fixtures for the absence management test suite.

Async throughout (aiosqlite + AsyncSession). Actors are real ``User`` rows
authenticated with freshly minted JWTs, so authorization is exercised the
same way it is in production.
"""

import os
import sys
from typing import AsyncGenerator

import pytest

# Ensure project root is importable
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# Override environment BEFORE importing application modules
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["CORS_ORIGINS"] = '["*"]'
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.api.v1.deps import get_db, get_event_dispatcher
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.models.absence import AbsenceType
from app.models.enums import PersonType, UserRole
from app.models.person import Person
from app.models.user import User
from app.services.events import EventDispatcher
from app.services.notifications import register_default_handlers

# One in-memory database shared by the app and the tests.
test_engine = create_async_engine(
    "sqlite+aiosqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def setup_db():
    """Create all tables before usage and drop after."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Return a httpx AsyncClient wired to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Return a raw database session for direct queries in tests."""
    async with TestingSessionLocal() as session:
        yield session


# ── Event recording ─────────────────────────────────────────────────
class RecordingDispatcher(EventDispatcher):
    """Delivers like the real dispatcher and remembers what it published."""

    def __init__(self) -> None:
        super().__init__()
        self.published = []

    async def dispatch(self, events, db):
        events = list(events)
        self.published.extend(events)
        return await super().dispatch(events, db)


@pytest.fixture
def recorder():
    recording = register_default_handlers(RecordingDispatcher())
    app.dependency_overrides[get_event_dispatcher] = lambda: recording
    yield recording
    app.dependency_overrides.pop(get_event_dispatcher, None)


# ── Factories ───────────────────────────────────────────────────────
@pytest.fixture
def make_person(db_session: AsyncSession):
    async def _make(
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        type: PersonType = PersonType.EMPLOYEE,
    ) -> Person:
        person = Person(first_name=first_name, last_name=last_name, type=type.value)
        db_session.add(person)
        await db_session.commit()
        await db_session.refresh(person)
        return person

    return _make


@pytest.fixture
def make_user(db_session: AsyncSession):
    counter = {"n": 0}

    async def _make(
        role: UserRole = UserRole.EMPLOYEE,
        person: Person | None = None,
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=f"{role.value}{counter['n']}@test.local",
            hashed_password="not-a-real-hash",
            role=role.value,
            person_id=person.id if person else None,
            is_active=is_active,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_absence_type(db_session: AsyncSession):
    async def _make(name: str = "Vacation", has_hours: bool = False) -> AbsenceType:
        absence_type = AbsenceType(name=name, has_hours=has_hours)
        db_session.add(absence_type)
        await db_session.commit()
        await db_session.refresh(absence_type)
        return absence_type

    return _make


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
def headers_for():
    return auth_headers


# ── Common actors ───────────────────────────────────────────────────
@pytest.fixture
async def vacation(make_absence_type) -> AbsenceType:
    return await make_absence_type("Vacation", has_hours=False)


@pytest.fixture
async def appointment(make_absence_type) -> AbsenceType:
    return await make_absence_type("Medical appointment", has_hours=True)


@pytest.fixture
async def employee(make_person, make_user) -> User:
    person = await make_person("Erin", "Employee")
    return await make_user(UserRole.EMPLOYEE, person=person)


@pytest.fixture
async def manager(make_user) -> User:
    return await make_user(UserRole.HR_MANAGER)


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.SUPER_ADMIN)
