"""
Async SQLAlchemy engine & session factory (asyncpg in production,
aiosqlite for local runs and tests).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings


def _engine_args(url: str) -> dict:
    args: dict = {"echo": False, "pool_pre_ping": True}
    if url.startswith("postgresql"):
        args.update(pool_size=10, max_overflow=10, pool_recycle=300)
    return args


engine = create_async_engine(settings.DATABASE_URL, **_engine_args(settings.DATABASE_URL))

# Keep attribute values after commit so committed absences can still be
# serialised and passed to event handlers without a reload.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession and close it after use."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
