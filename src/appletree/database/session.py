from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from appletree.config import get_settings


@lru_cache
def get_engine() -> AsyncEngine:
    """
    Build the process-wide AsyncEngine on first use.

    Created lazily so importing the package never opens a connection pool and
    tests can swap settings before the first call.
    """
    settings = get_settings()
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,
        pool_pre_ping=True,              # Enables connection health checks
    )


@lru_cache
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: repositories return detached values that stay readable after commit
    return async_sessionmaker(
        bind=get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency. Yields a session and ensures it's closed after the request.

    The caller owns the transaction: commit once the unit of work succeeds.

    Usage:
        async def endpoint(db: AsyncSession = Depends(get_async_session)):
            repo = SchoolRepository(db)
            await repo.insert(school)
            await db.commit()
    """
    async with get_sessionmaker()() as session:
        yield session
