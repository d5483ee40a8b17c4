"""Dependency injection for FastAPI."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config.settings import settings


@lru_cache
def get_async_engine():
    return create_async_engine(settings.database.url, echo=settings.database.echo, pool_pre_ping=True)


def get_async_session_maker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_async_engine(), class_=AsyncSession, expire_on_commit=False)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session. Uncommitted work is rolled back on exit."""
    async_session = get_async_session_maker()
    async with async_session() as session:
        yield session
