from urllib.parse import urlparse

import asyncpg
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from logger import format_log, get_logger

from .config import DatabaseConfig
from .models import Base

logger = get_logger("database")


class DatabaseManager:
    """Owns an engine and session factory outside the request cycle (Celery workers, startup)."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine = create_async_engine(config.url, echo=config.echo)
        self.async_session = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def create_database_if_not_exists(self) -> None:
        """Create the PostgreSQL database if it is missing. No-op for other backends."""
        if not self.config.is_postgres:
            return

        parsed = urlparse(self.config.url)
        try:
            conn = await asyncpg.connect(
                host=parsed.hostname,
                port=parsed.port or 5432,
                user=parsed.username,
                password=parsed.password,
                database="postgres",
            )
            try:
                exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", self.config.database)
                if not exists:
                    await conn.execute(f'CREATE DATABASE "{self.config.database}"')
                    logger.info(format_log("Database created", database=self.config.database))
            finally:
                await conn.close()
        except Exception as e:
            logger.error(format_log("Failed to create database", database=self.config.database, error=e))
            raise

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created")

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
