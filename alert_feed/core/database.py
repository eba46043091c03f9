"""
Async engine and unit-of-work sessions for the alerts database.

Failures raised by SQLAlchemy or the asyncpg driver inside a session leave
it as ``StorageError``.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from alert_feed.core.config import Settings, get_settings
from alert_feed.core.exceptions import StorageError

logger = logging.getLogger(__name__)

# asyncpg reports an unreachable server as an OSError subclass
DRIVER_ERRORS = (SQLAlchemyError, OSError)


class Base(DeclarativeBase):
    """Declarative base for the alert tables."""
    pass


class AlertDatabase:
    """
    Owns the async engine behind the ``alerts`` table.

    The API connects with a connection pool; one-shot scripts pass
    ``pooled=False`` so no connection outlives the command.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Alert database not connected. Call connect() first.")
        return self._engine

    async def connect(self, pooled: bool = True) -> None:
        """
        Create the engine. Calling it again while connected is a no-op.

        Args:
            pooled: Keep a connection pool (API) or open one connection per
                session (scripts)
        """
        if self._engine is not None:
            return

        settings = self._settings or get_settings()
        if pooled:
            pool_options = {
                "pool_size": settings.POSTGRES_POOL_SIZE,
                "max_overflow": settings.POSTGRES_MAX_OVERFLOW,
                "pool_pre_ping": True,
            }
        else:
            pool_options = {"poolclass": NullPool}

        self._engine = create_async_engine(
            settings.postgres_url,
            echo=settings.DEBUG,
            **pool_options,
        )
        self._sessionmaker = async_sessionmaker(
            self._engine,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Alert database engine ready for %s on %s:%s",
            settings.POSTGRES_DB, settings.POSTGRES_HOST, settings.POSTGRES_PORT,
        )

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    async def create_schema(self) -> List[str]:
        """
        Create the alert tables, constraints and indexes that do not exist yet.

        Returns:
            Names of the tables in the schema
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        return [table.name for table in Base.metadata.sorted_tables]

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        One transaction: committed when the block exits, rolled back on error.

        Raises:
            RuntimeError: If the database is not connected
            StorageError: If the database or the connection to it failed
        """
        if self._sessionmaker is None:
            raise RuntimeError("Alert database not connected. Call connect() first.")

        try:
            async with self._sessionmaker.begin() as session:
                yield session
        except DRIVER_ERRORS as e:
            raise StorageError(str(e)) from e


# Global database instance
alert_db = AlertDatabase()
