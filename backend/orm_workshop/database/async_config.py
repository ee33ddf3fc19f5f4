"""
Async database configuration for the reactive workshop modules.

Mirrors DatabaseConfig on top of SQLAlchemy's asyncio extension. A sync URL
is accepted and rewritten to the matching async driver:
- sqlite -> sqlite+aiosqlite
- mysql / mysql+pymysql -> mysql+aiomysql
- postgresql / postgresql+psycopg2 -> postgresql+asyncpg
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from .config import build_database_url_from_env, detect_database_type, mask_database_url, server_pool_kwargs
from .models import create_all_tables

logger = logging.getLogger(__name__)

ASYNC_DRIVERS = {
    'sqlite': 'sqlite+aiosqlite',
    'mysql': 'mysql+aiomysql',
    'postgresql': 'postgresql+asyncpg',
}


def to_async_url(database_url: str) -> str:
    """
    Rewrite a database URL to use the asyncio driver for its backend.

    URLs that already name an async driver are returned unchanged.
    """
    url = make_url(database_url)
    if url.drivername in ASYNC_DRIVERS.values():
        return database_url

    db_type = detect_database_type(database_url)
    if db_type not in ASYNC_DRIVERS:
        raise ValueError(f"No async driver known for database URL: {mask_database_url(database_url)}")

    return url.set(drivername=ASYNC_DRIVERS[db_type]).render_as_string(hide_password=False)


class AsyncDatabaseConfig:
    """
    Async engine and session factory with the same contract as DatabaseConfig.
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        self.database_url = to_async_url(database_url or build_database_url_from_env())
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.SessionLocal: Optional[async_sessionmaker] = None
        self._is_initialized = False

        self.db_type = detect_database_type(self.database_url)
        self.engine_kwargs = self._get_engine_kwargs()

        logger.info(f"Async database configuration initialized for {self.db_type}")

    def _get_engine_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {'echo': self.echo}

        if self.db_type == 'sqlite':
            kwargs['connect_args'] = {'check_same_thread': False}
            # An in-memory database lives only as long as its one connection
            if make_url(self.database_url).database in (None, '', ':memory:'):
                kwargs['poolclass'] = StaticPool
        else:
            kwargs.update(server_pool_kwargs())

        return kwargs

    async def initialize(self) -> None:
        """
        Create the async engine and probe it.

        Raises:
            SQLAlchemyError: If the database cannot be reached
        """
        if self._is_initialized:
            return

        try:
            self.engine = create_async_engine(self.database_url, **self.engine_kwargs)

            if self.db_type == 'sqlite':
                @event.listens_for(self.engine.sync_engine, "connect")
                def set_sqlite_pragma(dbapi_connection, connection_record):
                    cursor = dbapi_connection.cursor()
                    cursor.execute("PRAGMA foreign_keys=ON")
                    cursor.close()

            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

            self.SessionLocal = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            self._is_initialized = True
            logger.info(f"Async database engine initialized successfully ({self.db_type})")

        except Exception as e:
            logger.error(f"Failed to initialize async database: {e}")
            raise SQLAlchemyError(f"Async database initialization failed: {e}")

    async def create_tables(self) -> None:
        if not self._is_initialized:
            await self.initialize()

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(create_all_tables)
            logger.info("Async database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create tables: {e}")
            raise SQLAlchemyError(f"Table creation failed: {e}")

    async def get_session(self) -> AsyncSession:
        if not self._is_initialized:
            await self.initialize()
        return self.SessionLocal()

    @asynccontextmanager
    async def get_session_context(self) -> AsyncIterator[AsyncSession]:
        """
        Async session with commit on success and rollback on error.

        Usage:
            async with db_config.get_session_context() as session:
                ...
        """
        session = await self.get_session()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Async database session error: {e}")
            raise
        finally:
            await session.close()

    async def test_connection(self) -> bool:
        try:
            if not self._is_initialized:
                await self.initialize()

            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Async database connection test failed: {e}")
            return False

    def get_connection_info(self) -> Dict[str, Any]:
        return {
            'database_type': self.db_type,
            'database_url': mask_database_url(self.database_url),
            'is_initialized': self._is_initialized,
            'echo_enabled': self.echo,
        }

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self._is_initialized = False
            logger.info("Async database connections closed")


__all__ = [
    'AsyncDatabaseConfig',
    'to_async_url',
]
