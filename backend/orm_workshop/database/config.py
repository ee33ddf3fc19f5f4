"""
Database configuration and connection management for the ORM workshop.

This module provides RDBMS-agnostic database configuration with support for:
- SQLite (default for workshop portability)
- MySQL/MariaDB (production-ready option)
- PostgreSQL (schema-per-tenant capable)

Configuration is loaded from environment variables with sensible defaults.
Includes connection pooling, session management, and error handling.
"""

import os
import logging
from typing import Optional, Dict, Any
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool, QueuePool
from sqlalchemy.exc import SQLAlchemyError
from contextlib import contextmanager
from pathlib import Path

from .models import create_all_tables

logger = logging.getLogger(__name__)


def detect_database_type(database_url: str) -> str:
    """Detect database type from a SQLAlchemy URL."""
    if database_url.startswith('sqlite'):
        return 'sqlite'
    elif database_url.startswith('mysql') or database_url.startswith('mariadb'):
        return 'mysql'
    elif database_url.startswith('postgresql'):
        return 'postgresql'
    else:
        return 'unknown'


def build_database_url_from_env() -> str:
    """
    Build database URL from environment variables.

    Environment variables:
    - DATABASE_URL: Complete database URL (takes precedence)
    - DB_TYPE: Database type (sqlite, mysql, postgresql)
    - DB_HOST: Database host (default: localhost)
    - DB_PORT: Database port (default: varies by type)
    - DB_NAME: Database name (default: orm_workshop)
    - DB_USER: Database username
    - DB_PASSWORD: Database password

    Returns:
        Complete database URL string
    """
    database_url = os.getenv('DATABASE_URL')
    if database_url:
        return database_url

    db_type = os.getenv('DB_TYPE', 'sqlite').lower()

    if db_type == 'sqlite':
        db_name = os.getenv('DB_NAME', 'orm_workshop.db')
        # Keep the database file next to the package
        db_path = Path(__file__).parent.parent / db_name
        return f"sqlite:///{db_path}"

    elif db_type in ['mysql', 'mariadb']:
        host = os.getenv('DB_HOST', 'localhost')
        port = os.getenv('DB_PORT', '3306')
        database = os.getenv('DB_NAME', 'orm_workshop')
        username = os.getenv('DB_USER', 'root')
        password = os.getenv('DB_PASSWORD', '')
        return f"mysql+pymysql://{username}:{password}@{host}:{port}/{database}?charset=utf8mb4"

    elif db_type == 'postgresql':
        host = os.getenv('DB_HOST', 'localhost')
        port = os.getenv('DB_PORT', '5432')
        database = os.getenv('DB_NAME', 'orm_workshop')
        username = os.getenv('DB_USER', 'postgres')
        password = os.getenv('DB_PASSWORD', '')
        return f"postgresql://{username}:{password}@{host}:{port}/{database}"

    else:
        raise ValueError(f"Unsupported database type: {db_type}")


def server_pool_kwargs() -> Dict[str, Any]:
    """Connection pool settings shared by the sync and async server engines."""
    return {
        'pool_size': int(os.getenv('DB_POOL_SIZE', '10')),
        'max_overflow': int(os.getenv('DB_MAX_OVERFLOW', '20')),
        'pool_timeout': int(os.getenv('DB_POOL_TIMEOUT', '30')),
        'pool_recycle': int(os.getenv('DB_POOL_RECYCLE', '3600')),
        'pool_pre_ping': True,
    }


def mask_database_url(database_url: str) -> str:
    """Drop credentials from a URL before it is logged or returned."""
    return database_url.split('@')[-1] if '@' in database_url else database_url


class DatabaseConfig:
    """
    Database configuration manager supporting multiple RDBMS backends.

    Supports SQLite (default), MySQL, and PostgreSQL with automatic
    connection pooling and session management. An optional schema name
    routes every unqualified table into that schema, which is how the
    multi-tenant module separates tenants sharing one server.
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False, schema: Optional[str] = None):
        """
        Initialize database configuration.

        Args:
            database_url: Optional database URL override
            echo: Enable SQL query logging for debugging
            schema: Optional schema that unqualified tables are translated into
        """
        self.database_url = database_url or build_database_url_from_env()
        self.echo = echo
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None
        self._is_initialized = False

        self.db_type = detect_database_type(self.database_url)
        self.schema = self._resolve_schema(schema)
        self.engine_kwargs = self._get_engine_kwargs()

        logger.info(f"Database configuration initialized for {self.db_type}")

    def _resolve_schema(self, schema: Optional[str]) -> Optional[str]:
        if schema and self.db_type == 'sqlite':
            logger.debug(f"SQLite has no schemas, ignoring schema '{schema}'")
            return None
        return schema

    def create_schema_statement(self):
        """
        DDL that creates the configured schema, or None when there is nothing to create.

        MySQL treats a schema as a database, so it gets CREATE DATABASE.
        """
        if not self.schema:
            return None
        if self.db_type == 'postgresql':
            return text(f'CREATE SCHEMA IF NOT EXISTS "{self.schema}"')
        if self.db_type == 'mysql':
            return text(f"CREATE DATABASE IF NOT EXISTS `{self.schema}`")
        return None

    def _get_engine_kwargs(self) -> Dict[str, Any]:
        """
        Get database-specific engine configuration.

        Returns:
            Dictionary of engine configuration parameters
        """
        kwargs = {
            'echo': self.echo,
        }

        if self.db_type == 'sqlite':
            kwargs.update({
                'poolclass': StaticPool,
                'connect_args': {
                    'check_same_thread': False,
                    'timeout': 30,
                },
                'pool_pre_ping': True,
            })

        elif self.db_type in ['mysql', 'postgresql']:
            kwargs['poolclass'] = QueuePool
            kwargs.update(server_pool_kwargs())

            if self.db_type == 'mysql':
                kwargs['connect_args'] = {
                    'charset': 'utf8mb4',
                    'connect_timeout': 30,
                }

        if self.schema:
            kwargs['execution_options'] = {'schema_translate_map': {None: self.schema}}

        return kwargs

    def initialize(self) -> None:
        """
        Initialize database engine and session factory.

        Raises:
            SQLAlchemyError: If database connection fails
        """
        if self._is_initialized:
            return

        try:
            self.engine = create_engine(self.database_url, **self.engine_kwargs)
            self._setup_event_listeners()

            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))

            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
                expire_on_commit=False  # DTOs are built after commit
            )

            self._is_initialized = True
            logger.info(f"Database engine initialized successfully ({self.db_type})")

        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise SQLAlchemyError(f"Database initialization failed: {e}")

    def _setup_event_listeners(self) -> None:
        """Set up SQLAlchemy event listeners for connection management."""

        @event.listens_for(self.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Enforce foreign keys so ON DELETE CASCADE works on SQLite."""
            if self.db_type == 'sqlite':
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        @event.listens_for(self.engine, "engine_connect")
        def receive_engine_connect(conn):
            logger.debug("Database connection established")

    def create_tables(self) -> None:
        """
        Create the tenant schema (when configured) and all tables.

        Raises:
            SQLAlchemyError: If table creation fails
        """
        if not self._is_initialized:
            self.initialize()

        try:
            statement = self.create_schema_statement()
            if statement is not None:
                with self.engine.begin() as conn:
                    conn.execute(statement)
            create_all_tables(self.engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create tables: {e}")
            raise SQLAlchemyError(f"Table creation failed: {e}")

    def get_session(self) -> Session:
        """
        Get a new database session.

        Raises:
            SQLAlchemyError: If session creation fails
        """
        if not self._is_initialized:
            self.initialize()

        try:
            return self.SessionLocal()
        except Exception as e:
            logger.error(f"Failed to create session: {e}")
            raise SQLAlchemyError(f"Session creation failed: {e}")

    @contextmanager
    def get_session_context(self):
        """
        Get a database session with automatic cleanup.

        Usage:
            with db_config.get_session_context() as session:
                # Use session here
                pass

        Yields:
            SQLAlchemy session with automatic commit/rollback
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()

    def test_connection(self) -> bool:
        """
        Test database connectivity.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            if not self._is_initialized:
                self.initialize()

            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    def get_connection_info(self) -> Dict[str, Any]:
        """
        Get database connection information for monitoring.

        Returns:
            Dictionary with connection details
        """
        info = {
            'database_type': self.db_type,
            'database_url': mask_database_url(self.database_url),
            'schema': self.schema,
            'is_initialized': self._is_initialized,
            'echo_enabled': self.echo,
        }

        if self.engine and hasattr(self.engine.pool, 'size'):
            info.update({
                'pool_size': self.engine.pool.size(),
                'checked_in': self.engine.pool.checkedin(),
                'checked_out': self.engine.pool.checkedout(),
            })

        return info

    def close(self) -> None:
        """Close database connections and clean up resources."""
        if self.engine:
            self.engine.dispose()
            self._is_initialized = False
            logger.info("Database connections closed")


# Global database configuration instance
_db_config: Optional[DatabaseConfig] = None


def get_database_config(database_url: Optional[str] = None, echo: bool = False) -> DatabaseConfig:
    """
    Get or create the global database configuration instance.

    Args:
        database_url: Optional database URL override
        echo: Enable SQL query logging

    Returns:
        DatabaseConfig instance
    """
    global _db_config

    if _db_config is None:
        _db_config = DatabaseConfig(database_url=database_url, echo=echo)

    return _db_config


def initialize_database(database_url: Optional[str] = None, echo: bool = False, create_tables: bool = True) -> DatabaseConfig:
    """
    Initialize the global database, optionally creating its tables.

    Returns:
        Initialized DatabaseConfig instance
    """
    db_config = get_database_config(database_url=database_url, echo=echo)
    db_config.initialize()

    if create_tables:
        db_config.create_tables()

    return db_config


def get_db_session() -> Session:
    """Get a database session using the global configuration."""
    return get_database_config().get_session()


@contextmanager
def get_db_session_context():
    """Get a database session context using the global configuration."""
    with get_database_config().get_session_context() as session:
        yield session


__all__ = [
    'DatabaseConfig',
    'detect_database_type',
    'build_database_url_from_env',
    'mask_database_url',
    'get_database_config',
    'initialize_database',
    'get_db_session',
    'get_db_session_context',
]
