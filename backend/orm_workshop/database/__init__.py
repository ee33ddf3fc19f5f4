"""
Database package for the ORM workshop.

This package provides SQLAlchemy models, sync and async database
configuration, and the sample data every workshop module starts from.
"""

from .models import (
    Base,
    Actor,
    Movie,
    actors_in_movies,
    Post,
    Comment,
    Customer,
    Country,
    User,
    UserCredentials,
    UserEvent,
    create_all_tables,
    drop_all_tables,
)

from .config import (
    DatabaseConfig,
    get_database_config,
    initialize_database,
    get_db_session,
    get_db_session_context,
)

from .async_config import AsyncDatabaseConfig, to_async_url

from .initializer import COUNTRY_CODES, DatabaseInitializer

__all__ = [
    # Models
    'Base',
    'Actor',
    'Movie',
    'actors_in_movies',
    'Post',
    'Comment',
    'Customer',
    'Country',
    'User',
    'UserCredentials',
    'UserEvent',
    'create_all_tables',
    'drop_all_tables',

    # Configuration
    'DatabaseConfig',
    'AsyncDatabaseConfig',
    'to_async_url',
    'get_database_config',
    'initialize_database',
    'get_db_session',
    'get_db_session_context',

    # Sample data
    'COUNTRY_CODES',
    'DatabaseInitializer',
]
