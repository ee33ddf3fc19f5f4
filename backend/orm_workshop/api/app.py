"""
FastAPI application factory.

The lifespan builds every stateful object once and parks it on app.state:

- the sync, async and tenant-routed databases (created and seeded)
- the cache manager and the cache repositories
- the write-behind worker of the user event repository
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional, Tuple

from fastapi import FastAPI

from .. import __version__
from ..cache.config import ValkeyConfig
from ..cache.manager import CacheManager
from ..database import AsyncDatabaseConfig, DatabaseConfig, DatabaseInitializer
from ..repositories import (
    CachedCountryRepository,
    UserCacheRepository,
    UserCredentialsCacheRepository,
    UserEventCacheRepository,
)
from ..tenant.middleware import TenantMiddleware
from ..tenant.routing import TenantRoutingDatabase
from ..utils.config import WorkshopConfig, load_config
from .errors import setup_exception_handlers
from .routes import ROUTERS

logger = logging.getLogger(__name__)


async def build_cache_manager(config: WorkshopConfig) -> CacheManager:
    """
    Connect to Valkey when caching is enabled; otherwise, or when Valkey is
    unreachable, the manager serves from its in-process fallback store.
    """
    if not config.cache_enabled:
        logger.info("Valkey disabled, cache manager runs on the fallback store")
        return CacheManager(client=None)

    manager = CacheManager(config=ValkeyConfig.from_workshop_config(config))
    await manager.initialize()
    return manager


async def init_databases(config: WorkshopConfig) -> Tuple[DatabaseConfig, AsyncDatabaseConfig, TenantRoutingDatabase]:
    """
    Create the sync, async and tenant databases, seeding them when configured.
    """
    database = DatabaseConfig(config.database_url, echo=config.database_echo)
    database.create_tables()

    async_database = AsyncDatabaseConfig(
        config.async_database_url or config.database_url,
        echo=config.database_echo,
    )
    await async_database.create_tables()

    tenant_database = TenantRoutingDatabase(config.tenant_database_url, echo=config.database_echo)
    tenant_database.initialize(seed=config.seed_data)

    if config.seed_data:
        with database.get_session_context() as session:
            DatabaseInitializer().populate(session)
        async with async_database.get_session_context() as session:
            await session.run_sync(lambda s: DatabaseInitializer().populate(s))

    return database, async_database, tenant_database


def init_cache_repositories(app: FastAPI, config: WorkshopConfig) -> None:
    cache_manager = app.state.cache_manager
    async_database = app.state.async_database

    app.state.country_repository = CachedCountryRepository(async_database, cache_manager)
    app.state.user_repository = UserCacheRepository(
        cache_manager, async_database,
        UserCacheRepository.default_config.with_workshop_config(config),
    )
    app.state.user_credentials_repository = UserCredentialsCacheRepository(
        cache_manager, async_database,
        UserCredentialsCacheRepository.default_config.with_workshop_config(config),
    )
    app.state.user_event_repository = UserEventCacheRepository(
        cache_manager, async_database,
        UserEventCacheRepository.default_config.with_workshop_config(config),
    )


def create_app(config: Optional[WorkshopConfig] = None, cache_manager: Optional[CacheManager] = None) -> FastAPI:
    """
    Build the workshop API.

    Args:
        config: Settings, loaded from the environment when omitted
        cache_manager: Ready cache manager to use instead of connecting to Valkey
    """
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting ORM workshop API...")
        app.state.database, app.state.async_database, app.state.tenant_database = await init_databases(config)
        logger.info("Databases initialized successfully")

        app.state.cache_manager = cache_manager or await build_cache_manager(config)
        init_cache_repositories(app, config)
        app.state.user_event_repository.start_write_behind()

        yield

        logger.info("Shutting down ORM workshop API...")
        await app.state.user_event_repository.stop_write_behind()
        await app.state.cache_manager.close()
        await app.state.async_database.close()
        app.state.database.close()
        app.state.tenant_database.close()

    app = FastAPI(
        title="ORM Workshop API",
        description="SQLAlchemy CRUD, multi-tenant routing and Valkey cache strategies",
        version=__version__,
        debug=config.workshop_debug,
        lifespan=lifespan,
    )
    app.state.config = config

    app.add_middleware(TenantMiddleware, path_prefix="/multitenant")
    setup_exception_handlers(app)

    for router in ROUTERS:
        app.include_router(router)

    return app
