"""
FastAPI dependencies handing out sessions and repositories from app.state.
"""

from typing import AsyncIterator, Iterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from ..cache.manager import CacheManager
from ..repositories import (
    ActorAsyncRepository,
    ActorRepository,
    CachedCountryRepository,
    CommentRepository,
    CustomerRepository,
    MovieAsyncRepository,
    MovieRepository,
    PostRepository,
    UserCacheRepository,
    UserCredentialsCacheRepository,
    UserEventCacheRepository,
)


def get_db_session(request: Request) -> Iterator[Session]:
    """Request-scoped sync session, committed when the endpoint returns."""
    with request.app.state.database.get_session_context() as session:
        yield session


async def get_async_session(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.async_database.get_session_context() as session:
        yield session


def get_tenant_session(request: Request) -> Iterator[Session]:
    """Session on the database of the tenant bound by TenantMiddleware."""
    tenant = getattr(request.state, "tenant", None)
    with request.app.state.tenant_database.get_session_context(tenant) as session:
        yield session


def get_cache_manager(request: Request) -> CacheManager:
    return request.app.state.cache_manager


def get_country_repository(request: Request) -> CachedCountryRepository:
    return request.app.state.country_repository


def get_user_repository(request: Request) -> UserCacheRepository:
    return request.app.state.user_repository


def get_user_credentials_repository(request: Request) -> UserCredentialsCacheRepository:
    return request.app.state.user_credentials_repository


def get_user_event_repository(request: Request) -> UserEventCacheRepository:
    return request.app.state.user_event_repository


# Repositories over the request-scoped session

def get_actor_repository(session: Session = Depends(get_db_session)) -> ActorRepository:
    return ActorRepository(session)


def get_movie_repository(session: Session = Depends(get_db_session)) -> MovieRepository:
    return MovieRepository(session)


def get_tenant_actor_repository(session: Session = Depends(get_tenant_session)) -> ActorRepository:
    return ActorRepository(session)


def get_actor_async_repository(session: AsyncSession = Depends(get_async_session)) -> ActorAsyncRepository:
    return ActorAsyncRepository(session)


def get_movie_async_repository(session: AsyncSession = Depends(get_async_session)) -> MovieAsyncRepository:
    return MovieAsyncRepository(session)


def get_post_repository(session: AsyncSession = Depends(get_async_session)) -> PostRepository:
    return PostRepository(session)


def get_comment_repository(session: AsyncSession = Depends(get_async_session)) -> CommentRepository:
    return CommentRepository(session)


def get_customer_repository(session: AsyncSession = Depends(get_async_session)) -> CustomerRepository:
    return CustomerRepository(session)
