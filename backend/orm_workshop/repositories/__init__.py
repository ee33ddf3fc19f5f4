"""
Repositories for the MVC, reactive and cached workshop modules.
"""

from .base import SqlRepository, AsyncSqlRepository
from .movie import (
    ActorRepository,
    MovieRepository,
    ActorAsyncRepository,
    MovieAsyncRepository,
)
from .post import PostRepository, CommentRepository, CustomerRepository
from .country import CountryRepository, CachedCountryRepository
from .user import (
    UserCacheRepository,
    UserCredentialsCacheRepository,
    UserEventCacheRepository,
)

__all__ = [
    "SqlRepository",
    "AsyncSqlRepository",
    "ActorRepository",
    "MovieRepository",
    "ActorAsyncRepository",
    "MovieAsyncRepository",
    "PostRepository",
    "CommentRepository",
    "CustomerRepository",
    "CountryRepository",
    "CachedCountryRepository",
    "UserCacheRepository",
    "UserCredentialsCacheRepository",
    "UserEventCacheRepository",
]
