"""
Caching layer for the ORM workshop.

Valkey client configuration, the cache manager with graceful degradation,
and the read-through / write-through / write-behind cache repositories.
"""

from .config import ValkeyConfig, ValkeyConnectionError, ValkeyConfigurationError
from .client import ValkeyClient
from .utils import (
    CacheKeyPrefix,
    TTLPreset,
    CacheKeyBuilder,
    TTLCalculator,
    CacheKeyManager,
    key_manager
)
from .manager import CacheManager, CacheStats
from .strategies import (
    CacheMode,
    WriteMode,
    CacheRepositoryConfig,
    NearCache,
    AbstractCacheRepository,
    READ_ONLY_THROUGH,
    READ_ONLY_THROUGH_WITH_NEAR_CACHE,
    READ_WRITE_THROUGH,
    READ_WRITE_THROUGH_WITH_NEAR_CACHE,
    WRITE_BEHIND,
    WRITE_BEHIND_WITH_NEAR_CACHE,
)

__all__ = [
    # Configuration
    "ValkeyConfig",
    "ValkeyConnectionError",
    "ValkeyConfigurationError",

    # Client
    "ValkeyClient",

    # Manager
    "CacheManager",
    "CacheStats",

    # Utilities
    "CacheKeyPrefix",
    "TTLPreset",
    "CacheKeyBuilder",
    "TTLCalculator",
    "CacheKeyManager",
    "key_manager",

    # Cache repositories
    "CacheMode",
    "WriteMode",
    "CacheRepositoryConfig",
    "NearCache",
    "AbstractCacheRepository",
    "READ_ONLY_THROUGH",
    "READ_ONLY_THROUGH_WITH_NEAR_CACHE",
    "READ_WRITE_THROUGH",
    "READ_WRITE_THROUGH_WITH_NEAR_CACHE",
    "WRITE_BEHIND",
    "WRITE_BEHIND_WITH_NEAR_CACHE",
]
