"""
Cache utilities for key naming conventions and TTL management.

Every cached entity lives under a cache name (a CacheKeyPrefix) followed by
its id, e.g. ``exposed:users:42``. Write-behind queues live in their own
namespace, ``write-behind:exposed:user-events``, so clearing a cache name
never drops pending writes.
"""

import random
from typing import Any, Union
from enum import Enum


class CacheKeyPrefix(str, Enum):
    """Cache names used by the workshop repositories."""

    # Country lookups by ISO code
    COUNTRY = "cache:code:country"

    # Entity caches backed by cache repositories
    USERS = "exposed:users"
    USER_CREDENTIALS = "exposed:user-credentials"
    USER_EVENTS = "exposed:user-events"

    # Namespace for write-behind queues
    WRITE_BEHIND = "write-behind"

    HEALTH = "health"


class TTLPreset(int, Enum):
    """Standard TTL presets in seconds."""

    NEAR_CACHE = 60             # 1 minute
    DEFAULT = 3600              # 1 hour
    COUNTRY = 86400             # 24 hours


def _prefix_value(prefix: Union[CacheKeyPrefix, str]) -> str:
    return prefix.value if isinstance(prefix, CacheKeyPrefix) else str(prefix)


class CacheKeyBuilder:
    """
    Builds namespaced cache keys and SCAN patterns.
    """

    @staticmethod
    def build_key(prefix: Union[CacheKeyPrefix, str], *parts: Any, **params: Any) -> str:
        """
        Build a cache key with prefix, parts, and parameters.

        Example:
            build_key(CacheKeyPrefix.USERS, 42)
            # Returns: "exposed:users:42"
            build_key(CacheKeyPrefix.COUNTRY, "country", "KR")
            # Returns: "cache:code:country:country:KR"
        """
        key_parts = [_prefix_value(prefix)]

        for part in parts:
            if part is not None:
                key_parts.append(str(part))

        # sorted so the same filters always give the same key
        for key, value in sorted(params.items()):
            if value is not None:
                key_parts.append(f"{key}={value}")

        return ":".join(key_parts)

    @staticmethod
    def build_pattern(prefix: Union[CacheKeyPrefix, str], *parts: str) -> str:
        """
        Example:
            build_pattern(CacheKeyPrefix.USERS, "*")
            # Returns: "exposed:users:*"
        """
        pattern_parts = [_prefix_value(prefix)]
        pattern_parts.extend(parts)
        return ":".join(pattern_parts)


class TTLCalculator:
    """
    TTL calculation with jitter to avoid expiration clustering.
    """

    @staticmethod
    def calculate_ttl_with_jitter(
        base_ttl: Union[int, TTLPreset],
        jitter_percent: float = 0.1,
        min_ttl: int = 30
    ) -> int:
        """
        Example:
            calculate_ttl_with_jitter(3600, 0.1)  # 3240 to 3960 seconds
        """
        base_seconds = int(base_ttl)
        jitter_range = int(base_seconds * jitter_percent)

        jitter = random.randint(-jitter_range, jitter_range)
        final_ttl = base_seconds + jitter

        return max(final_ttl, min(min_ttl, base_seconds))


class CacheKeyManager:
    """
    Key helpers for the workshop caches plus key validation.
    """

    def __init__(self):
        self.key_builder = CacheKeyBuilder()
        self.ttl_calculator = TTLCalculator()

    def entity_key(self, cache_name: Union[CacheKeyPrefix, str], entity_id: Any) -> str:
        """Key of a single cached entity."""
        return self.key_builder.build_key(cache_name, entity_id)

    def entity_pattern(self, cache_name: Union[CacheKeyPrefix, str], pattern: str = "*") -> str:
        """SCAN pattern over the entities of a cache name."""
        return self.key_builder.build_pattern(cache_name, pattern)

    def write_behind_key(self, cache_name: Union[CacheKeyPrefix, str]) -> str:
        """Valkey list holding pending write-behind entries."""
        return self.key_builder.build_key(CacheKeyPrefix.WRITE_BEHIND, _prefix_value(cache_name))

    def country_key(self, code: str) -> str:
        return self.key_builder.build_key(CacheKeyPrefix.COUNTRY, "country", code)

    def validate_key(self, key: str) -> bool:
        """
        Keys must be non-empty strings up to 250 chars without whitespace.
        """
        if not key or not isinstance(key, str):
            return False

        if len(key) > 250:
            return False

        invalid_chars = ['\n', '\r', '\t', ' ']
        if any(char in key for char in invalid_chars):
            return False

        return True


# Global key manager instance
key_manager = CacheKeyManager()
