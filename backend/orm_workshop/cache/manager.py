"""
Cache manager with error handling and graceful degradation.

Wraps Valkey operations used by the cache repositories (single and bulk
key access, pattern invalidation and the write-behind queue) with a
circuit breaker, an in-memory fallback store and operation statistics.
"""

import fnmatch
import json
import logging
import time
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Optional, Union, Callable, Awaitable
from datetime import datetime, timedelta
from dataclasses import dataclass, field

from valkey.exceptions import ConnectionError, TimeoutError, ResponseError

from .client import ValkeyClient
from .config import ValkeyConfig, ValkeyConnectionError
from .utils import CacheKeyPrefix, TTLCalculator, TTLPreset, key_manager

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache operation statistics."""

    hit_count: int = 0
    miss_count: int = 0
    error_count: int = 0
    set_count: int = 0
    delete_count: int = 0
    queued_count: int = 0
    total_operations: int = 0

    total_response_time_ms: float = 0.0
    min_response_time_ms: float = float('inf')
    max_response_time_ms: float = 0.0

    connection_errors: int = 0
    timeout_errors: int = 0
    other_errors: int = 0

    degraded_operations: int = 0
    fallback_operations: int = 0

    start_time: datetime = field(default_factory=datetime.now)

    @property
    def hit_ratio(self) -> float:
        total_reads = self.hit_count + self.miss_count
        return self.hit_count / total_reads if total_reads > 0 else 0.0

    @property
    def error_ratio(self) -> float:
        return self.error_count / self.total_operations if self.total_operations > 0 else 0.0

    @property
    def avg_response_time_ms(self) -> float:
        return (self.total_response_time_ms / self.total_operations
                if self.total_operations > 0 else 0.0)

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now() - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hit_count": self.hit_count,
            "miss_count": self.miss_count,
            "error_count": self.error_count,
            "set_count": self.set_count,
            "delete_count": self.delete_count,
            "queued_count": self.queued_count,
            "total_operations": self.total_operations,
            "hit_ratio": self.hit_ratio,
            "error_ratio": self.error_ratio,
            "avg_response_time_ms": self.avg_response_time_ms,
            "min_response_time_ms": self.min_response_time_ms if self.min_response_time_ms != float('inf') else 0.0,
            "max_response_time_ms": self.max_response_time_ms,
            "connection_errors": self.connection_errors,
            "timeout_errors": self.timeout_errors,
            "other_errors": self.other_errors,
            "degraded_operations": self.degraded_operations,
            "fallback_operations": self.fallback_operations,
            "uptime_seconds": self.uptime_seconds,
        }


def _serialize(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value)
    return str(value)


def _deserialize(raw: Any) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw


class CacheManager:
    """
    High-level cache manager with error handling and graceful degradation.

    Without a client every operation runs against the in-memory fallback
    store, which is how the workshop runs when no Valkey server is around.
    Repeated failures open a circuit breaker that routes operations to the
    fallback store until circuit_breaker_timeout has passed.
    """

    def __init__(
        self,
        client: Optional[ValkeyClient] = None,
        config: Optional[ValkeyConfig] = None,
        enable_fallback: bool = True,
        circuit_breaker_threshold: int = 5,
        circuit_breaker_timeout: int = 60,
        fallback_max_size: int = 1000,
        connect_attempts: int = 5,
    ):
        self.client = client
        self.config = config
        self.enable_fallback = enable_fallback
        self.key_manager = key_manager
        self.ttl_calculator = TTLCalculator()

        self.stats = CacheStats()

        self.circuit_breaker_threshold = circuit_breaker_threshold
        self.circuit_breaker_timeout = circuit_breaker_timeout
        self.consecutive_failures = 0
        self.circuit_open_time: Optional[datetime] = None
        self.is_circuit_open = False

        self._fallback_cache: Dict[str, Dict[str, Any]] = {}
        self._fallback_queues: Dict[str, Deque[Any]] = {}
        self._fallback_max_size = fallback_max_size
        self._connect_attempts = connect_attempts

        logger.info("CacheManager initialized with fallback enabled: %s", enable_fallback)

    @property
    def is_degraded(self) -> bool:
        """True when operations are served by the in-memory fallback store."""
        return self.client is None or self._is_circuit_breaker_open()

    async def initialize(self) -> None:
        """
        Connect to Valkey, dropping to fallback-only mode if that fails.

        Raises:
            ValkeyConnectionError: If the server is unreachable and fallback is disabled
        """
        if not self.client:
            self.client = ValkeyClient(
                self.config or ValkeyConfig.from_env(),
                max_connection_attempts=self._connect_attempts,
            )

        try:
            await self.client.ensure_connection()
            logger.info("CacheManager successfully connected to Valkey")
        except ValkeyConnectionError as e:
            logger.warning(f"Failed to connect to Valkey: {e}")
            if not self.enable_fallback:
                raise
            self.client = None

    def _record_operation(self, operation_type: str, response_time_ms: float) -> None:
        self.stats.total_operations += 1
        self.stats.total_response_time_ms += response_time_ms

        if response_time_ms < self.stats.min_response_time_ms:
            self.stats.min_response_time_ms = response_time_ms
        if response_time_ms > self.stats.max_response_time_ms:
            self.stats.max_response_time_ms = response_time_ms

        if operation_type == "hit":
            self.stats.hit_count += 1
        elif operation_type == "miss":
            self.stats.miss_count += 1
        elif operation_type == "set":
            self.stats.set_count += 1
        elif operation_type == "delete":
            self.stats.delete_count += 1
        elif operation_type == "queue":
            self.stats.queued_count += 1

    def _record_error(self, error: Exception) -> None:
        self.stats.error_count += 1
        self.consecutive_failures += 1

        if isinstance(error, ConnectionError):
            self.stats.connection_errors += 1
        elif isinstance(error, TimeoutError):
            self.stats.timeout_errors += 1
        else:
            self.stats.other_errors += 1

        if self.consecutive_failures >= self.circuit_breaker_threshold and not self.is_circuit_open:
            self.is_circuit_open = True
            self.circuit_open_time = datetime.now()
            logger.warning(
                f"Circuit breaker opened after {self.consecutive_failures} consecutive failures"
            )

    def _record_success(self) -> None:
        self.consecutive_failures = 0

        if self.is_circuit_open:
            self.is_circuit_open = False
            self.circuit_open_time = None
            logger.info("Circuit breaker closed after successful operation")

    def _is_circuit_breaker_open(self) -> bool:
        if not self.is_circuit_open or self.circuit_open_time is None:
            return False

        elapsed = (datetime.now() - self.circuit_open_time).total_seconds()
        if elapsed >= self.circuit_breaker_timeout:
            logger.info("Circuit breaker timeout expired, allowing retry")
            return False

        return True

    async def _execute_with_fallback(
        self,
        operation: Callable[[], Awaitable[Any]],
        fallback: Optional[Callable[[], Any]] = None,
    ) -> Any:
        """
        Run a Valkey operation, falling back to the in-memory store on failure.

        Returns:
            Operation result, fallback result, or None
        """
        if self._is_circuit_breaker_open():
            logger.debug("Circuit breaker is open, using fallback")
            self.stats.degraded_operations += 1
            if fallback:
                return fallback()
            return None

        try:
            result = await operation()
            self._record_success()
            return result

        except (ConnectionError, TimeoutError, ResponseError, ValkeyConnectionError) as e:
            logger.warning(f"Cache operation failed: {e}")
            self._record_error(e)

            if self.enable_fallback and fallback:
                logger.debug("Using fallback for failed cache operation")
                self.stats.fallback_operations += 1
                return fallback()

            return None

    # Fallback store

    def _fallback_get(self, key: str) -> Optional[Any]:
        entry = self._fallback_cache.get(key)
        if entry is None:
            return None
        if entry.get("expires_at") and datetime.now() > entry["expires_at"]:
            del self._fallback_cache[key]
            return None
        return entry.get("value")

    def _fallback_set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        if key not in self._fallback_cache and len(self._fallback_cache) >= self._fallback_max_size:
            # FIFO eviction
            oldest_key = next(iter(self._fallback_cache))
            del self._fallback_cache[oldest_key]

        entry: Dict[str, Any] = {"value": value}
        if ttl:
            entry["expires_at"] = datetime.now() + timedelta(seconds=ttl)

        self._fallback_cache[key] = entry

    def _fallback_delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self._fallback_cache.pop(key, None) is not None:
                deleted += 1
            if self._fallback_queues.pop(key, None) is not None:
                deleted += 1
        return deleted

    def _fallback_keys(self, pattern: str) -> List[str]:
        names = list(self._fallback_cache) + list(self._fallback_queues)
        return [key for key in names if fnmatch.fnmatchcase(key, pattern)]

    def _resolve_ttl(self, ttl: Optional[Union[int, TTLPreset]], jitter: bool) -> Optional[int]:
        if ttl is None:
            return None
        base_ttl = int(ttl)
        if base_ttl <= 0:
            return None
        if jitter:
            return self.ttl_calculator.calculate_ttl_with_jitter(base_ttl)
        return base_ttl

    # Key/value operations

    async def get(self, key: str, default: Any = None) -> Any:
        """
        Get value from cache with fallback support.

        Returns:
            Cached value, fallback value, or default
        """
        if not self.client:
            result = self._fallback_get(key)
            self._record_operation("miss" if result is None else "hit", 0.0)
            return result if result is not None else default

        async def cache_operation():
            start_time = time.time()
            await self.client.ensure_connection()
            raw = self.client.client.get(key)
            elapsed_ms = (time.time() - start_time) * 1000
            if raw is None:
                self._record_operation("miss", elapsed_ms)
                return None
            self._record_operation("hit", elapsed_ms)
            return _deserialize(raw)

        result = await self._execute_with_fallback(cache_operation, lambda: self._fallback_get(key))
        return result if result is not None else default

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """
        Fetch several keys in one round trip.

        Returns:
            Mapping of key to value for the keys that were found
        """
        keys = list(keys)
        if not keys:
            return {}

        def fallback_operation():
            found = {}
            for key in keys:
                value = self._fallback_get(key)
                if value is not None:
                    found[key] = value
            return found

        if not self.client:
            found = fallback_operation()
            self.stats.hit_count += len(found)
            self.stats.miss_count += len(keys) - len(found)
            self.stats.total_operations += 1
            return found

        async def cache_operation():
            start_time = time.time()
            await self.client.ensure_connection()
            raws = self.client.client.mget(keys)
            found = {
                key: _deserialize(raw)
                for key, raw in zip(keys, raws)
                if raw is not None
            }
            self._record_operation("get_many", (time.time() - start_time) * 1000)
            self.stats.hit_count += len(found)
            self.stats.miss_count += len(keys) - len(found)
            return found

        result = await self._execute_with_fallback(cache_operation, fallback_operation)
        return result or {}

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[Union[int, TTLPreset]] = None,
        jitter: bool = True
    ) -> bool:
        """
        Set value in cache with TTL and jitter support.

        Args:
            key: Cache key
            value: Value to cache, dicts and lists are stored as JSON
            ttl: Time to live in seconds or TTLPreset, None or 0 keeps the key forever
            jitter: Apply jitter to TTL to prevent clustering

        Returns:
            True if successful, False otherwise
        """
        if not key_manager.validate_key(key):
            logger.warning(f"Refusing to cache invalid key: {key!r}")
            return False

        final_ttl = self._resolve_ttl(ttl, jitter)

        def fallback_operation():
            self._fallback_set(key, value, final_ttl)
            return True

        if not self.client:
            self._record_operation("set", 0.0)
            return fallback_operation()

        async def cache_operation():
            start_time = time.time()
            await self.client.ensure_connection()
            serialized_value = _serialize(value)
            if final_ttl:
                result = self.client.client.setex(key, final_ttl, serialized_value)
            else:
                result = self.client.client.set(key, serialized_value)
            self._record_operation("set", (time.time() - start_time) * 1000)
            return bool(result)

        result = await self._execute_with_fallback(cache_operation, fallback_operation)
        return bool(result)

    async def delete(self, key: str) -> bool:
        """
        Returns:
            True if key was deleted, False otherwise
        """
        return await self.delete_many([key]) > 0

    async def delete_many(self, keys: Iterable[str]) -> int:
        """
        Returns:
            Number of keys removed
        """
        keys = list(keys)
        if not keys:
            return 0

        if not self.client:
            self._record_operation("delete", 0.0)
            return self._fallback_delete(*keys)

        async def cache_operation():
            start_time = time.time()
            await self.client.ensure_connection()
            deleted = self.client.client.delete(*keys)
            self._record_operation("delete", (time.time() - start_time) * 1000)
            return int(deleted or 0)

        result = await self._execute_with_fallback(cache_operation, lambda: self._fallback_delete(*keys))
        return result or 0

    async def exists(self, key: str) -> bool:
        if not self.client:
            return self._fallback_get(key) is not None or key in self._fallback_queues

        async def cache_operation():
            await self.client.ensure_connection()
            return bool(self.client.client.exists(key))

        result = await self._execute_with_fallback(
            cache_operation,
            lambda: self._fallback_get(key) is not None,
        )
        return bool(result)

    async def get_ttl(self, key: str) -> Optional[int]:
        """
        Returns:
            Remaining TTL in seconds, None if key doesn't exist or has no TTL
        """
        if not self.client:
            entry = self._fallback_cache.get(key)
            if entry and "expires_at" in entry:
                remaining = (entry["expires_at"] - datetime.now()).total_seconds()
                return max(0, int(remaining))
            return None

        async def cache_operation():
            await self.client.ensure_connection()
            result = self.client.client.ttl(key)
            return result if result > 0 else None

        return await self._execute_with_fallback(cache_operation)

    async def clear_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a glob pattern.

        Returns:
            Number of keys deleted
        """
        if not self.client:
            return self._fallback_delete(*self._fallback_keys(pattern))

        async def cache_operation():
            await self.client.ensure_connection()
            keys = list(self.client.client.scan_iter(match=pattern))
            if keys:
                deleted = self.client.client.delete(*keys)
                self._record_operation("delete", 0.0)
                return deleted
            return 0

        result = await self._execute_with_fallback(
            cache_operation,
            lambda: self._fallback_delete(*self._fallback_keys(pattern)),
        )
        return result or 0

    # Queue operations for write-behind

    async def push_queue(self, key: str, *values: Any) -> int:
        """
        Append values to the tail of a list.

        Returns:
            Queue length after the push
        """
        if not values:
            return await self.queue_length(key)

        def fallback_operation():
            queue = self._fallback_queues.setdefault(key, deque())
            queue.extend(values)
            return len(queue)

        if not self.client:
            self.stats.queued_count += len(values)
            return fallback_operation()

        async def cache_operation():
            await self.client.ensure_connection()
            length = self.client.client.rpush(key, *[_serialize(v) for v in values])
            self.stats.queued_count += len(values)
            return int(length)

        result = await self._execute_with_fallback(cache_operation, fallback_operation)
        return result or 0

    async def pop_queue(self, key: str, count: int) -> List[Any]:
        """
        Remove up to count values from the head of a list.
        """
        def fallback_operation():
            queue = self._fallback_queues.get(key)
            if not queue:
                return []
            popped = [queue.popleft() for _ in range(min(count, len(queue)))]
            if not queue:
                del self._fallback_queues[key]
            return popped

        # Drain values parked in memory during an outage first
        popped = fallback_operation()
        if not self.client or len(popped) >= count:
            return popped

        async def cache_operation():
            await self.client.ensure_connection()
            raws = self.client.client.lpop(key, count - len(popped))
            if not raws:
                return []
            if not isinstance(raws, list):
                raws = [raws]
            return [_deserialize(raw) for raw in raws]

        result = await self._execute_with_fallback(cache_operation, lambda: [])
        return popped + (result or [])

    async def queue_length(self, key: str) -> int:
        def fallback_operation():
            return len(self._fallback_queues.get(key, ()))

        if not self.client:
            return fallback_operation()

        async def cache_operation():
            await self.client.ensure_connection()
            return int(self.client.client.llen(key)) + fallback_operation()

        result = await self._execute_with_fallback(cache_operation, fallback_operation)
        return result or 0

    async def get_stats(self) -> Dict[str, Any]:
        stats = self.stats.to_dict()

        stats.update({
            "circuit_breaker_open": self.is_circuit_open,
            "consecutive_failures": self.consecutive_failures,
            "fallback_enabled": self.enable_fallback,
            "fallback_cache_size": len(self._fallback_cache),
            "fallback_queue_size": sum(len(q) for q in self._fallback_queues.values()),
        })

        if self.client:
            try:
                stats["connection_info"] = await self.client.get_connection_info()
            except ValkeyConnectionError as e:
                stats["connection_error"] = str(e)

        return stats

    async def health_check(self) -> Dict[str, Any]:
        """
        Round-trip a probe key and report whether Valkey is serving it.
        """
        health: Dict[str, Any] = {
            "status": "unknown",
            "cache_available": False,
            "fallback_active": False,
            "circuit_breaker_open": self.is_circuit_open,
            "errors": [],
        }

        if not self.client:
            health.update({
                "status": "degraded",
                "fallback_active": True,
                "errors": ["No Valkey client available"],
            })
            return health

        test_key = key_manager.entity_key(CacheKeyPrefix.HEALTH, "probe")
        await self.set(test_key, {"timestamp": datetime.now().isoformat()}, ttl=60, jitter=False)
        retrieved = await self.get(test_key)
        await self.delete(test_key)

        if retrieved and not self._is_circuit_breaker_open():
            health.update({
                "status": "healthy",
                "cache_available": True,
            })
        else:
            health.update({
                "status": "degraded" if self.enable_fallback else "unhealthy",
                "fallback_active": self.enable_fallback,
                "errors": ["Cache operations not working properly"],
            })

        return health

    async def close(self) -> None:
        if self.client:
            await self.client.disconnect()

        self._fallback_cache.clear()
        self._fallback_queues.clear()

        logger.info("CacheManager closed")
