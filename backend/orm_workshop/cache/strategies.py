"""
Cache repositories: read-through, write-through and write-behind over Valkey.

A cache repository pairs a Valkey cache name with an ORM table. Reads go
near cache -> Valkey -> database and populate the layers they missed.
Writes always land in the cache; what happens to the database depends on
the write mode:

- read-only: the database is never written
- write-through: the row is upserted before put() returns
- write-behind: the row is queued in Valkey and a background worker
  flushes the queue in batches
"""

import asyncio
import fnmatch
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, Type, TypeVar

from cachetools import TTLCache
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.async_config import AsyncDatabaseConfig
from ..models import WorkshopModel
from .manager import CacheManager
from .utils import TTLPreset, key_manager

logger = logging.getLogger(__name__)

DTO = TypeVar("DTO", bound=WorkshopModel)


class CacheMode(str, Enum):
    READ_ONLY = "read_only"
    READ_WRITE = "read_write"


class WriteMode(str, Enum):
    WRITE_THROUGH = "write_through"
    WRITE_BEHIND = "write_behind"


@dataclass(frozen=True)
class CacheRepositoryConfig:
    """
    How a cache repository reads and writes.

    Use the presets below and adjust them with ``with_options``.
    """

    cache_mode: CacheMode = CacheMode.READ_ONLY
    write_mode: Optional[WriteMode] = None
    use_near_cache: bool = False
    delete_from_db_on_invalidate: bool = False
    ttl_seconds: int = TTLPreset.DEFAULT
    near_cache_max_size: int = 1000
    near_cache_ttl_seconds: int = TTLPreset.NEAR_CACHE
    write_behind_batch_size: int = 100
    write_behind_delay_seconds: float = 1.0

    @property
    def is_write_through(self) -> bool:
        return self.cache_mode == CacheMode.READ_WRITE and self.write_mode == WriteMode.WRITE_THROUGH

    @property
    def is_write_behind(self) -> bool:
        return self.cache_mode == CacheMode.READ_WRITE and self.write_mode == WriteMode.WRITE_BEHIND

    def with_options(self, **changes: Any) -> "CacheRepositoryConfig":
        return replace(self, **changes)

    def with_workshop_config(self, config) -> "CacheRepositoryConfig":
        """Take TTLs, near cache sizing and batching from WorkshopConfig."""
        return replace(
            self,
            ttl_seconds=config.cache_ttl_seconds,
            near_cache_max_size=config.near_cache_max_size,
            near_cache_ttl_seconds=config.near_cache_ttl_seconds,
            write_behind_batch_size=config.write_behind_batch_size,
            write_behind_delay_seconds=config.write_behind_delay_seconds,
        )


READ_ONLY_THROUGH = CacheRepositoryConfig()
READ_ONLY_THROUGH_WITH_NEAR_CACHE = CacheRepositoryConfig(use_near_cache=True)
READ_WRITE_THROUGH = CacheRepositoryConfig(
    cache_mode=CacheMode.READ_WRITE,
    write_mode=WriteMode.WRITE_THROUGH,
)
READ_WRITE_THROUGH_WITH_NEAR_CACHE = READ_WRITE_THROUGH.with_options(use_near_cache=True)
WRITE_BEHIND = CacheRepositoryConfig(
    cache_mode=CacheMode.READ_WRITE,
    write_mode=WriteMode.WRITE_BEHIND,
)
WRITE_BEHIND_WITH_NEAR_CACHE = WRITE_BEHIND.with_options(use_near_cache=True)


class NearCache:
    """
    In-process TTL cache in front of Valkey. A max_size of 0 disables it.
    """

    def __init__(self, max_size: int, ttl_seconds: float):
        self.enabled = max_size > 0
        self._entries: Optional[TTLCache] = TTLCache(maxsize=max_size, ttl=ttl_seconds) if self.enabled else None

    def get(self, key: Any) -> Optional[Any]:
        if not self.enabled:
            return None
        return self._entries.get(key)

    def put(self, key: Any, value: Any) -> None:
        if self.enabled:
            self._entries[key] = value

    def evict(self, *keys: Any) -> None:
        if self.enabled:
            for key in keys:
                self._entries.pop(key, None)

    def evict_matching(self, pattern: str) -> None:
        if self.enabled:
            for key in [k for k in self._entries if fnmatch.fnmatchcase(str(k), pattern)]:
                self._entries.pop(key, None)

    def clear(self) -> None:
        if self.enabled:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries) if self.enabled else 0


class AbstractCacheRepository(ABC, Generic[DTO]):
    """
    Valkey-backed repository for one table.

    Subclasses name the ORM entity and DTO and may override the row/DTO
    conversion. Cached values are the DTO's JSON form.
    """

    entity_class: Type[Any]
    dto_class: Type[DTO]
    id_type: Callable[[Any], Any] = int

    def __init__(
        self,
        cache_manager: CacheManager,
        database: AsyncDatabaseConfig,
        cache_name: str,
        config: CacheRepositoryConfig = READ_ONLY_THROUGH,
    ):
        self.cache_manager = cache_manager
        self.database = database
        self.cache_name = cache_name
        self.config = config

        if config.use_near_cache:
            self.near_cache = NearCache(config.near_cache_max_size, config.near_cache_ttl_seconds)
        else:
            self.near_cache = NearCache(0, 0)

        self._write_behind_key = key_manager.write_behind_key(cache_name)
        self._flush_lock = asyncio.Lock()
        self._worker: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

        logger.info(f"Cache repository '{cache_name}' created ({config.cache_mode.value}, "
                    f"write={config.write_mode.value if config.write_mode else 'none'}, "
                    f"near_cache={config.use_near_cache})")

    # Row <-> DTO conversion

    def to_dto(self, entity: Any) -> DTO:
        return self.dto_class.model_validate(entity)

    @abstractmethod
    def to_row_values(self, dto: DTO) -> Dict[str, Any]:
        """Column values for the ORM entity, id included when known."""

    def _cache_key(self, entity_id: Any) -> str:
        return key_manager.entity_key(self.cache_name, entity_id)

    def _coerce_id(self, entity_id: Any) -> Any:
        return self.id_type(entity_id)

    async def _cache_dto(self, dto: DTO) -> None:
        await self.cache_manager.set(
            self._cache_key(dto.id),
            dto.model_dump(mode="json"),
            ttl=self.config.ttl_seconds,
        )
        self.near_cache.put(dto.id, dto)

    # Reads

    async def get(self, entity_id: Any) -> Optional[DTO]:
        """
        Read-through lookup: near cache, then Valkey, then the database.
        """
        entity_id = self._coerce_id(entity_id)

        dto = self.near_cache.get(entity_id)
        if dto is not None:
            logger.debug(f"{self.cache_name}: near cache hit for {entity_id}")
            return dto

        cached = await self.cache_manager.get(self._cache_key(entity_id))
        if cached is not None:
            dto = self.dto_class.model_validate(cached)
            self.near_cache.put(entity_id, dto)
            return dto

        dto = await self.find_fresh_by_id(entity_id)
        if dto is not None:
            await self._cache_dto(dto)
        return dto

    async def get_all(self, ids: Iterable[Any]) -> Dict[Any, DTO]:
        """
        Bulk read-through. Ids with no row are absent from the result.
        """
        wanted = [self._coerce_id(i) for i in ids]
        found: Dict[Any, DTO] = {}

        missing = []
        for entity_id in wanted:
            dto = self.near_cache.get(entity_id)
            if dto is not None:
                found[entity_id] = dto
            else:
                missing.append(entity_id)

        if missing:
            keys = {self._cache_key(i): i for i in missing}
            cached = await self.cache_manager.get_many(keys)
            for key, value in cached.items():
                dto = self.dto_class.model_validate(value)
                found[keys[key]] = dto
                self.near_cache.put(keys[key], dto)
            missing = [i for i in missing if i not in found]

        if missing:
            async with self.database.get_session_context() as session:
                result = await session.execute(
                    select(self.entity_class).where(self.entity_class.id.in_(missing))
                )
                for entity in result.scalars():
                    dto = self.to_dto(entity)
                    found[dto.id] = dto
                    await self._cache_dto(dto)

        return {i: found[i] for i in wanted if i in found}

    async def find_all(self, limit: Optional[int] = None, where=None) -> List[DTO]:
        """
        Load rows from the database and populate the cache with them.
        """
        stmt = select(self.entity_class).order_by(self.entity_class.id)
        if where is not None:
            stmt = stmt.where(where)
        if limit is not None:
            stmt = stmt.limit(limit)

        async with self.database.get_session_context() as session:
            result = await session.execute(stmt)
            dtos = [self.to_dto(entity) for entity in result.scalars()]

        for dto in dtos:
            await self._cache_dto(dto)
        return dtos

    async def find_fresh_by_id(self, entity_id: Any) -> Optional[DTO]:
        """Database lookup that bypasses every cache layer."""
        async with self.database.get_session_context() as session:
            entity = await session.get(self.entity_class, self._coerce_id(entity_id))
            return self.to_dto(entity) if entity is not None else None

    async def count(self) -> int:
        """Number of rows in the database table."""
        async with self.database.get_session_context() as session:
            result = await session.execute(select(func.count()).select_from(self.entity_class))
            return result.scalar_one()

    # Writes

    async def _upsert(self, session: AsyncSession, dtos: Sequence[DTO], refresh: bool = True) -> List[DTO]:
        saved = []
        touch = hasattr(self.entity_class, "updated_at")
        for dto in dtos:
            values = self.to_row_values(dto)
            entity = None
            if values.get("id") is not None:
                entity = await session.get(self.entity_class, values["id"])
            if entity is None:
                entity = self.entity_class(**{k: v for k, v in values.items() if v is not None})
                session.add(entity)
            else:
                for column, value in values.items():
                    if column != "id":
                        setattr(entity, column, value)
                if touch:
                    entity.updated_at = datetime.now()
            saved.append(entity)
        await session.flush()
        if not refresh:
            return dtos
        for entity in saved:
            await session.refresh(entity)
        return [self.to_dto(entity) for entity in saved]

    async def put(self, dto: DTO) -> DTO:
        """
        Write a DTO to the cache, and to the database per the write mode.

        Raises:
            ValueError: If the DTO has no id and the database cannot assign one
        """
        return (await self.put_all([dto]))[0]

    async def put_all(self, dtos: Iterable[DTO]) -> List[DTO]:
        dtos = list(dtos)
        if not dtos:
            return []

        if self.config.is_write_through:
            async with self.database.get_session_context() as session:
                dtos = await self._upsert(session, dtos)
        else:
            if any(dto.id is None for dto in dtos):
                raise ValueError(f"{self.cache_name}: entities need an id unless written through")
            if self.config.is_write_behind:
                await self.cache_manager.push_queue(
                    self._write_behind_key,
                    *[dto.model_dump(mode="json") for dto in dtos],
                )

        for dto in dtos:
            await self._cache_dto(dto)

        logger.debug(f"{self.cache_name}: put {len(dtos)} entities")
        return dtos

    # Invalidation

    async def invalidate(self, *ids: Any) -> int:
        """
        Drop entities from the cache, and from the database when configured.

        Returns:
            Number of cache keys removed
        """
        ids = [self._coerce_id(i) for i in ids]
        if not ids:
            return 0

        self.near_cache.evict(*ids)
        removed = await self.cache_manager.delete_many(self._cache_key(i) for i in ids)

        if self.config.delete_from_db_on_invalidate:
            async with self.database.get_session_context() as session:
                result = await session.execute(
                    delete(self.entity_class).where(self.entity_class.id.in_(ids))
                )
                logger.info(f"{self.cache_name}: deleted {result.rowcount} rows on invalidate")

        return removed

    async def invalidate_all(self) -> int:
        self.near_cache.clear()
        return await self.cache_manager.clear_pattern(key_manager.entity_pattern(self.cache_name))

    async def invalidate_by_pattern(self, pattern: str) -> int:
        """
        Drop entities whose id matches a glob pattern, e.g. ``1*``.
        """
        self.near_cache.evict_matching(pattern)
        return await self.cache_manager.clear_pattern(
            key_manager.entity_pattern(self.cache_name, pattern)
        )

    # Write-behind

    async def pending_writes(self) -> int:
        return await self.cache_manager.queue_length(self._write_behind_key)

    async def flush_write_behind(self) -> int:
        """
        Drain the write-behind queue into the database in batches.

        A batch that fails to persist goes back on the queue and the error
        is raised.

        Returns:
            Number of entities written
        """
        written = 0
        async with self._flush_lock:
            while True:
                batch = await self.cache_manager.pop_queue(
                    self._write_behind_key, self.config.write_behind_batch_size
                )
                if not batch:
                    break

                dtos = [self.dto_class.model_validate(item) for item in batch]
                try:
                    async with self.database.get_session_context() as session:
                        await self._upsert(session, dtos, refresh=False)
                except SQLAlchemyError:
                    await self.cache_manager.push_queue(self._write_behind_key, *batch)
                    logger.error(f"{self.cache_name}: write-behind batch of {len(batch)} failed, requeued")
                    raise

                written += len(dtos)

        if written:
            logger.info(f"{self.cache_name}: write-behind flushed {written} entities")
        return written

    async def _write_behind_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.config.write_behind_delay_seconds)
            except asyncio.TimeoutError:
                pass
            try:
                await self.flush_write_behind()
            except SQLAlchemyError as e:
                logger.warning(f"{self.cache_name}: write-behind flush will be retried: {e}")

    def start_write_behind(self) -> None:
        """Start the background flush worker on the running event loop."""
        if not self.config.is_write_behind or self._worker is not None:
            return
        self._stop_event = asyncio.Event()
        self._worker = asyncio.create_task(self._write_behind_loop())
        logger.info(f"{self.cache_name}: write-behind worker started "
                    f"(batch={self.config.write_behind_batch_size}, "
                    f"delay={self.config.write_behind_delay_seconds}s)")

    async def stop_write_behind(self) -> None:
        """Stop the worker and flush whatever is still queued."""
        if self._worker is not None:
            self._stop_event.set()
            await self._worker
            self._worker = None
            logger.info(f"{self.cache_name}: write-behind worker stopped")
        if self.config.is_write_behind:
            await self.flush_write_behind()
