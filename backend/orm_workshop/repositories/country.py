"""
Country lookups by ISO code, plain and cache-aside.

CachedCountryRepository decorates CountryRepository: find_by_code is served
from Valkey when possible and update() evicts the entry it changed.
"""

import logging
from typing import Optional

from sqlalchemy import select, update

from ..cache.manager import CacheManager
from ..cache.utils import CacheKeyPrefix, TTLPreset, key_manager
from ..database.async_config import AsyncDatabaseConfig
from ..database.models import Country
from ..models import CountryDTO

logger = logging.getLogger(__name__)


class CountryRepository:
    """Country table access, one transaction per call."""

    def __init__(self, database: AsyncDatabaseConfig):
        self.database = database

    async def find_by_code(self, code: str) -> Optional[CountryDTO]:
        async with self.database.get_session_context() as session:
            country = (await session.execute(
                select(Country).where(Country.code == code)
            )).scalar_one_or_none()
            return CountryDTO.model_validate(country) if country is not None else None

    async def update(self, country: CountryDTO) -> int:
        """Returns the number of updated rows."""
        async with self.database.get_session_context() as session:
            result = await session.execute(
                update(Country)
                .where(Country.code == country.code)
                .values(name=country.name, description=country.description)
            )
            return result.rowcount

    async def evict_cache_all(self) -> None:
        # Nothing cached here
        return None


class CachedCountryRepository(CountryRepository):
    """
    Cache-aside country lookups.

    Misses are not cached, so a country inserted later is found on the next
    lookup.
    """

    def __init__(
        self,
        database: AsyncDatabaseConfig,
        cache_manager: CacheManager,
        ttl: int = TTLPreset.COUNTRY,
    ):
        super().__init__(database)
        self.cache_manager = cache_manager
        self.ttl = ttl

    async def find_by_code(self, code: str) -> Optional[CountryDTO]:
        key = key_manager.country_key(code)

        cached = await self.cache_manager.get(key)
        if cached is not None:
            logger.debug(f"Country cache hit. code={code}")
            return CountryDTO.model_validate(cached)

        country = await super().find_by_code(code)
        if country is not None:
            await self.cache_manager.set(key, country.model_dump(mode="json"), ttl=self.ttl)
        return country

    async def update(self, country: CountryDTO) -> int:
        updated = await super().update(country)
        await self.cache_manager.delete(key_manager.country_key(country.code))
        return updated

    async def evict_cache_all(self) -> None:
        removed = await self.cache_manager.clear_pattern(
            key_manager.entity_pattern(CacheKeyPrefix.COUNTRY)
        )
        logger.info(f"Evicted {removed} cached countries")
