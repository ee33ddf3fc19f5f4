"""
Tests for the cache-aside country lookup.
"""

import pytest

from orm_workshop.models import CountryDTO
from orm_workshop.repositories import CachedCountryRepository, CountryRepository


class TestCountryRepository:
    """Test the uncached country repository."""

    @pytest.mark.asyncio
    async def test_find_by_code(self, seeded_async_db_config):
        """Test a country is found by its ISO code."""
        country = await CountryRepository(seeded_async_db_config).find_by_code("KR")
        assert country.code == "KR"
        assert country.name == "KR Country"

    @pytest.mark.asyncio
    async def test_update(self, seeded_async_db_config):
        """Test update returns the number of rows changed."""
        repository = CountryRepository(seeded_async_db_config)
        assert await repository.update(CountryDTO(code="KR", name="Korea", description="Republic of Korea")) == 1
        assert await repository.update(CountryDTO(code="ZZ", name="Nowhere")) == 0
        assert (await repository.find_by_code("KR")).name == "Korea"


class TestCachedCountryRepository:
    """Test cache-aside reads and eviction."""

    @pytest.mark.asyncio
    async def test_cache_aside_read(self, seeded_async_db_config, cache_manager, fake_valkey):
        """Test the first read fills the cache and the second is a hit."""
        repository = CachedCountryRepository(seeded_async_db_config, cache_manager)

        first = await repository.find_by_code("US")
        assert "cache:code:country:country:US" in fake_valkey.data

        second = await repository.find_by_code("US")
        assert second == first
        stats = await cache_manager.get_stats()
        assert stats["hit_count"] == 1
        assert stats["miss_count"] == 1

    @pytest.mark.asyncio
    async def test_miss_is_not_cached(self, seeded_async_db_config, cache_manager, fake_valkey):
        """Test an unknown code leaves no cache entry."""
        repository = CachedCountryRepository(seeded_async_db_config, cache_manager)
        assert await repository.find_by_code("ZZ") is None
        assert not any(key.endswith(":ZZ") for key in fake_valkey.data)

    @pytest.mark.asyncio
    async def test_update_evicts_entry(self, seeded_async_db_config, cache_manager):
        """Test an update is visible on the next read."""
        repository = CachedCountryRepository(seeded_async_db_config, cache_manager)
        await repository.find_by_code("FR")

        assert await repository.update(CountryDTO(code="FR", name="France")) == 1
        assert (await repository.find_by_code("FR")).name == "France"

    @pytest.mark.asyncio
    async def test_evict_cache_all(self, seeded_async_db_config, cache_manager, fake_valkey):
        """Test evicting everything clears only the country keys."""
        repository = CachedCountryRepository(seeded_async_db_config, cache_manager)
        for code in ("KR", "JP", "US"):
            await repository.find_by_code(code)
        await cache_manager.set("exposed:users:1", {"id": 1})

        await repository.evict_cache_all()

        assert [key for key in fake_valkey.data if key.startswith("cache:code:country")] == []
        assert "exposed:users:1" in fake_valkey.data
