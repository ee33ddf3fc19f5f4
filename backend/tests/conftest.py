"""
Shared fixtures: in-memory databases, an in-memory Valkey stand-in and the
API test client.
"""

import fnmatch
import time
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from valkey.exceptions import ConnectionError

from orm_workshop.api import create_app
from orm_workshop.cache import CacheManager, ValkeyClient, ValkeyConfig
from orm_workshop.database import AsyncDatabaseConfig, DatabaseConfig, DatabaseInitializer
from orm_workshop.utils.config import WorkshopConfig


class FakeValkey:
    """
    Dict-backed replacement for valkey.Valkey covering the commands the
    cache manager issues.
    """

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self.expires: Dict[str, float] = {}
        self.lists: Dict[str, List[Any]] = {}
        self.commands: List[str] = []

    def _expire_stale(self, key: str) -> None:
        if key in self.expires and self.expires[key] <= time.time():
            self.data.pop(key, None)
            self.expires.pop(key, None)

    def ping(self) -> bool:
        return True

    def info(self) -> Dict[str, Any]:
        return {
            "valkey_version": "8.0.0",
            "connected_clients": 1,
            "used_memory_human": "1M",
            "uptime_in_seconds": 3600,
        }

    def get(self, key: str) -> Optional[Any]:
        self.commands.append("get")
        self._expire_stale(key)
        return self.data.get(key)

    def mget(self, keys: List[str]) -> List[Optional[Any]]:
        self.commands.append("mget")
        return [self.get(key) for key in keys]

    def set(self, key: str, value: Any) -> bool:
        self.commands.append("set")
        self.data[key] = value
        self.expires.pop(key, None)
        return True

    def setex(self, key: str, ttl: int, value: Any) -> bool:
        self.commands.append("setex")
        self.data[key] = value
        self.expires[key] = time.time() + ttl
        return True

    def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                deleted += 1
            if self.lists.pop(key, None) is not None:
                deleted += 1
            self.expires.pop(key, None)
        return deleted

    def exists(self, key: str) -> int:
        self._expire_stale(key)
        return int(key in self.data or key in self.lists)

    def ttl(self, key: str) -> int:
        if key not in self.data:
            return -2
        if key not in self.expires:
            return -1
        return int(self.expires[key] - time.time())

    def scan_iter(self, match: str = "*"):
        for key in list(self.data) + list(self.lists):
            if fnmatch.fnmatchcase(key, match):
                yield key

    def rpush(self, key: str, *values: Any) -> int:
        queue = self.lists.setdefault(key, [])
        queue.extend(values)
        return len(queue)

    def lpop(self, key: str, count: Optional[int] = None):
        queue = self.lists.get(key)
        if not queue:
            return None
        if count is None:
            value = queue.pop(0)
        else:
            value, queue[:] = queue[:count], queue[count:]
        if not queue:
            del self.lists[key]
        return value

    def llen(self, key: str) -> int:
        return len(self.lists.get(key, []))


@pytest.fixture
def fake_valkey():
    return FakeValkey()


class UnreachableValkey(FakeValkey):
    def ping(self) -> bool:
        raise ConnectionError("Connection refused")


@pytest.fixture
def unreachable_valkey():
    return UnreachableValkey()


@pytest.fixture
def valkey_client(fake_valkey):
    """A connected ValkeyClient whose server is FakeValkey."""
    client = ValkeyClient(ValkeyConfig(host="localhost", port=6379, database=15))
    client._client = fake_valkey
    client._is_connected = True
    client._last_health_check = time.time()
    return client


@pytest.fixture
def cache_manager(valkey_client):
    return CacheManager(client=valkey_client, enable_fallback=True)


@pytest.fixture
def fallback_cache_manager():
    """Cache manager with no Valkey client, serving from the fallback store."""
    return CacheManager(client=None, enable_fallback=True)


@pytest.fixture
def db_config():
    config = DatabaseConfig(database_url="sqlite:///:memory:")
    config.create_tables()
    yield config
    config.close()


@pytest.fixture
def session(db_config):
    with db_config.get_session_context() as session:
        yield session


@pytest.fixture
def seeded_session(db_config):
    with db_config.get_session_context() as session:
        DatabaseInitializer().populate(session)
    with db_config.get_session_context() as session:
        yield session


@pytest_asyncio.fixture
async def async_db_config():
    config = AsyncDatabaseConfig(database_url="sqlite:///:memory:")
    await config.create_tables()
    yield config
    await config.close()


@pytest_asyncio.fixture
async def seeded_async_db_config(async_db_config):
    async with async_db_config.get_session_context() as session:
        await session.run_sync(lambda s: DatabaseInitializer().populate(s))
    return async_db_config


@pytest.fixture
def workshop_config():
    return WorkshopConfig(
        database_url="sqlite://",
        tenant_database_url="sqlite://",
        cache_enabled=False,
        seed_data=True,
        write_behind_delay_seconds=60,
    )


@pytest.fixture
def app(workshop_config, cache_manager):
    return create_app(workshop_config, cache_manager=cache_manager)


@pytest.fixture
def client(app):
    """TestClient running the app lifespan."""
    with TestClient(app) as test_client:
        yield test_client
