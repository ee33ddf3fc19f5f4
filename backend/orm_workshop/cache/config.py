"""
Settings for the Valkey server behind the workshop caches.

The cache repositories and the country lookup share one connection pool.
Its settings come either from the validated WorkshopConfig (the API and the
CLI) or straight from VALKEY_* variables (a CacheManager built on its own).
"""

import os
import logging
from typing import Optional, Dict, Any, TYPE_CHECKING
from dataclasses import dataclass
from dotenv import load_dotenv

if TYPE_CHECKING:
    from ..utils.config import WorkshopConfig

load_dotenv()

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ValkeyConfig:
    """
    Where the cached entities and write-behind queues live.

    host, port, password, database: the Valkey server and logical db
    max_connections: pool size shared by every cache repository
    socket_timeout, socket_connect_timeout: seconds before a call counts
        as a cache failure and the manager falls back to memory
    retry_on_timeout: let the client retry a timed out command once
    health_check_interval: seconds between pings in ensure_connection
    """

    host: str = "localhost"
    port: int = 6379
    password: Optional[str] = None
    database: int = 0
    max_connections: int = 10
    socket_timeout: float = 5.0
    socket_connect_timeout: float = 5.0
    retry_on_timeout: bool = True
    health_check_interval: int = 30

    @classmethod
    def from_env(cls) -> "ValkeyConfig":
        """
        Read the cache server from VALKEY_HOST, VALKEY_PORT, VALKEY_PASSWORD,
        VALKEY_DATABASE and VALKEY_MAX_CONNECTIONS, plus the optional
        VALKEY_SOCKET_TIMEOUT, VALKEY_SOCKET_CONNECT_TIMEOUT,
        VALKEY_RETRY_ON_TIMEOUT and VALKEY_HEALTH_CHECK_INTERVAL.
        Unset variables keep the dataclass defaults.
        """
        defaults = cls()
        return cls(
            host=os.getenv("VALKEY_HOST", defaults.host),
            port=int(os.getenv("VALKEY_PORT", defaults.port)),
            password=os.getenv("VALKEY_PASSWORD") or None,
            database=int(os.getenv("VALKEY_DATABASE", defaults.database)),
            max_connections=int(os.getenv("VALKEY_MAX_CONNECTIONS", defaults.max_connections)),
            socket_timeout=float(os.getenv("VALKEY_SOCKET_TIMEOUT", defaults.socket_timeout)),
            socket_connect_timeout=float(
                os.getenv("VALKEY_SOCKET_CONNECT_TIMEOUT", defaults.socket_connect_timeout)
            ),
            retry_on_timeout=_env_flag("VALKEY_RETRY_ON_TIMEOUT", defaults.retry_on_timeout),
            health_check_interval=int(
                os.getenv("VALKEY_HEALTH_CHECK_INTERVAL", defaults.health_check_interval)
            ),
        )

    @classmethod
    def from_workshop_config(cls, config: "WorkshopConfig") -> "ValkeyConfig":
        """Take the Valkey section of an already validated WorkshopConfig."""
        return cls(
            host=config.valkey_host,
            port=config.valkey_port,
            password=config.valkey_password,
            database=config.valkey_database,
            max_connections=config.valkey_max_connections,
            socket_timeout=float(config.valkey_socket_timeout),
            socket_connect_timeout=float(config.valkey_socket_connect_timeout),
        )

    def validate(self) -> None:
        """
        Raises:
            ValkeyConfigurationError: If a setting cannot produce a working pool
        """
        if not self.host:
            raise ValkeyConfigurationError("Valkey host must not be empty")
        if not 1 <= self.port <= 65535:
            raise ValkeyConfigurationError(f"Invalid Valkey port: {self.port}")
        if self.max_connections < 1:
            raise ValkeyConfigurationError("max_connections must be at least 1")

    def to_connection_pool_kwargs(self) -> Dict[str, Any]:
        """
        Keyword arguments for valkey.ConnectionPool.

        Responses are always decoded: every cached value is JSON text.
        """
        kwargs = {
            "host": self.host,
            "port": self.port,
            "db": self.database,
            "max_connections": self.max_connections,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "retry_on_timeout": self.retry_on_timeout,
            "decode_responses": True,
        }
        if self.password:
            kwargs["password"] = self.password
        return kwargs

    def __str__(self) -> str:
        password = "***" if self.password else "None"
        return (
            f"ValkeyConfig({self.host}:{self.port}/{self.database}, "
            f"password={password}, pool={self.max_connections})"
        )


class ValkeyConnectionError(Exception):
    """The cache server could not be reached after all connection attempts."""


class ValkeyConfigurationError(Exception):
    """Cache settings that can never give a working connection pool."""
