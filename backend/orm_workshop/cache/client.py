"""
Valkey client with health checks and automatic reconnection.

Wraps a pooled valkey.Valkey connection behind an async-friendly facade
used by CacheManager.
"""

import asyncio
import logging
import time
from typing import Optional, Any, Dict

import valkey
from valkey.connection import ConnectionPool
from valkey.exceptions import ConnectionError, TimeoutError

from .config import ValkeyConfig, ValkeyConnectionError

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    Pooled Valkey connection with health checks and reconnect on demand.

    Connection attempts back off exponentially, capped at max_reconnect_delay.
    """

    def __init__(
        self,
        config: Optional[ValkeyConfig] = None,
        max_connection_attempts: int = 5,
        reconnect_delay: float = 1.0,
        max_reconnect_delay: float = 30.0,
    ):
        self.config = config or ValkeyConfig.from_env()
        self.config.validate()
        self._client: Optional[valkey.Valkey] = None
        self._connection_pool: Optional[ConnectionPool] = None
        self._is_connected = False
        self._last_health_check = 0.0
        self._connection_attempts = 0
        self._max_connection_attempts = max_connection_attempts
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay

        logger.info(f"Initializing Valkey client: {self.config}")

    async def connect(self) -> None:
        """
        Establish connection to Valkey server with retry logic.

        Raises:
            ValkeyConnectionError: If connection cannot be established after max attempts
        """
        if self._is_connected and self._client:
            return

        self._connection_attempts = 0

        while self._connection_attempts < self._max_connection_attempts:
            try:
                self._connection_attempts += 1
                logger.info(f"Attempting Valkey connection (attempt {self._connection_attempts})")

                self._connection_pool = ConnectionPool(**self.config.to_connection_pool_kwargs())
                self._client = valkey.Valkey(connection_pool=self._connection_pool)

                await self._test_connection()

                self._is_connected = True
                self._connection_attempts = 0
                self._last_health_check = time.time()

                logger.info("Successfully connected to Valkey server")
                return

            except (ConnectionError, TimeoutError, OSError, ValkeyConnectionError) as e:
                logger.warning(
                    f"Valkey connection attempt {self._connection_attempts} failed: {e}"
                )

                if self._connection_attempts >= self._max_connection_attempts:
                    error_msg = (
                        f"Failed to connect to Valkey after {self._max_connection_attempts} attempts. "
                        f"Last error: {e}"
                    )
                    logger.error(error_msg)
                    raise ValkeyConnectionError(error_msg) from e

                delay = min(self._reconnect_delay * (2 ** (self._connection_attempts - 1)),
                            self._max_reconnect_delay)
                logger.info(f"Retrying connection in {delay:.1f} seconds...")
                await asyncio.sleep(delay)

    async def disconnect(self) -> None:
        """Gracefully disconnect from Valkey server."""
        if self._connection_pool:
            try:
                self._connection_pool.disconnect()
                logger.info("Disconnected from Valkey server")
            except Exception as e:
                logger.warning(f"Error during Valkey disconnect: {e}")
            finally:
                self._connection_pool = None
                self._client = None
                self._is_connected = False

    async def _test_connection(self) -> None:
        """
        Raises:
            ValkeyConnectionError: If ping fails
        """
        if not self._client:
            raise ValkeyConnectionError("Client not initialized")

        try:
            if not self._client.ping():
                raise ValkeyConnectionError("Ping returned False")
        except (ConnectionError, TimeoutError, OSError) as e:
            raise ValkeyConnectionError(f"Connection test failed: {e}") from e

    async def health_check(self, force: bool = False) -> bool:
        """
        Ping the server unless a check ran within health_check_interval.

        Returns:
            bool: True if connection is healthy, False otherwise
        """
        current_time = time.time()

        if not force and (current_time - self._last_health_check) < self.config.health_check_interval:
            return self._is_connected

        self._last_health_check = current_time

        if not self._client or not self._is_connected:
            logger.debug("Health check failed: not connected")
            return False

        try:
            await self._test_connection()
            logger.debug("Health check passed")
            return True
        except ValkeyConnectionError as e:
            logger.warning(f"Health check failed: {e}")
            self._is_connected = False
            return False

    async def ensure_connection(self) -> None:
        """
        Reconnect if the last health check failed.

        Raises:
            ValkeyConnectionError: If connection cannot be established
        """
        if not await self.health_check():
            logger.info("Connection unhealthy, attempting reconnection...")
            self._is_connected = False
            await self.connect()

    @property
    def is_connected(self) -> bool:
        return self._is_connected and self._client is not None

    @property
    def client(self) -> valkey.Valkey:
        """
        The underlying valkey.Valkey instance.

        Raises:
            ValkeyConnectionError: If client is not connected
        """
        if not self._client or not self._is_connected:
            raise ValkeyConnectionError("Client not connected. Call connect() first.")
        return self._client

    async def get_connection_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "is_connected": self._is_connected,
            "config": str(self.config),
            "connection_attempts": self._connection_attempts,
            "last_health_check": self._last_health_check,
        }

        if self._client and self._is_connected:
            try:
                server_info = self._client.info()
                info.update({
                    "server_version": server_info.get("valkey_version", server_info.get("redis_version", "unknown")),
                    "connected_clients": server_info.get("connected_clients", 0),
                    "used_memory": server_info.get("used_memory_human", "unknown"),
                    "uptime_seconds": server_info.get("uptime_in_seconds", 0),
                })
            except (ConnectionError, TimeoutError) as e:
                logger.warning(f"Failed to get server info: {e}")
                info["server_info_error"] = str(e)

        return info

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
