"""
Environment configuration loader with validation for the ORM workshop.
"""

import os
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv


class WorkshopConfig(BaseModel):
    """Configuration model for the ORM workshop with validation."""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///orm_workshop.db", description="Database connection URL"
    )
    async_database_url: Optional[str] = Field(
        default=None,
        description="Async database URL (derived from database_url when unset)",
    )
    tenant_database_url: str = Field(
        default="sqlite:///orm_workshop_{tenant}.db",
        description="Per-tenant database URL, '{tenant}' is replaced by the tenant id",
    )
    database_echo: bool = Field(default=False, description="Log emitted SQL")

    # Valkey Cache Configuration
    valkey_host: str = Field(default="localhost", description="Valkey server host")
    valkey_port: int = Field(
        default=6379, ge=1, le=65535, description="Valkey server port"
    )
    valkey_password: Optional[str] = Field(
        default=None, description="Valkey server password"
    )
    valkey_database: int = Field(
        default=0, ge=0, le=15, description="Valkey database number"
    )
    valkey_max_connections: int = Field(
        default=10, ge=1, description="Maximum Valkey connections"
    )
    valkey_socket_timeout: int = Field(
        default=5, ge=1, description="Valkey socket timeout in seconds"
    )
    valkey_socket_connect_timeout: int = Field(
        default=5, ge=1, description="Valkey connection timeout in seconds"
    )

    # Cache Strategies
    cache_enabled: bool = Field(
        default=True, description="Connect to Valkey (False keeps the in-process fallback only)"
    )
    cache_ttl_seconds: int = Field(
        default=3600, ge=1, description="Default TTL for cached entities"
    )
    near_cache_max_size: int = Field(
        default=1000, ge=1, description="Maximum entries held in each near cache"
    )
    near_cache_ttl_seconds: int = Field(
        default=60, ge=1, description="TTL for near cache entries"
    )
    write_behind_batch_size: int = Field(
        default=100, ge=1, description="Rows flushed per write-behind batch"
    )
    write_behind_delay_seconds: float = Field(
        default=1.0, gt=0, description="Delay between write-behind flushes"
    )

    # Workshop Configuration
    seed_data: bool = Field(default=True, description="Insert sample data on startup")
    workshop_debug: bool = Field(default=False, description="Enable debug mode")
    workshop_log_level: str = Field(default="INFO", description="Logging level")
    api_host: str = Field(default="0.0.0.0", description="API bind address")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")

    @field_validator("workshop_log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("async_database_url")
    @classmethod
    def validate_async_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty string as 'derive from database_url'."""
        return v or None


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


def load_config(env_file: Optional[str] = None) -> WorkshopConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Optional path to .env file. If None, looks for .env in current directory.

    Returns:
        WorkshopConfig: Validated configuration object

    Raises:
        ValueError: If required configuration is missing or invalid
    """
    if env_file is None:
        env_file = ".env"

    if os.path.exists(env_file):
        load_dotenv(env_file)

    config_data: Dict[str, Any] = {
        "database_url": os.getenv("DATABASE_URL", "sqlite:///orm_workshop.db"),
        "async_database_url": os.getenv("ASYNC_DATABASE_URL") or None,
        "tenant_database_url": os.getenv(
            "TENANT_DATABASE_URL", "sqlite:///orm_workshop_{tenant}.db"
        ),
        "database_echo": _env_flag("DATABASE_ECHO", "false"),
        "valkey_host": os.getenv("VALKEY_HOST", "localhost"),
        "valkey_port": int(os.getenv("VALKEY_PORT", "6379")),
        "valkey_password": os.getenv("VALKEY_PASSWORD") or None,
        "valkey_database": int(os.getenv("VALKEY_DATABASE", "0")),
        "valkey_max_connections": int(os.getenv("VALKEY_MAX_CONNECTIONS", "10")),
        "valkey_socket_timeout": int(os.getenv("VALKEY_SOCKET_TIMEOUT", "5")),
        "valkey_socket_connect_timeout": int(
            os.getenv("VALKEY_SOCKET_CONNECT_TIMEOUT", "5")
        ),
        "cache_enabled": _env_flag("CACHE_ENABLED", "true"),
        "cache_ttl_seconds": int(os.getenv("CACHE_TTL", "3600")),
        "near_cache_max_size": int(os.getenv("NEAR_CACHE_MAX_SIZE", "1000")),
        "near_cache_ttl_seconds": int(os.getenv("NEAR_CACHE_TTL", "60")),
        "write_behind_batch_size": int(os.getenv("WRITE_BEHIND_BATCH_SIZE", "100")),
        "write_behind_delay_seconds": float(
            os.getenv("WRITE_BEHIND_DELAY_SECONDS", "1.0")
        ),
        "seed_data": _env_flag("SEED_DATA", "true"),
        "workshop_debug": _env_flag("WORKSHOP_DEBUG", "false"),
        "workshop_log_level": os.getenv("WORKSHOP_LOG_LEVEL", "INFO"),
        "api_host": os.getenv("API_HOST", "0.0.0.0"),
        "api_port": int(os.getenv("API_PORT", "8000")),
    }

    try:
        return WorkshopConfig(**config_data)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")


def validate_required_settings(config: WorkshopConfig) -> None:
    """
    Validate that all required settings are properly configured.

    Raises:
        ValueError: If required settings are missing or invalid
    """
    if not config.database_url:
        raise ValueError("DATABASE_URL is required")

    if config.cache_enabled and not config.valkey_host:
        raise ValueError("VALKEY_HOST is required when the cache is enabled")


# Global configuration instance
_config: Optional[WorkshopConfig] = None


def get_config() -> WorkshopConfig:
    """
    Get the global configuration instance, loading it if necessary.

    Returns:
        WorkshopConfig: The global configuration object
    """
    global _config
    if _config is None:
        _config = load_config()
        validate_required_settings(_config)
    return _config
