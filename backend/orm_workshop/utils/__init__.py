"""Configuration helpers for the ORM workshop."""

from .config import WorkshopConfig, load_config, get_config, validate_required_settings

__all__ = [
    "WorkshopConfig",
    "load_config",
    "get_config",
    "validate_required_settings",
]
