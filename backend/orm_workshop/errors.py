"""
Domain exceptions shared by repositories, tenant routing and the API layer.
"""

from typing import Any


class WorkshopError(Exception):
    """Base class for errors raised by the workshop modules."""
    pass


class EntityNotFoundError(WorkshopError):
    """Raised when a lookup by identifier finds no row."""

    def __init__(self, entity: str, identifier: Any):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found. id={identifier}")


class PostNotFoundError(EntityNotFoundError):
    def __init__(self, post_id: Any):
        super().__init__("Post", post_id)


class UnknownTenantError(WorkshopError):
    """Raised when a tenant header does not name a configured tenant."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unknown tenant: {value!r}")
