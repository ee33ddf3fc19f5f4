"""
Tenant identifiers and the per-request tenant context.

The current tenant lives in a ContextVar. Starlette copies the context into
the task that runs each request and into the threadpool used by sync
endpoints, so a value set by the middleware is visible to both.
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from enum import Enum
from typing import Iterator, Optional, Union

from ..errors import UnknownTenantError

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-TENANT-ID"


class Tenant(str, Enum):
    """Tenants served by the multi-tenant module, valued by their schema id."""

    KOREAN = "korean"
    ENGLISH = "english"

    @property
    def id(self) -> str:
        return self.value


DEFAULT_TENANT = Tenant.KOREAN

_current_tenant: ContextVar[Optional[Tenant]] = ContextVar("current_tenant", default=None)


def parse_tenant(value: Union[str, Tenant, None]) -> Tenant:
    """
    Resolve a header or config value to a Tenant.

    Matches the tenant id or the enum name, case-insensitively. A missing
    value resolves to the default tenant.

    Raises:
        UnknownTenantError: If the value names no tenant
    """
    if value is None or value == "":
        return DEFAULT_TENANT
    if isinstance(value, Tenant):
        return value

    normalized = str(value).strip().lower()
    for tenant in Tenant:
        if normalized in (tenant.value, tenant.name.lower()):
            return tenant
    raise UnknownTenantError(value)


def get_current_tenant() -> Tenant:
    """Tenant bound to the running context, or the default tenant."""
    return _current_tenant.get() or DEFAULT_TENANT


def set_current_tenant(tenant: Optional[Tenant]):
    """Bind a tenant to the running context and return the reset token."""
    return _current_tenant.set(tenant)


def reset_current_tenant(token) -> None:
    _current_tenant.reset(token)


@contextmanager
def tenant_scope(tenant: Union[str, Tenant]) -> Iterator[Tenant]:
    """
    Run a block with the given tenant bound to the context.

    Usage:
        with tenant_scope(Tenant.ENGLISH):
            actors = repository.search_actors({})
    """
    resolved = parse_tenant(tenant)
    token = set_current_tenant(resolved)
    logger.debug(f"Entering tenant scope: {resolved.id}")
    try:
        yield resolved
    finally:
        reset_current_tenant(token)
