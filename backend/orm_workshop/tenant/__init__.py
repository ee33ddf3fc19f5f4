"""
Multi-tenancy for the ORM workshop.

Tenants are resolved from the X-TENANT-ID header and routed to a database
(and schema, where the backend has them) of their own. Routing and the
HTTP middleware live in orm_workshop.tenant.routing and
orm_workshop.tenant.middleware.
"""

from .tenants import (
    TENANT_HEADER,
    DEFAULT_TENANT,
    Tenant,
    parse_tenant,
    get_current_tenant,
    set_current_tenant,
    reset_current_tenant,
    tenant_scope,
)

__all__ = [
    "TENANT_HEADER",
    "DEFAULT_TENANT",
    "Tenant",
    "parse_tenant",
    "get_current_tenant",
    "set_current_tenant",
    "reset_current_tenant",
    "tenant_scope",
]
