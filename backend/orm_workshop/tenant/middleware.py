"""
Binds the tenant named by the X-TENANT-ID header to each request.
"""

import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..errors import UnknownTenantError
from .tenants import TENANT_HEADER, parse_tenant, reset_current_tenant, set_current_tenant

logger = logging.getLogger(__name__)


class TenantMiddleware(BaseHTTPMiddleware):
    """
    - Resolves X-TENANT-ID (missing header means the default tenant).
    - Stores it in request.state.tenant and the tenant context variable.
    - Answers 400 when the header names no tenant.

    Only paths under path_prefix are routed; None routes every request.
    """

    def __init__(self, app, path_prefix: Optional[str] = None):
        super().__init__(app)
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next):
        if self.path_prefix and not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        try:
            tenant = parse_tenant(request.headers.get(TENANT_HEADER))
        except UnknownTenantError as e:
            logger.warning(f"Rejected request to {request.url.path}: {e}")
            return JSONResponse(status_code=400, content={"detail": str(e)})

        request.state.tenant = tenant
        token = set_current_tenant(tenant)
        try:
            response = await call_next(request)
            response.headers[TENANT_HEADER] = tenant.id
            return response
        finally:
            reset_current_tenant(token)
