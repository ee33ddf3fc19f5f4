"""
Exception handlers turning domain errors into HTTP responses.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..errors import EntityNotFoundError, UnknownTenantError

logger = logging.getLogger(__name__)


async def entity_not_found_handler(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    logger.debug(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def unknown_tenant_handler(request: Request, exc: UnknownTenantError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register the domain exception handlers. Request validation errors keep
    FastAPI's default 422 response.
    """
    app.add_exception_handler(EntityNotFoundError, entity_not_found_handler)
    app.add_exception_handler(UnknownTenantError, unknown_tenant_handler)
    logger.debug("Exception handlers registered")
