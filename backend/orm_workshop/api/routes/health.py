"""
Health check endpoints (never cached).
"""

import time

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ...cache.manager import CacheManager
from ..deps import get_cache_manager

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health(request: Request):
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": request.app.version,
    }


@router.get("/db")
async def health_db(request: Request):
    """Probe the sync, async and tenant databases. Any failure answers 503."""
    state = request.app.state
    services = {
        "database": state.database.test_connection(),
        "async_database": await state.async_database.test_connection(),
        "tenants": state.tenant_database.test_connection(),
    }
    healthy = services["database"] and services["async_database"] and all(services["tenants"].values())

    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": time.time(),
            "services": services,
        },
    )


@router.get("/cache")
async def health_cache(cache_manager: CacheManager = Depends(get_cache_manager)):
    # A degraded cache still serves from the fallback store
    return await cache_manager.health_check()
