"""
Read/write-through cache endpoints for users and user credentials.

Both resources share the same shape, so the routers come from one factory
parameterized by the DTO type and the repository dependency.
"""

import logging
from typing import Any, Callable, List, Optional, Type

from fastapi import APIRouter, Depends, HTTPException, Query

from ...cache.strategies import AbstractCacheRepository
from ...errors import EntityNotFoundError
from ...models import UserCredentialsDTO, UserDTO, WorkshopModel
from ..deps import get_user_credentials_repository, get_user_repository

logger = logging.getLogger(__name__)


def split_csv(value: str) -> List[str]:
    """``"1, 2,3"`` -> ``["1", "2", "3"]``"""
    return [part.strip() for part in value.split(",") if part.strip()]


def parse_ids(repository: AbstractCacheRepository, raw_ids: List[str]) -> List[Any]:
    try:
        return [repository.id_type(raw) for raw in raw_ids]
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid ids: {raw_ids}")


def build_cache_router(
    prefix: str,
    entity_name: str,
    dto_class: Type[WorkshopModel],
    get_repository: Callable[..., AbstractCacheRepository],
) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])

    @router.get("", response_model=List[dto_class])
    async def find_all(
        limit: Optional[int] = Query(None, ge=1),
        repository: AbstractCacheRepository = Depends(get_repository),
    ):
        return await repository.find_all(limit=limit)

    @router.get("/all", response_model=List[dto_class])
    async def get_all(ids: str = Query(...), repository: AbstractCacheRepository = Depends(get_repository)):
        found = await repository.get_all(parse_ids(repository, split_csv(ids)))
        return list(found.values())

    @router.get("/{entity_id}", response_model=dto_class)
    async def get(entity_id: str, repository: AbstractCacheRepository = Depends(get_repository)):
        [parsed] = parse_ids(repository, [entity_id])
        dto = await repository.get(parsed)
        if dto is None:
            raise EntityNotFoundError(entity_name, entity_id)
        return dto

    @router.post("", response_model=dto_class)
    async def put(dto: dto_class, repository: AbstractCacheRepository = Depends(get_repository)):
        try:
            return await repository.put(dto)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @router.delete("/invalidate", response_model=int)
    async def invalidate(ids: str = Query(...), repository: AbstractCacheRepository = Depends(get_repository)):
        return await repository.invalidate(*parse_ids(repository, split_csv(ids)))

    @router.delete("/invalidate/all", response_model=int)
    async def invalidate_all(repository: AbstractCacheRepository = Depends(get_repository)):
        return await repository.invalidate_all()

    @router.delete("/invalidate/pattern", response_model=int)
    async def invalidate_by_pattern(
        patterns: str = Query(...),
        repository: AbstractCacheRepository = Depends(get_repository),
    ):
        removed = 0
        for pattern in split_csv(patterns):
            removed += await repository.invalidate_by_pattern(pattern)
        logger.debug(f"{prefix}: invalidated {removed} keys for patterns {patterns}")
        return removed

    return router


users_router = build_cache_router("/users", "User", UserDTO, get_user_repository)
user_credentials_router = build_cache_router(
    "/user-credentials", "UserCredentials", UserCredentialsDTO, get_user_credentials_repository
)
