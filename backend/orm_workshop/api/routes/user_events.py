"""
Write-behind endpoints for user events.

Events are acknowledged as soon as they are cached; the background worker
persists them in batches, so /count lags behind until the next flush.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from ...errors import EntityNotFoundError
from ...models import UserEventDTO
from ...repositories import UserEventCacheRepository
from ..deps import get_user_event_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user-events", tags=["user-events"])


@router.post("", response_model=bool)
async def insert_event(event: UserEventDTO, repository: UserEventCacheRepository = Depends(get_user_event_repository)):
    await repository.put(event)
    return True


@router.post("/batch", response_model=bool)
@router.post("/bulk", response_model=bool, include_in_schema=False)
async def insert_events(
    events: List[UserEventDTO],
    repository: UserEventCacheRepository = Depends(get_user_event_repository),
):
    await repository.put_all(events)
    logger.debug(f"Queued {len(events)} user events")
    return True


@router.get("/count", response_model=int)
async def count_events(repository: UserEventCacheRepository = Depends(get_user_event_repository)):
    return await repository.count()


@router.post("/flush", response_model=int)
async def flush_events(repository: UserEventCacheRepository = Depends(get_user_event_repository)):
    return await repository.flush_write_behind()


@router.get("/{event_id}", response_model=UserEventDTO)
async def get_event(event_id: int, repository: UserEventCacheRepository = Depends(get_user_event_repository)):
    event = await repository.get(event_id)
    if event is None:
        raise EntityNotFoundError("UserEvent", event_id)
    return event
