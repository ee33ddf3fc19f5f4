"""
Actor CRUD endpoints on the sync session (the MVC module).
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ...models import ActorDTO
from ...repositories import ActorRepository
from ..deps import get_actor_repository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/actors", tags=["actors"])


def query_params(request: Request) -> dict:
    """First value of every query parameter, as the search methods expect."""
    return dict(request.query_params)


@router.get("/{actor_id}", response_model=ActorDTO)
def get_actor_by_id(actor_id: int, repository: ActorRepository = Depends(get_actor_repository)):
    return ActorDTO.model_validate(repository.find_by_id(actor_id))


@router.get("", response_model=List[ActorDTO])
def search_actors(request: Request, repository: ActorRepository = Depends(get_actor_repository)):
    params = query_params(request)
    logger.debug(f"Search actors. params={params}")
    try:
        return repository.search_actors(params)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid search parameter: {e}")


@router.post("", response_model=ActorDTO)
def create_actor(actor: ActorDTO, repository: ActorRepository = Depends(get_actor_repository)):
    return repository.create(actor)


@router.delete("/{actor_id}", response_model=int)
def delete_actor_by_id(actor_id: int, repository: ActorRepository = Depends(get_actor_repository)):
    return repository.delete_by_id(actor_id)
