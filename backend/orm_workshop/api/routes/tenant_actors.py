"""
Actor endpoints routed to the database of the tenant named in X-TENANT-ID.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ...models import ActorDTO
from ...repositories import ActorRepository
from ..deps import get_tenant_actor_repository
from .actors import query_params

router = APIRouter(prefix="/multitenant/actors", tags=["multitenant"])


@router.get("", response_model=List[ActorDTO])
def search_actors(request: Request, repository: ActorRepository = Depends(get_tenant_actor_repository)):
    try:
        return repository.search_actors(query_params(request))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid search parameter: {e}")


@router.get("/{actor_id}", response_model=ActorDTO)
def get_actor_by_id(actor_id: int, repository: ActorRepository = Depends(get_tenant_actor_repository)):
    return ActorDTO.model_validate(repository.find_by_id(actor_id))


@router.post("", response_model=ActorDTO)
def create_actor(actor: ActorDTO, repository: ActorRepository = Depends(get_tenant_actor_repository)):
    return repository.create(actor)


@router.delete("/{actor_id}", response_model=int)
def delete_actor_by_id(actor_id: int, repository: ActorRepository = Depends(get_tenant_actor_repository)):
    return repository.delete_by_id(actor_id)
