"""
Async twins of the actor, movie and movie-actor endpoints (the reactive module).

Same contracts as the MVC endpoints, served on the event loop over an
AsyncSession.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ...errors import EntityNotFoundError
from ...models import (
    ActorDTO,
    MovieActorCountDTO,
    MovieDTO,
    MovieWithActorDTO,
    MovieWithProducingActorDTO,
)
from ...repositories import ActorAsyncRepository, MovieAsyncRepository
from ..deps import get_actor_async_repository, get_movie_async_repository
from .actors import query_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reactive", tags=["reactive"])


@router.get("/actors/{actor_id}", response_model=ActorDTO)
async def get_actor_by_id(actor_id: int, repository: ActorAsyncRepository = Depends(get_actor_async_repository)):
    return ActorDTO.model_validate(await repository.find_by_id(actor_id))


@router.get("/actors", response_model=List[ActorDTO])
async def search_actors(request: Request, repository: ActorAsyncRepository = Depends(get_actor_async_repository)):
    try:
        return await repository.search_actors(query_params(request))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid search parameter: {e}")


@router.post("/actors", response_model=ActorDTO)
async def create_actor(actor: ActorDTO, repository: ActorAsyncRepository = Depends(get_actor_async_repository)):
    return await repository.create(actor)


@router.delete("/actors/{actor_id}", response_model=int)
async def delete_actor_by_id(actor_id: int, repository: ActorAsyncRepository = Depends(get_actor_async_repository)):
    return await repository.delete_by_id(actor_id)


@router.get("/movies/{movie_id}", response_model=MovieDTO)
async def get_movie_by_id(movie_id: int, repository: MovieAsyncRepository = Depends(get_movie_async_repository)):
    return MovieDTO.model_validate(await repository.find_by_id(movie_id))


@router.get("/movies", response_model=List[MovieDTO])
async def search_movies(request: Request, repository: MovieAsyncRepository = Depends(get_movie_async_repository)):
    try:
        return await repository.search_movies(query_params(request))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid search parameter: {e}")


@router.post("/movies", response_model=MovieDTO)
async def create_movie(movie: MovieDTO, repository: MovieAsyncRepository = Depends(get_movie_async_repository)):
    return await repository.create(movie)


@router.delete("/movies/{movie_id}", response_model=int)
async def delete_movie_by_id(movie_id: int, repository: MovieAsyncRepository = Depends(get_movie_async_repository)):
    return await repository.delete_by_id(movie_id)


@router.get("/movie-actors", response_model=List[MovieWithActorDTO])
async def get_movies_with_actors(repository: MovieAsyncRepository = Depends(get_movie_async_repository)):
    return await repository.get_all_movies_with_actors()


@router.get("/movie-actors/count", response_model=List[MovieActorCountDTO])
async def get_movie_actors_count(repository: MovieAsyncRepository = Depends(get_movie_async_repository)):
    return await repository.get_movie_actors_count()


@router.get("/movie-actors/acting-producers", response_model=List[MovieWithProducingActorDTO])
async def find_movies_with_acting_producers(repository: MovieAsyncRepository = Depends(get_movie_async_repository)):
    return await repository.find_movies_with_acting_producers()


@router.get("/movie-actors/{movie_id}", response_model=MovieWithActorDTO)
async def get_movie_with_actors(movie_id: int, repository: MovieAsyncRepository = Depends(get_movie_async_repository)):
    movie = await repository.get_movie_with_actors(movie_id)
    if movie is None:
        raise EntityNotFoundError("Movie", movie_id)
    logger.debug(f"Movie {movie_id} has {len(movie.actors)} actors")
    return movie
