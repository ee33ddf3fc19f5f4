"""
Movie CRUD endpoints and movie/actor reports on the sync session.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ...errors import EntityNotFoundError
from ...models import (
    MovieActorCountDTO,
    MovieDTO,
    MovieWithActorDTO,
    MovieWithProducingActorDTO,
)
from ...repositories import MovieRepository
from ..deps import get_movie_repository
from .actors import query_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/movies", tags=["movies"])
movie_actors_router = APIRouter(prefix="/movie-actors", tags=["movie-actors"])


@router.get("/{movie_id}", response_model=MovieDTO)
def get_movie_by_id(movie_id: int, repository: MovieRepository = Depends(get_movie_repository)):
    return MovieDTO.model_validate(repository.find_by_id(movie_id))


@router.get("", response_model=List[MovieDTO])
def search_movies(request: Request, repository: MovieRepository = Depends(get_movie_repository)):
    params = query_params(request)
    logger.debug(f"Search movies. params={params}")
    try:
        return repository.search_movies(params)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid search parameter: {e}")


@router.post("", response_model=MovieDTO)
def create_movie(movie: MovieDTO, repository: MovieRepository = Depends(get_movie_repository)):
    return repository.create(movie)


@router.delete("/{movie_id}", response_model=int)
def delete_movie_by_id(movie_id: int, repository: MovieRepository = Depends(get_movie_repository)):
    return repository.delete_by_id(movie_id)


@movie_actors_router.get("", response_model=List[MovieWithActorDTO])
def get_movies_with_actors(repository: MovieRepository = Depends(get_movie_repository)):
    return repository.get_all_movies_with_actors()


@movie_actors_router.get("/count", response_model=List[MovieActorCountDTO])
def get_movie_actors_count(repository: MovieRepository = Depends(get_movie_repository)):
    return repository.get_movie_actors_count()


@movie_actors_router.get("/acting-producers", response_model=List[MovieWithProducingActorDTO])
def find_movies_with_acting_producers(repository: MovieRepository = Depends(get_movie_repository)):
    return repository.find_movies_with_acting_producers()


@movie_actors_router.get("/{movie_id}", response_model=MovieWithActorDTO)
def get_movie_with_actors(movie_id: int, repository: MovieRepository = Depends(get_movie_repository)):
    movie = repository.get_movie_with_actors(movie_id)
    if movie is None:
        raise EntityNotFoundError("Movie", movie_id)
    return movie
