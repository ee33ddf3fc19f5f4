"""
Actor and movie repositories for the MVC and reactive modules.

Search parameters arrive straight from the query string, with either
camelCase or snake_case keys. Unknown keys are ignored.
"""

import logging
from datetime import date, datetime, time
from typing import List, Mapping, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.orm import selectinload

from ..database.models import Actor, Movie, actors_in_movies
from ..models import (
    ActorDTO,
    MovieActorCountDTO,
    MovieDTO,
    MovieWithActorDTO,
    MovieWithProducingActorDTO,
)
from .base import AsyncSqlRepository, SqlRepository

logger = logging.getLogger(__name__)


def _parse_release_date(value: str) -> datetime:
    # A bare date means midnight
    if len(value) == 10:
        return datetime.combine(date.fromisoformat(value), time.min)
    return datetime.fromisoformat(value)


_ACTOR_FILTERS = {
    "id": lambda v: Actor.id == int(v),
    "firstName": lambda v: Actor.first_name == v,
    "first_name": lambda v: Actor.first_name == v,
    "lastName": lambda v: Actor.last_name == v,
    "last_name": lambda v: Actor.last_name == v,
    "birthday": lambda v: Actor.birthday == date.fromisoformat(v),
}

_MOVIE_FILTERS = {
    "id": lambda v: Movie.id == int(v),
    "name": lambda v: Movie.name == v,
    "producerName": lambda v: Movie.producer_name == v,
    "producer_name": lambda v: Movie.producer_name == v,
    "releaseDate": lambda v: Movie.release_date == _parse_release_date(v),
    "release_date": lambda v: Movie.release_date == _parse_release_date(v),
}


def _search_stmt(entity_class, filters, params: Mapping[str, Optional[str]]):
    """
    Raises:
        ValueError: If a known parameter has a malformed value
    """
    stmt = select(entity_class).order_by(entity_class.id)
    for key, value in params.items():
        if value is None or key not in filters:
            continue
        stmt = stmt.where(filters[key](value))
    return stmt


def search_actors_stmt(params: Mapping[str, Optional[str]]):
    return _search_stmt(Actor, _ACTOR_FILTERS, params)


def search_movies_stmt(params: Mapping[str, Optional[str]]):
    return _search_stmt(Movie, _MOVIE_FILTERS, params)


def movies_with_actors_stmt(movie_id: Optional[int] = None):
    stmt = select(Movie).options(selectinload(Movie.actors)).order_by(Movie.id)
    if movie_id is not None:
        stmt = stmt.where(Movie.id == movie_id)
    return stmt


def movie_actor_count_stmt():
    """
    SELECT movies.id, movies.name, count(actors_in_movies.actor_id)
      FROM movies JOIN actors_in_movies ON movies.id = actors_in_movies.movie_id
     GROUP BY movies.id, movies.name
    """
    return (
        select(Movie.name, func.count(actors_in_movies.c.actor_id))
        .join(actors_in_movies, Movie.id == actors_in_movies.c.movie_id)
        .group_by(Movie.id, Movie.name)
        .order_by(Movie.id)
    )


def acting_producers_stmt():
    """
    Movies whose producer is also in the cast, matched on the actor's first name.
    """
    return (
        select(Movie.name, Actor.first_name, Actor.last_name)
        .join(actors_in_movies, Movie.id == actors_in_movies.c.movie_id)
        .join(Actor, and_(Actor.id == actors_in_movies.c.actor_id,
                          Movie.producer_name == Actor.first_name))
        .order_by(Movie.id)
    )


def _actor_entity(dto: ActorDTO) -> Actor:
    return Actor(first_name=dto.first_name, last_name=dto.last_name, birthday=dto.birthday)


def _movie_entity(dto: MovieDTO) -> Movie:
    return Movie(name=dto.name, producer_name=dto.producer_name, release_date=dto.release_date)


def _actor_counts(rows) -> List[MovieActorCountDTO]:
    return [MovieActorCountDTO(movie_name=name, actor_count=count) for name, count in rows]


def _acting_producers(rows) -> List[MovieWithProducingActorDTO]:
    return [
        MovieWithProducingActorDTO(movie_name=name, producer_actor_name=f"{first} {last}")
        for name, first, last in rows
    ]


class ActorRepository(SqlRepository[Actor]):
    entity_class = Actor

    def search_actors(self, params: Mapping[str, Optional[str]]) -> List[ActorDTO]:
        logger.debug(f"Search actors by params. params={dict(params)}")
        rows = self.session.execute(search_actors_stmt(params)).scalars()
        return [ActorDTO.model_validate(actor) for actor in rows]

    def create(self, actor: ActorDTO) -> ActorDTO:
        logger.debug(f"Create actor. actor={actor}")
        entity = self.save(_actor_entity(actor))
        return actor.model_copy(update={"id": entity.id})


class MovieRepository(SqlRepository[Movie]):
    entity_class = Movie

    def search_movies(self, params: Mapping[str, Optional[str]]) -> List[MovieDTO]:
        logger.debug(f"Search movies by params. params={dict(params)}")
        rows = self.session.execute(search_movies_stmt(params)).scalars()
        return [MovieDTO.model_validate(movie) for movie in rows]

    def create(self, movie: MovieDTO) -> MovieDTO:
        logger.debug(f"Create movie. movie={movie}")
        entity = self.save(_movie_entity(movie))
        return movie.model_copy(update={"id": entity.id})

    def get_all_movies_with_actors(self) -> List[MovieWithActorDTO]:
        movies = self.session.execute(movies_with_actors_stmt()).scalars()
        return [MovieWithActorDTO.model_validate(movie) for movie in movies]

    def get_movie_with_actors(self, movie_id: int) -> Optional[MovieWithActorDTO]:
        movie = self.session.execute(movies_with_actors_stmt(movie_id)).scalar_one_or_none()
        return MovieWithActorDTO.model_validate(movie) if movie is not None else None

    def get_movie_actors_count(self) -> List[MovieActorCountDTO]:
        return _actor_counts(self.session.execute(movie_actor_count_stmt()))

    def find_movies_with_acting_producers(self) -> List[MovieWithProducingActorDTO]:
        return _acting_producers(self.session.execute(acting_producers_stmt()))


class ActorAsyncRepository(AsyncSqlRepository[Actor]):
    entity_class = Actor

    async def search_actors(self, params: Mapping[str, Optional[str]]) -> List[ActorDTO]:
        logger.debug(f"Search actors by params. params={dict(params)}")
        result = await self.session.execute(search_actors_stmt(params))
        return [ActorDTO.model_validate(actor) for actor in result.scalars()]

    async def create(self, actor: ActorDTO) -> ActorDTO:
        entity = await self.save(_actor_entity(actor))
        return actor.model_copy(update={"id": entity.id})


class MovieAsyncRepository(AsyncSqlRepository[Movie]):
    entity_class = Movie

    async def search_movies(self, params: Mapping[str, Optional[str]]) -> List[MovieDTO]:
        logger.debug(f"Search movies by params. params={dict(params)}")
        result = await self.session.execute(search_movies_stmt(params))
        return [MovieDTO.model_validate(movie) for movie in result.scalars()]

    async def create(self, movie: MovieDTO) -> MovieDTO:
        entity = await self.save(_movie_entity(movie))
        return movie.model_copy(update={"id": entity.id})

    async def get_all_movies_with_actors(self) -> List[MovieWithActorDTO]:
        result = await self.session.execute(movies_with_actors_stmt())
        return [MovieWithActorDTO.model_validate(movie) for movie in result.scalars()]

    async def get_movie_with_actors(self, movie_id: int) -> Optional[MovieWithActorDTO]:
        result = await self.session.execute(movies_with_actors_stmt(movie_id))
        movie = result.scalar_one_or_none()
        return MovieWithActorDTO.model_validate(movie) if movie is not None else None

    async def get_movie_actors_count(self) -> List[MovieActorCountDTO]:
        return _actor_counts(await self.session.execute(movie_actor_count_stmt()))

    async def find_movies_with_acting_producers(self) -> List[MovieWithProducingActorDTO]:
        return _acting_producers(await self.session.execute(acting_producers_stmt()))
