"""
Movie and actor DTOs for the MVC, reactive and multi-tenant modules.
"""

from datetime import date, datetime, time
from typing import List, Optional

from pydantic import Field, field_validator

from .base import WorkshopModel


class ActorDTO(WorkshopModel):
    """Actor as exposed by the REST API."""

    id: Optional[int] = Field(None, description="Actor id, assigned on insert")
    first_name: str = Field(..., max_length=255, description="First name")
    last_name: str = Field(..., max_length=255, description="Last name")
    birthday: Optional[date] = Field(None, description="Birthday (ISO date)")


class MovieDTO(WorkshopModel):
    """
    Movie as exposed by the REST API.

    The release date is stored as a timestamp. A plain ISO date is accepted
    on input and stored at midnight.
    """

    id: Optional[int] = Field(None, description="Movie id, assigned on insert")
    name: str = Field(..., max_length=255, description="Movie title")
    producer_name: str = Field(..., max_length=255, description="Producer first name")
    release_date: datetime = Field(..., description="Release date")

    @field_validator("release_date", mode="before")
    @classmethod
    def date_at_midnight(cls, value):
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time.min)
        if isinstance(value, str) and len(value) == 10:
            return datetime.combine(date.fromisoformat(value), time.min)
        return value


class MovieWithActorDTO(MovieDTO):
    actors: List[ActorDTO] = Field(default_factory=list)


class MovieActorCountDTO(WorkshopModel):
    movie_name: str
    actor_count: int


class MovieWithProducingActorDTO(WorkshopModel):
    """Movie whose producer also acts in it, with the producer's full name."""

    movie_name: str
    producer_actor_name: str
