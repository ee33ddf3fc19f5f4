"""
ORM workshop Pydantic models package.

Data transfer objects returned by repositories and the REST API. Each DTO
can be validated straight from an ORM row (from_attributes) and is
serialized with camelCase keys.
"""

from .enums import UserEventType
from .base import WorkshopModel

from .movie import (
    ActorDTO,
    MovieDTO,
    MovieWithActorDTO,
    MovieActorCountDTO,
    MovieWithProducingActorDTO,
)

from .post import (
    PostDTO,
    CommentDTO,
    CustomerDTO,
)

from .country import CountryDTO

from .user import (
    UserDTO,
    UserCredentialsDTO,
    UserEventDTO,
    next_event_id,
    new_credentials_id,
)

__all__ = [
    "UserEventType",
    "WorkshopModel",
    "ActorDTO",
    "MovieDTO",
    "MovieWithActorDTO",
    "MovieActorCountDTO",
    "MovieWithProducingActorDTO",
    "PostDTO",
    "CommentDTO",
    "CustomerDTO",
    "CountryDTO",
    "UserDTO",
    "UserCredentialsDTO",
    "UserEventDTO",
    "next_event_id",
    "new_credentials_id",
]
