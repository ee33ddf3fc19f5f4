"""
DTOs for the cache strategy module: users, user credentials and user events.
"""

import itertools
import time
import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import Field

from .base import WorkshopModel
from .enums import UserEventType

# Millisecond timestamp in the high bits keeps ids increasing across restarts
_event_ids = itertools.count(int(time.time() * 1000) << 10)


def next_event_id() -> int:
    """Time-ordered id for a user event, assigned before the row exists."""
    return next(_event_ids)


def new_credentials_id() -> str:
    return str(uuid.uuid4())


class UserDTO(WorkshopModel):
    """
    User profile held in the read/write-through cache.

    The avatar travels as base64 text so the DTO stays JSON-serializable
    in Valkey.
    """

    id: Optional[int] = Field(None, description="User id, assigned on first write-through")
    username: str = Field(..., max_length=255)
    first_name: str = Field(..., max_length=255)
    last_name: str = Field(..., max_length=255)
    address: Optional[str] = Field(None, max_length=255)
    zipcode: Optional[str] = Field(None, max_length=24)
    birth_date: Optional[date] = None
    avatar: Optional[str] = Field(None, description="Base64 encoded avatar image")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserCredentialsDTO(WorkshopModel):
    id: str = Field(default_factory=new_credentials_id, max_length=36)
    username: str = Field(..., max_length=36)
    email: str = Field(..., max_length=255)
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserEventDTO(WorkshopModel):
    id: int = Field(default_factory=next_event_id)
    username: str = Field(..., max_length=255)
    event_source: str = Field(..., max_length=128)
    event_type: UserEventType
    event_details: Optional[str] = Field(None, max_length=2000)
    event_time: datetime = Field(default_factory=datetime.now)
