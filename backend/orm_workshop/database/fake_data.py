"""
Faker-backed factories for the cache strategy demos and tests.
"""

import base64
import random
from datetime import datetime, timedelta
from typing import Optional

from faker import Faker

from ..models import UserCredentialsDTO, UserDTO, UserEventDTO, UserEventType

_faker = Faker()


def _unique_username(fake: Faker, max_length: int) -> str:
    # Faker usernames repeat quickly, the suffix keeps the unique index happy
    suffix = fake.lexify("????")
    return f"{fake.user_name()[:max_length - 5]}.{suffix}"


def new_user_dto(fake: Optional[Faker] = None) -> UserDTO:
    """Unsaved user (no id) with a random avatar."""
    fake = fake or _faker
    return UserDTO(
        username=_unique_username(fake, 255),
        first_name=fake.first_name(),
        last_name=fake.last_name(),
        address=fake.address().replace("\n", ", ")[:255],
        zipcode=fake.postcode()[:24],
        birth_date=fake.date_of_birth(minimum_age=18, maximum_age=90),
        avatar=base64.b64encode(fake.binary(length=256)).decode("ascii"),
    )


def new_user_credentials_dto(fake: Optional[Faker] = None) -> UserCredentialsDTO:
    fake = fake or _faker
    return UserCredentialsDTO(
        username=_unique_username(fake, 36),
        email=fake.email()[:255],
        last_login_at=datetime.now() - timedelta(minutes=random.randint(0, 60 * 24)),
    )


def new_user_event_dto(fake: Optional[Faker] = None, username: Optional[str] = None) -> UserEventDTO:
    fake = fake or _faker
    return UserEventDTO(
        username=username or fake.user_name(),
        event_source=fake.domain_name(),
        event_type=random.choice(list(UserEventType)),
        event_details=fake.sentence(nb_words=12),
        event_time=datetime.now(),
    )


__all__ = [
    "new_user_dto",
    "new_user_credentials_dto",
    "new_user_event_dto",
]
