"""
Cache repositories for users, user credentials and user events.

Each one demonstrates a different strategy:

- users: read/write-through with a near cache, invalidation deletes rows
- user credentials: read-through only, writes stay in the cache
- user events: write-behind with a near cache, flushed in batches
"""

import base64
from typing import Any, Dict, Optional

from ..cache.manager import CacheManager
from ..cache.strategies import (
    READ_ONLY_THROUGH,
    READ_WRITE_THROUGH_WITH_NEAR_CACHE,
    WRITE_BEHIND_WITH_NEAR_CACHE,
    AbstractCacheRepository,
    CacheRepositoryConfig,
)
from ..cache.utils import CacheKeyPrefix
from ..database.async_config import AsyncDatabaseConfig
from ..database.models import User, UserCredentials, UserEvent
from ..models import UserCredentialsDTO, UserDTO, UserEventDTO


class UserCacheRepository(AbstractCacheRepository[UserDTO]):
    entity_class = User
    dto_class = UserDTO

    default_config = READ_WRITE_THROUGH_WITH_NEAR_CACHE.with_options(delete_from_db_on_invalidate=True)

    def __init__(
        self,
        cache_manager: CacheManager,
        database: AsyncDatabaseConfig,
        config: Optional[CacheRepositoryConfig] = None,
    ):
        super().__init__(cache_manager, database, CacheKeyPrefix.USERS.value, config or self.default_config)

    def to_dto(self, entity: User) -> UserDTO:
        return UserDTO(
            id=entity.id,
            username=entity.username,
            first_name=entity.first_name,
            last_name=entity.last_name,
            address=entity.address,
            zipcode=entity.zipcode,
            birth_date=entity.birth_date,
            avatar=base64.b64encode(entity.avatar).decode("ascii") if entity.avatar else None,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    def to_row_values(self, dto: UserDTO) -> Dict[str, Any]:
        return {
            "id": dto.id,
            "username": dto.username,
            "first_name": dto.first_name,
            "last_name": dto.last_name,
            "address": dto.address,
            "zipcode": dto.zipcode,
            "birth_date": dto.birth_date,
            "avatar": base64.b64decode(dto.avatar) if dto.avatar else None,
        }


class UserCredentialsCacheRepository(AbstractCacheRepository[UserCredentialsDTO]):
    entity_class = UserCredentials
    dto_class = UserCredentialsDTO
    id_type = str

    default_config = READ_ONLY_THROUGH

    def __init__(
        self,
        cache_manager: CacheManager,
        database: AsyncDatabaseConfig,
        config: Optional[CacheRepositoryConfig] = None,
    ):
        super().__init__(cache_manager, database, CacheKeyPrefix.USER_CREDENTIALS.value, config or self.default_config)

    def to_row_values(self, dto: UserCredentialsDTO) -> Dict[str, Any]:
        return dto.model_dump(exclude={"created_at", "updated_at"})


class UserEventCacheRepository(AbstractCacheRepository[UserEventDTO]):
    entity_class = UserEvent
    dto_class = UserEventDTO

    default_config = WRITE_BEHIND_WITH_NEAR_CACHE

    def __init__(
        self,
        cache_manager: CacheManager,
        database: AsyncDatabaseConfig,
        config: Optional[CacheRepositoryConfig] = None,
    ):
        super().__init__(cache_manager, database, CacheKeyPrefix.USER_EVENTS.value, config or self.default_config)

    def to_row_values(self, dto: UserEventDTO) -> Dict[str, Any]:
        return dto.model_dump()
