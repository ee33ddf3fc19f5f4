"""
Generic table repositories on top of SQLAlchemy sessions.

SqlRepository works on a sync Session for the MVC endpoints and
AsyncSqlRepository on an AsyncSession for the reactive ones. Both expose the
same operations; statements are shared so the two can't drift apart.
"""

import logging
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy import delete, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from ..database.models import Base
from ..errors import EntityNotFoundError

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Base)


def count_stmt(entity_class):
    return select(func.count()).select_from(entity_class)


def exists_by_id_stmt(entity_class, entity_id):
    return select(exists().where(entity_class.id == entity_id))


def find_all_stmt(entity_class, limit: Optional[int] = None, offset: Optional[int] = None, where=None):
    stmt = select(entity_class).order_by(entity_class.id)
    if where is not None:
        stmt = stmt.where(where)
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


class SqlRepository(Generic[E]):
    """
    Count, lookup and delete operations for one mapped table.

    The session belongs to the caller, who also owns the transaction.
    """

    entity_class: Type[E]
    entity_name: Optional[str] = None

    def __init__(self, session: Session):
        self.session = session

    @property
    def name(self) -> str:
        return self.entity_name or self.entity_class.__name__

    def count(self, where=None) -> int:
        stmt = count_stmt(self.entity_class)
        if where is not None:
            stmt = stmt.where(where)
        return self.session.execute(stmt).scalar_one()

    def is_empty(self) -> bool:
        return self.count() == 0

    def exists_by_id(self, entity_id: Any) -> bool:
        return bool(self.session.execute(exists_by_id_stmt(self.entity_class, entity_id)).scalar())

    def find_by_id_or_none(self, entity_id: Any) -> Optional[E]:
        return self.session.get(self.entity_class, entity_id)

    def find_by_id(self, entity_id: Any) -> E:
        """
        Raises:
            EntityNotFoundError: If no row has this id
        """
        entity = self.find_by_id_or_none(entity_id)
        if entity is None:
            raise EntityNotFoundError(self.name, entity_id)
        return entity

    def find_all(self, limit: Optional[int] = None, offset: Optional[int] = None, where=None) -> List[E]:
        return list(self.session.execute(find_all_stmt(self.entity_class, limit, offset, where)).scalars())

    def delete_by_id(self, entity_id: Any) -> int:
        """Returns the number of deleted rows (0 or 1)."""
        result = self.session.execute(delete(self.entity_class).where(self.entity_class.id == entity_id))
        logger.debug(f"Deleted {result.rowcount} {self.name} row(s) with id={entity_id}")
        return result.rowcount

    def delete_all(self) -> int:
        result = self.session.execute(delete(self.entity_class))
        return result.rowcount

    def save(self, entity: E) -> E:
        self.session.add(entity)
        self.session.flush()
        return entity


class AsyncSqlRepository(Generic[E]):
    """Async twin of SqlRepository, awaited on an AsyncSession."""

    entity_class: Type[E]
    entity_name: Optional[str] = None

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def name(self) -> str:
        return self.entity_name or self.entity_class.__name__

    async def count(self, where=None) -> int:
        stmt = count_stmt(self.entity_class)
        if where is not None:
            stmt = stmt.where(where)
        return (await self.session.execute(stmt)).scalar_one()

    async def is_empty(self) -> bool:
        return await self.count() == 0

    async def exists_by_id(self, entity_id: Any) -> bool:
        result = await self.session.execute(exists_by_id_stmt(self.entity_class, entity_id))
        return bool(result.scalar())

    async def find_by_id_or_none(self, entity_id: Any) -> Optional[E]:
        return await self.session.get(self.entity_class, entity_id)

    def not_found(self, entity_id: Any) -> EntityNotFoundError:
        return EntityNotFoundError(self.name, entity_id)

    async def find_by_id(self, entity_id: Any) -> E:
        """
        Raises:
            EntityNotFoundError: If no row has this id
        """
        entity = await self.find_by_id_or_none(entity_id)
        if entity is None:
            raise self.not_found(entity_id)
        return entity

    async def find_all(self, limit: Optional[int] = None, offset: Optional[int] = None, where=None) -> List[E]:
        result = await self.session.execute(find_all_stmt(self.entity_class, limit, offset, where))
        return list(result.scalars())

    async def delete_by_id(self, entity_id: Any) -> int:
        result = await self.session.execute(delete(self.entity_class).where(self.entity_class.id == entity_id))
        logger.debug(f"Deleted {result.rowcount} {self.name} row(s) with id={entity_id}")
        return result.rowcount

    async def delete_all(self) -> int:
        result = await self.session.execute(delete(self.entity_class))
        return result.rowcount

    async def save(self, entity: E) -> E:
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def save_all(self, entities: List[E]) -> List[E]:
        self.session.add_all(entities)
        await self.session.flush()
        return entities
