"""
Async repositories for posts, comments and customers.
"""

import logging
from typing import Iterable, List, Optional

from ..database.initializer import SAMPLE_COMMENTS, SAMPLE_POSTS
from ..database.models import Comment, Customer, Post
from ..errors import PostNotFoundError
from ..models import CommentDTO, CustomerDTO, PostDTO
from .base import AsyncSqlRepository

logger = logging.getLogger(__name__)


class PostRepository(AsyncSqlRepository[Post]):
    entity_class = Post

    def not_found(self, entity_id) -> PostNotFoundError:
        return PostNotFoundError(entity_id)

    async def save(self, post: PostDTO) -> PostDTO:
        entity = await super().save(Post(title=post.title, content=post.content))
        return PostDTO.model_validate(entity)

    async def init(self) -> List[PostDTO]:
        """Insert the two sample posts."""
        return [
            await self.save(PostDTO(title=title, content=content))
            for title, content in SAMPLE_POSTS
        ]


class CommentRepository(AsyncSqlRepository[Comment]):
    entity_class = Comment

    async def save(self, comment: CommentDTO) -> CommentDTO:
        entity = await super().save(Comment(post_id=comment.post_id, content=comment.content))
        return CommentDTO.model_validate(entity)

    async def count_by_post_id(self, post_id: int) -> int:
        return await self.count(where=Comment.post_id == post_id)

    async def find_all_by_post_id(self, post_id: int) -> List[CommentDTO]:
        comments = await self.find_all(where=Comment.post_id == post_id)
        return [CommentDTO.model_validate(c) for c in comments]

    async def init(self, post_ids: Optional[List[int]] = None) -> List[CommentDTO]:
        """
        Insert the four sample comments, two per post.

        post_ids maps the sample post positions to real ids and defaults to 1 and 2.
        """
        post_ids = post_ids or [1, 2]
        return [
            await self.save(CommentDTO(post_id=post_ids[index], content=content))
            for index, content in SAMPLE_COMMENTS
        ]


class CustomerRepository(AsyncSqlRepository[Customer]):
    entity_class = Customer

    async def save(self, customer: CustomerDTO) -> CustomerDTO:
        entity = await super().save(Customer(firstname=customer.firstname, lastname=customer.lastname))
        return CustomerDTO.model_validate(entity)

    async def save_all(self, customers: Iterable[CustomerDTO]) -> List[CustomerDTO]:
        entities = await super().save_all([
            Customer(firstname=c.firstname, lastname=c.lastname) for c in customers
        ])
        logger.debug(f"Saved {len(entities)} customers")
        return [CustomerDTO.model_validate(e) for e in entities]

    async def find_by_firstname(self, firstname: str) -> List[CustomerDTO]:
        rows = await self.find_all(where=Customer.firstname == firstname)
        return [CustomerDTO.model_validate(c) for c in rows]

    async def find_by_lastname(self, lastname: str) -> List[CustomerDTO]:
        rows = await self.find_all(where=Customer.lastname == lastname)
        return [CustomerDTO.model_validate(c) for c in rows]
