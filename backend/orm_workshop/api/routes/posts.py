"""
Posts and their comments over the async session.
"""

from typing import List

from fastapi import APIRouter, Depends

from ...models import CommentDTO, PostDTO
from ...repositories import CommentRepository, PostRepository
from ..deps import get_comment_repository, get_post_repository

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=List[PostDTO])
async def find_all_posts(repository: PostRepository = Depends(get_post_repository)):
    return [PostDTO.model_validate(post) for post in await repository.find_all()]


@router.get("/{post_id}", response_model=PostDTO)
async def find_post_by_id(post_id: int, repository: PostRepository = Depends(get_post_repository)):
    return PostDTO.model_validate(await repository.find_by_id(post_id))


@router.post("", response_model=PostDTO)
async def save_post(post: PostDTO, repository: PostRepository = Depends(get_post_repository)):
    return await repository.save(post)


@router.get("/{post_id}/comments", response_model=List[CommentDTO])
async def find_comments_by_post_id(post_id: int, repository: CommentRepository = Depends(get_comment_repository)):
    return await repository.find_all_by_post_id(post_id)


@router.get("/{post_id}/comments/count", response_model=int)
async def count_comments_by_post_id(post_id: int, repository: CommentRepository = Depends(get_comment_repository)):
    return await repository.count_by_post_id(post_id)


@router.post("/{post_id}/comments", response_model=CommentDTO)
async def save_comment(
    post_id: int,
    comment: CommentDTO,
    repository: CommentRepository = Depends(get_comment_repository),
):
    # The URL decides the owning post
    return await repository.save(comment.model_copy(update={"post_id": post_id}))
