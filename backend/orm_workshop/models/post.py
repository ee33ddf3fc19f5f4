"""
Post, comment and customer DTOs for the reactive repository module.
"""

from typing import Optional

from pydantic import Field

from .base import WorkshopModel


class PostDTO(WorkshopModel):
    id: Optional[int] = None
    title: str = Field(..., max_length=255)
    content: str


class CommentDTO(WorkshopModel):
    id: Optional[int] = None
    post_id: Optional[int] = Field(None, description="Owning post, taken from the URL on create")
    content: str


class CustomerDTO(WorkshopModel):
    id: Optional[int] = None
    firstname: str = Field(..., max_length=100)
    lastname: str = Field(..., max_length=100)
