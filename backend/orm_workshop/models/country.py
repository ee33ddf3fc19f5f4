"""
Country DTO served by the cached country lookup.
"""

from typing import Optional

from pydantic import Field

from .base import WorkshopModel


class CountryDTO(WorkshopModel):
    code: str = Field(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2 code")
    name: str = Field(..., max_length=255)
    description: Optional[str] = None
