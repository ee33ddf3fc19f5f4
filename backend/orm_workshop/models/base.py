"""
Common configuration for the workshop DTOs.

Fields are snake_case in Python and camelCase on the wire, and DTOs can be
built straight from ORM rows.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WorkshopModel(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )
