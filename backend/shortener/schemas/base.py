"""
Shared pydantic base for API schemas.

Python attributes are snake_case; the wire format is camelCase
(`shortCode`, `remainingTime`) to match what the dashboard JS expects.
from_attributes=True lets response schemas read the in-memory
dataclasses directly.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every request/response schema."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
