"""
Base Pydantic Schemas
=====================

Base classes and common types for all schemas (Pydantic V2).
Device payloads and API responses use camelCase keys; Python code uses snake_case.
"""

from pydantic import BaseModel, ConfigDict, PlainSerializer, model_validator
from pydantic.alias_generators import to_camel
from decimal import Decimal
from typing import Any
from typing_extensions import Annotated

# Decimal in Python, plain number in JSON
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used='json')]


class BaseSchema(BaseModel):
    """Base schema dengan common config."""

    model_config = ConfigDict(
        from_attributes=True,
        extra='ignore',
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @model_validator(mode='before')
    @classmethod
    def strip_whitespace(cls, data: Any) -> Any:
        """Strip whitespace dari string fields sebelum validasi."""
        if isinstance(data, dict):
            return {
                key: value.strip() if isinstance(value, str) else value
                for key, value in data.items()
            }
        return data

    def to_response(self) -> dict:
        """Serialize for an API response (camelCase, JSON-safe)."""
        return self.model_dump(by_alias=True, mode='json')
