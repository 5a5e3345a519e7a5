"""Shared pieces for camelCase JSON payloads."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Decimal in Python, plain JSON number on the wire
Money = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]

Timestamp = Annotated[
    datetime | None,
    PlainSerializer(
        lambda v: v.isoformat() if v else None, return_type=str | None, when_used="json"
    ),
]


class CamelModel(BaseModel):
    """Accepts both snake_case and camelCase, emits camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldErrorRead(CamelModel):
    field: str
    message: str


class ValidationErrorResponse(CamelModel):
    message: str
    errors: list[FieldErrorRead]
