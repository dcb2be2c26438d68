"""Shared schema base classes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model exposed to the web client with camelCase keys.

    Accepts both camelCase and snake_case on input; FastAPI serializes
    responses by alias.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
