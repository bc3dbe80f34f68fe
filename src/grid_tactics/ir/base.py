"""Shared base model for authored puzzle content."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class IRModel(BaseModel):
    """Base class for every authored record.

    Fields are declared in snake_case; the camelCase spelling produced by
    the puzzle authoring tools is accepted as an alias so exported JSON
    loads unchanged.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )
