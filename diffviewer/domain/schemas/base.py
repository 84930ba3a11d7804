from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Python attributes in snake_case, JSON fields in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
