"""
Shared schema base.

The web client speaks camelCase JSON (``emotionLevel``, ``bodyMapping``);
Python code and database columns stay snake_case. Every API model
inherits from ``CamelModel`` so both spellings validate on input and
responses serialise by alias.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
