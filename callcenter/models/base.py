"""
Shared Pydantic base for the counters that are persisted in save documents.
Fields are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=False,
    )

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
