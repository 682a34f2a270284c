from typing import Any

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case fields in Python, camelCase on the wire and in storage."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
