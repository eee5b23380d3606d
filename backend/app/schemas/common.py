"""Shared schema base and field types.

The public API uses camelCase keys (``productId``, ``unitPrice``), so every
schema generates camelCase aliases and accepts either spelling on input.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import AfterValidator, BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel

from app.services.derived_fields import as_utc

# Upper bound of the 32-bit integer key columns
MAX_ID = 2**31 - 1

# Decimals are computed exactly and emitted as JSON numbers
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

# Naive timestamps in request bodies are taken as UTC
UtcDateTime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
        "str_strip_whitespace": True,
    }

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
