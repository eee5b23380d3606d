"""Validated list-request description shared by every entity endpoint."""

import enum
from typing import Any

from pydantic import BaseModel, Field

from app.core.pagination import page_offset


class FieldType(str, enum.Enum):
    INTEGER = "integer"
    DECIMAL = "decimal"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"
    CHOICE = "choice"


class FilterOp(str, enum.Enum):
    EQUALS = "equals"
    SUBSTRING = "substring"
    RANGE_LOW = "rangeLow"
    RANGE_HIGH = "rangeHigh"
    IN_SET = "inSet"
    # Predicate over a value that is not stored (order status, age, ...)
    DERIVED = "derived"


class SortDirection(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"


class FilterClause(BaseModel):
    param: str
    op: FilterOp
    value: Any

    model_config = {"frozen": True}


class QuerySpec(BaseModel):
    entity: str
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort: str
    order: SortDirection = SortDirection.ASC
    filters: tuple[FilterClause, ...] = ()
    search: str | None = Field(None, min_length=1)
    include: frozenset[str] = frozenset()

    model_config = {"frozen": True}

    @property
    def offset(self) -> int:
        return page_offset(self.page, self.limit)

    def includes(self, relation: str) -> bool:
        return relation in self.include

    def filter_value(self, param: str) -> Any | None:
        for clause in self.filters:
            if clause.param == param:
                return clause.value
        return None
