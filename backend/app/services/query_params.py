"""Filter validator: raw query-string parameters -> ``QuerySpec``.

Every parameter is checked against the entity schema before anything is
built, and all problems are reported together in one ``InvalidQuery``.
Unknown parameters are ignored; empty values mean "not given".
"""

import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Annotated, Any

from pydantic import Field, TypeAdapter, ValidationError

from app.core.exceptions import InvalidQuery
from app.core.sanitize import strip_control_chars
from app.schemas.common import MAX_ID
from app.schemas.query import FieldType, FilterClause, FilterOp, QuerySpec, SortDirection
from app.services.registry import EntitySchema, FilterField

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 100

_ADAPTERS: dict[FieldType, TypeAdapter] = {
    FieldType.INTEGER: TypeAdapter(int),
    FieldType.DECIMAL: TypeAdapter(Annotated[Decimal, Field(allow_inf_nan=False)]),
    FieldType.BOOLEAN: TypeAdapter(bool),
    FieldType.DATE: TypeAdapter(date),
}

_TYPE_NAMES = {
    FieldType.INTEGER: "an integer",
    FieldType.DECIMAL: "a number",
    FieldType.BOOLEAN: "a boolean (true/false)",
    FieldType.DATE: "a date (YYYY-MM-DD)",
}


class _Errors:
    def __init__(self) -> None:
        self.items: list[dict] = []

    def add(self, field: str, message: str) -> None:
        self.items.append({"field": field, "message": message})

    def __bool__(self) -> bool:
        return bool(self.items)


def _raw(params: Mapping[str, str], key: str) -> str | None:
    """Parameter value, or None when absent or blank."""
    value = params.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def relation_flag(relation: str) -> str:
    """Query parameter that requests a relation, e.g. ``includeCategory``."""
    return "include" + relation[:1].upper() + relation[1:]


def _parse_typed(raw: str, field_type: FieldType) -> Any:
    return _ADAPTERS[field_type].validate_python(raw)


def _parse_int(
    params: Mapping[str, str],
    key: str,
    default: int,
    low: int,
    high: int | None,
    errors: _Errors,
) -> int:
    raw = _raw(params, key)
    if raw is None:
        return default
    try:
        value = _parse_typed(raw, FieldType.INTEGER)
    except ValidationError:
        value = None
    if value is None or value < low or (high is not None and value > high):
        bound = f"between {low} and {high}" if high is not None else f">= {low}"
        errors.add(key, f"{key} must be an integer {bound}")
        return default
    if value > MAX_ID:
        errors.add(key, f"{key} must be <= {MAX_ID}")
        return default
    return value


def parse_flag(params: Mapping[str, str], key: str, errors: _Errors | None = None) -> bool:
    """Boolean query flag; absent or blank means False."""
    raw = _raw(params, key)
    if raw is None:
        return False
    try:
        return _parse_typed(raw, FieldType.BOOLEAN)
    except ValidationError:
        if errors is None:
            raise InvalidQuery(errors=[{"field": key, "message": f"{key} must be a boolean (true/false)"}])
        errors.add(key, f"{key} must be a boolean (true/false)")
        return False


def parse_includes(
    params: Mapping[str, str], schema: EntitySchema, errors: _Errors | None = None
) -> frozenset[str]:
    """Relations requested through ``include<Relation>=true`` flags."""
    own_errors = errors if errors is not None else _Errors()
    requested = {
        relation
        for relation in schema.relations
        if parse_flag(params, relation_flag(relation), own_errors)
    }
    if errors is None and own_errors:
        raise InvalidQuery(errors=own_errors.items)
    return frozenset(requested)


def _parse_filter_value(field: FilterField, raw: str, errors: _Errors) -> Any:
    if field.field_type == FieldType.STRING:
        text = strip_control_chars(raw).strip()
        if len(text) > MAX_TEXT_LENGTH:
            errors.add(field.param, f"{field.param} must be at most {MAX_TEXT_LENGTH} characters")
            return None
        return text or None

    if field.field_type == FieldType.CHOICE:
        value = raw.lower()
        if value not in field.choices:
            errors.add(field.param, f"{field.param} must be one of: {', '.join(field.choices)}")
            return None
        return value

    try:
        value = _parse_typed(raw, field.field_type)
    except ValidationError:
        errors.add(field.param, f"{field.param} must be {_TYPE_NAMES[field.field_type]}")
        return None
    if field.minimum is not None and value < field.minimum:
        errors.add(field.param, f"{field.param} must be >= {field.minimum}")
        return None
    if field.field_type == FieldType.INTEGER and value > MAX_ID:
        errors.add(field.param, f"{field.param} must be <= {MAX_ID}")
        return None
    return value


def _parse_filter(field: FilterField, raw: str, errors: _Errors) -> Any:
    if field.op != FilterOp.IN_SET:
        return _parse_filter_value(field, raw, errors)

    members = [part.strip() for part in raw.split(",") if part.strip()]
    before = len(errors.items)
    values = [_parse_filter_value(field, member, errors) for member in members]
    if len(errors.items) > before:
        return None
    values = [v for v in values if v is not None]
    return tuple(dict.fromkeys(values)) or None


def parse_query(params: Mapping[str, str], schema: EntitySchema) -> QuerySpec:
    """Validate raw query parameters against ``schema``.

    Raises ``InvalidQuery`` listing every invalid parameter.
    """
    errors = _Errors()

    page = _parse_int(params, "page", 1, 1, None, errors)
    limit = _parse_int(
        params, "limit", schema.default_page_size, 1, schema.max_page_size, errors
    )

    sort = _raw(params, "sort") or schema.default_sort
    if sort not in schema.sort_fields:
        errors.add("sort", f"sort must be one of: {', '.join(schema.sort_fields)}")
        sort = schema.default_sort

    raw_order = _raw(params, "order")
    order = schema.default_order
    if raw_order is not None:
        try:
            order = SortDirection(raw_order.upper())
        except ValueError:
            errors.add("order", "order must be ASC or DESC")

    search = None
    if schema.search_fields and "search" in params:
        search = strip_control_chars(params["search"]).strip()
        if not search:
            errors.add("search", "search must not be empty")
            search = None
        elif len(search) > MAX_TEXT_LENGTH:
            errors.add("search", f"search must be at most {MAX_TEXT_LENGTH} characters")
            search = None

    filters = []
    for field in schema.filters:
        raw = _raw(params, field.param)
        if raw is None:
            continue
        value = _parse_filter(field, raw, errors)
        if value is not None:
            filters.append(FilterClause(param=field.param, op=field.op, value=value))

    include = parse_includes(params, schema, errors)

    if errors:
        logger.debug("Rejected %s query: %s", schema.name, errors.items)
        raise InvalidQuery(errors=errors.items)

    return QuerySpec(
        entity=schema.name,
        page=page,
        limit=limit,
        sort=sort,
        order=order,
        filters=tuple(filters),
        search=search,
        include=include,
    )
