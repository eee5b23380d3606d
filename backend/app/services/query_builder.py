"""Predicate compiler and paged retrieval for registry-described entities.

``compile_predicates`` turns a validated ``QuerySpec`` into SQLAlchemy
boolean clauses; every user-supplied value travels as a bound parameter.
``QueryBuilderService.fetch_page`` runs the count and the page query under
the same predicates in the request's transaction.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date, datetime, time, timezone
from typing import Any

from sqlalchemy import DateTime, and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql.elements import ColumnElement

from app.core.pagination import Page
from app.core.sanitize import contains_pattern
from app.models import Employee, Product, SalesOrder
from app.models.enums import OrderStatus, PriceBand
from app.schemas.query import FilterOp, QuerySpec, SortDirection
from app.services.derived_fields import LOW_STOCK_LEVEL, subtract_years
from app.services.registry import EntitySchema, FilterField

logger = logging.getLogger(__name__)

Predicate = ColumnElement[bool]


# ── Derived predicates ───────────────────────────────────────────────

def order_status_clause(status: OrderStatus, now: datetime) -> Predicate:
    """Order lifecycle state expressed over the stored dates."""
    if status == OrderStatus.PENDING:
        return SalesOrder.order_date.is_(None)
    if status == OrderStatus.PROCESSING:
        return and_(SalesOrder.order_date.isnot(None), SalesOrder.shipped_date.is_(None))
    if status == OrderStatus.SHIPPED:
        return SalesOrder.shipped_date.isnot(None)
    return and_(SalesOrder.shipped_date.is_(None), SalesOrder.required_date < now)


def price_band_clause(band: PriceBand, price=None) -> Predicate:
    price = price if price is not None else Product.unit_price
    if band == PriceBand.BUDGET:
        return price < 20
    if band == PriceBand.STANDARD:
        return and_(price >= 20, price < 50)
    if band == PriceBand.PREMIUM:
        return and_(price >= 50, price < 100)
    return price >= 100


def low_stock_clause(units=None) -> Predicate:
    units = units if units is not None else Product.units_in_stock
    return and_(units > 0, units < LOW_STOCK_LEVEL)


def out_of_stock_clause() -> Predicate:
    """NULL stock counts as none, matching the stock ladder."""
    return func.coalesce(Product.units_in_stock, 0) == 0


def _in_stock(value: bool, now: datetime) -> Predicate:
    if value:
        return Product.units_in_stock > 0
    return out_of_stock_clause()


def _low_stock(value: bool, now: datetime) -> Predicate | None:
    return low_stock_clause() if value else None


def _price_band(value: str, now: datetime) -> Predicate:
    return price_band_clause(PriceBand(value))


def _order_status(value: str, now: datetime) -> Predicate:
    return order_status_clause(OrderStatus(value), now)


def _min_age(value: int, now: datetime) -> Predicate:
    return Employee.birth_date <= subtract_years(now.date(), value)


def _max_age(value: int, now: datetime) -> Predicate:
    return Employee.birth_date >= subtract_years(now.date(), value)


_DERIVED: dict[str, Callable[[Any, datetime], Predicate | None]] = {
    "in_stock": _in_stock,
    "low_stock": _low_stock,
    "price_band": _price_band,
    "order_status": _order_status,
    "min_age": _min_age,
    "max_age": _max_age,
}


# ── Compiler ─────────────────────────────────────────────────────────

def _range_bound(column, value: Any, op: FilterOp) -> Any:
    """Dates bounding a timestamp column cover the whole day."""
    if isinstance(column.type, DateTime) and isinstance(value, date) and not isinstance(value, datetime):
        edge = time.min if op == FilterOp.RANGE_LOW else time.max
        return datetime.combine(value, edge, tzinfo=timezone.utc)
    return value


def _substring(column, value: str) -> Predicate:
    return column.ilike(contains_pattern(value), escape="\\")


def compile_predicates(
    spec: QuerySpec,
    schema: EntitySchema,
    now: datetime | None = None,
) -> list[Predicate]:
    """One clause per filter (range bounds on a column merged), plus search."""
    now = now or datetime.now(timezone.utc)
    clauses: list[Predicate] = []
    ranges: dict[str, dict[FilterOp, Any]] = {}

    for clause in spec.filters:
        field: FilterField = schema.filter_field(clause.param)
        if field.op == FilterOp.DERIVED:
            predicate = _DERIVED[field.predicate](clause.value, now)
            if predicate is not None:
                clauses.append(predicate)
            continue

        column = getattr(schema.model, field.column)
        if field.op == FilterOp.EQUALS:
            clauses.append(column == clause.value)
        elif field.op == FilterOp.SUBSTRING:
            clauses.append(_substring(column, clause.value))
        elif field.op == FilterOp.IN_SET:
            clauses.append(column.in_(list(clause.value)))
        elif field.op in (FilterOp.RANGE_LOW, FilterOp.RANGE_HIGH):
            bounds = ranges.setdefault(field.column, {})
            bounds[field.op] = _range_bound(column, clause.value, field.op)
        else:
            raise ValueError(f"Unsupported operator: {field.op}")

    for column_name, bounds in ranges.items():
        column = getattr(schema.model, column_name)
        low = bounds.get(FilterOp.RANGE_LOW)
        high = bounds.get(FilterOp.RANGE_HIGH)
        if low is not None and high is not None:
            clauses.append(column.between(low, high))
        elif low is not None:
            clauses.append(column >= low)
        else:
            clauses.append(column <= high)

    if spec.search:
        clauses.append(or_(*(
            _substring(getattr(schema.model, name), spec.search)
            for name in schema.search_fields
        )))

    return clauses


def order_clauses(spec: QuerySpec, schema: EntitySchema) -> list:
    """Requested sort, then the primary key ascending as a tie-break."""
    column = schema.sort_column(spec.sort)
    ordered = column.desc() if spec.order == SortDirection.DESC else column.asc()
    if schema.sort_fields[spec.sort] == schema.primary_key:
        return [ordered]
    return [ordered, schema.pk_column.asc()]


def loader_options(schema: EntitySchema, include: Iterable[str]) -> list:
    """``selectinload`` chains for the requested relations."""
    options = []
    for relation in sorted(include):
        path = schema.relations[relation]
        attr = getattr(schema.model, path[0])
        option = selectinload(attr)
        target = attr.property.mapper.class_
        for name in path[1:]:
            attr = getattr(target, name)
            option = option.selectinload(attr)
            target = attr.property.mapper.class_
        options.append(option)
    return options


class QueryBuilderService:
    def __init__(self, db: AsyncSession, schema: EntitySchema):
        self.db = db
        self.schema = schema

    async def fetch_page(
        self,
        spec: QuerySpec,
        criteria: Iterable[Predicate] = (),
        now: datetime | None = None,
    ) -> Page:
        """Count and fetch one page of rows matching ``spec``.

        ``criteria`` are extra server-side conditions (e.g. a parent id from
        the URL path) ANDed with the compiled filters.
        """
        model = self.schema.model
        where = [*compile_predicates(spec, self.schema, now), *criteria]

        count_q = select(func.count()).select_from(model).where(*where)
        total = (await self.db.execute(count_q)).scalar_one()

        items: list = []
        if total > spec.offset:
            query = (
                select(model)
                .where(*where)
                .options(*loader_options(self.schema, spec.include))
                .order_by(*order_clauses(spec, self.schema))
                .offset(spec.offset)
                .limit(spec.limit)
            )
            items = list((await self.db.execute(query)).scalars().all())

        page = Page(items=items, total=total, page=spec.page, limit=spec.limit)
        logger.debug(
            "%s page %d of %d: %d of %d rows",
            self.schema.name, page.page, page.pages, len(items), total,
        )
        return page

    async def fetch_one(self, key: Any, include: Iterable[str] = ()) -> Any | None:
        query = (
            select(self.schema.model)
            .where(self.schema.pk_column == key)
            .options(*loader_options(self.schema, include))
        )
        return (await self.db.execute(query)).scalar_one_or_none()
