"""Entity schema registry for the dynamic query builder.

Each ``EntitySchema`` is the whitelist for one resource: which query-string
parameters may filter it (and how), which fields it may be sorted on, which
columns ``search`` looks at, and which relations a caller may ask to include.
Only names declared here ever reach a SQL statement.

The registry is built once by ``build_registry`` when the application is
created and handed to request handlers through ``app.state``.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from app.config import settings
from app.models import Category, Customer, Employee, Product, SalesOrder, Supplier
from app.models.enums import OrderStatus, PriceBand
from app.schemas.query import FieldType, FilterOp, SortDirection

# QuerySpec never allows more than this many rows per page
PAGE_SIZE_CEILING = 100


@dataclass(frozen=True)
class FilterField:
    """One filterable query-string parameter."""

    param: str
    field_type: FieldType
    op: FilterOp
    column: str | None = None
    predicate: str | None = None
    choices: tuple[str, ...] = ()
    minimum: int | None = None


@dataclass(frozen=True)
class EntitySchema:
    name: str
    model: type
    primary_key: str
    sort_fields: Mapping[str, str]
    default_sort: str
    default_order: SortDirection = SortDirection.ASC
    filters: tuple[FilterField, ...] = ()
    search_fields: tuple[str, ...] = ()
    # public relation name -> attribute path loaded for it
    relations: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    default_page_size: int = 10
    max_page_size: int = PAGE_SIZE_CEILING

    def filter_field(self, param: str) -> FilterField:
        for f in self.filters:
            if f.param == param:
                return f
        raise KeyError(param)

    def sort_column(self, sort: str):
        return getattr(self.model, self.sort_fields[sort])

    @property
    def pk_column(self):
        return getattr(self.model, self.primary_key)


class SchemaRegistry:
    """Immutable lookup of entity schemas by resource name."""

    def __init__(self, schemas: Iterable[EntitySchema]) -> None:
        self._schemas = {s.name: s for s in schemas}

    def get(self, name: str) -> EntitySchema:
        try:
            return self._schemas[name]
        except KeyError:
            raise LookupError(f"No entity schema registered for '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def names(self) -> list[str]:
        return sorted(self._schemas)


def _eq(param: str, column: str, field_type: FieldType = FieldType.INTEGER) -> FilterField:
    return FilterField(param, field_type, FilterOp.EQUALS, column=column)


def _contains(param: str, column: str) -> FilterField:
    return FilterField(param, FieldType.STRING, FilterOp.SUBSTRING, column=column)


def _range(
    low: str, high: str, column: str, field_type: FieldType, minimum: int | None = None
) -> tuple[FilterField, FilterField]:
    return (
        FilterField(low, field_type, FilterOp.RANGE_LOW, column=column, minimum=minimum),
        FilterField(high, field_type, FilterOp.RANGE_HIGH, column=column, minimum=minimum),
    )


def build_registry(
    default_page_size: int | None = None,
    max_page_size: int | None = None,
) -> SchemaRegistry:
    """Declare every queryable Northwind resource."""
    default_size = default_page_size or settings.DEFAULT_PAGE_SIZE
    max_size = min(max_page_size or settings.MAX_PAGE_SIZE, PAGE_SIZE_CEILING)
    sizes = {"default_page_size": min(default_size, max_size), "max_page_size": max_size}

    products = EntitySchema(
        name="products",
        model=Product,
        primary_key="product_id",
        sort_fields={
            "productId": "product_id",
            "productName": "product_name",
            "unitPrice": "unit_price",
            "unitsInStock": "units_in_stock",
            "categoryId": "category_id",
            "supplierId": "supplier_id",
        },
        default_sort="productName",
        filters=(
            _eq("categoryId", "category_id"),
            FilterField("categoryIds", FieldType.INTEGER, FilterOp.IN_SET, column="category_id"),
            _eq("supplierId", "supplier_id"),
            _eq("discontinued", "discontinued", FieldType.BOOLEAN),
            *_range("minPrice", "maxPrice", "unit_price", FieldType.DECIMAL, minimum=0),
            FilterField("inStock", FieldType.BOOLEAN, FilterOp.DERIVED, predicate="in_stock"),
            FilterField("lowStock", FieldType.BOOLEAN, FilterOp.DERIVED, predicate="low_stock"),
            FilterField(
                "priceRange", FieldType.CHOICE, FilterOp.DERIVED,
                predicate="price_band", choices=tuple(b.value for b in PriceBand),
            ),
        ),
        search_fields=("product_name", "quantity_per_unit"),
        relations={"category": ("category",), "supplier": ("supplier",)},
        **sizes,
    )

    orders = EntitySchema(
        name="orders",
        model=SalesOrder,
        primary_key="order_id",
        sort_fields={
            "orderId": "order_id",
            "orderDate": "order_date",
            "requiredDate": "required_date",
            "shippedDate": "shipped_date",
            "freight": "freight",
            "custId": "cust_id",
            "employeeId": "employee_id",
        },
        default_sort="orderDate",
        default_order=SortDirection.DESC,
        filters=(
            _eq("custId", "cust_id"),
            _eq("employeeId", "employee_id"),
            _eq("shipperId", "shipper_id"),
            FilterField(
                "status", FieldType.CHOICE, FilterOp.DERIVED,
                predicate="order_status", choices=tuple(s.value for s in OrderStatus),
            ),
            *_range("fromDate", "toDate", "order_date", FieldType.DATE),
            *_range("minFreight", "maxFreight", "freight", FieldType.DECIMAL, minimum=0),
            _contains("shipCountry", "ship_country"),
            _contains("shipCity", "ship_city"),
        ),
        search_fields=("ship_name", "ship_city", "ship_country"),
        relations={
            "customer": ("customer",),
            "employee": ("employee",),
            "shipper": ("shipper",),
            "details": ("details", "product"),
        },
        **sizes,
    )

    customers = EntitySchema(
        name="customers",
        model=Customer,
        primary_key="cust_id",
        sort_fields={
            "custId": "cust_id",
            "companyName": "company_name",
            "contactName": "contact_name",
            "city": "city",
            "country": "country",
        },
        default_sort="companyName",
        filters=(
            _contains("country", "country"),
            _contains("city", "city"),
            FilterField("countries", FieldType.STRING, FilterOp.IN_SET, column="country"),
        ),
        search_fields=("company_name", "contact_name", "city", "country"),
        relations={"orders": ("orders",)},
        **sizes,
    )

    employees = EntitySchema(
        name="employees",
        model=Employee,
        primary_key="employee_id",
        sort_fields={
            "employeeId": "employee_id",
            "lastName": "last_name",
            "firstName": "first_name",
            "hireDate": "hire_date",
            "birthDate": "birth_date",
            "title": "title",
        },
        default_sort="lastName",
        filters=(
            _eq("managerId", "mgr_id"),
            _contains("city", "city"),
            _contains("country", "country"),
            _contains("title", "title"),
            FilterField("minAge", FieldType.INTEGER, FilterOp.DERIVED, predicate="min_age", minimum=0),
            FilterField("maxAge", FieldType.INTEGER, FilterOp.DERIVED, predicate="max_age", minimum=0),
        ),
        search_fields=("first_name", "last_name", "title"),
        relations={
            "manager": ("manager",),
            "subordinates": ("subordinates",),
            "territories": ("territories",),
            "orders": ("orders",),
        },
        **sizes,
    )

    categories = EntitySchema(
        name="categories",
        model=Category,
        primary_key="category_id",
        sort_fields={
            "categoryId": "category_id",
            "categoryName": "category_name",
            "description": "description",
        },
        default_sort="categoryName",
        search_fields=("category_name", "description"),
        relations={"products": ("products",)},
        **sizes,
    )

    suppliers = EntitySchema(
        name="suppliers",
        model=Supplier,
        primary_key="supplier_id",
        sort_fields={
            "supplierId": "supplier_id",
            "companyName": "company_name",
            "contactName": "contact_name",
            "city": "city",
            "country": "country",
        },
        default_sort="companyName",
        filters=(
            _contains("country", "country"),
            _contains("city", "city"),
        ),
        search_fields=("company_name", "contact_name", "city", "country"),
        relations={"products": ("products",)},
        **sizes,
    )

    return SchemaRegistry([products, orders, customers, employees, categories, suppliers])
