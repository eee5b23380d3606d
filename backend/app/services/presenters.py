"""Post-fetch transforms: ORM rows -> response dicts with derived fields.

Callers fetch first, then present. These functions never touch the session;
relations are only rendered when the caller says they were loaded.
"""

from collections.abc import Iterable
from datetime import datetime, timezone

from app.models import Category, Customer, Employee, OrderDetail, Product, SalesOrder, Supplier
from app.schemas.catalog import CategoryRead, ProductRead, SupplierRead
from app.schemas.sales import CustomerRead, CustomerSummary, OrderDetailRead, OrderRead, ShipperRead
from app.schemas.staff import EmployeeRead, EmployeeSummary, TerritoryRead
from app.services import derived_fields as df


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


# --- Catalog ---

def present_product(
    product: Product,
    include: Iterable[str] = (),
) -> dict:
    include = set(include)
    price_category = df.price_category(product.unit_price)
    data = ProductRead.model_validate(product).to_json()
    data.update({
        "stockStatus": df.stock_status(
            product.discontinued, product.units_in_stock, product.reorder_level
        ).value,
        "stockValue": float(df.money(df.stock_value(product.unit_price, product.units_in_stock))),
        "totalValue": float(df.money(df.stock_value(
            product.unit_price,
            df.available_stock(product.units_in_stock, product.units_on_order),
        ))),
        "availableStock": df.available_stock(product.units_in_stock, product.units_on_order),
        "isActive": not product.discontinued,
        "isLowStock": df.is_low_stock(product.units_in_stock),
        "isOutOfStock": (product.units_in_stock or 0) == 0,
        "needsReorder": df.needs_reorder(product.units_in_stock, product.reorder_level),
        "healthScore": df.health_score(
            product.discontinued,
            product.units_in_stock,
            product.unit_price,
            product.category_id,
            product.supplier_id,
        ),
        "priceCategory": price_category.value if price_category else None,
    })
    if "category" in include:
        data["category"] = (
            CategoryRead.model_validate(product.category).to_json() if product.category else None
        )
    if "supplier" in include:
        data["supplier"] = (
            SupplierRead.model_validate(product.supplier).to_json() if product.supplier else None
        )
    return data


def present_category(
    category: Category,
    product_count: int | None = None,
    active_product_count: int | None = None,
    include: Iterable[str] = (),
) -> dict:
    include = set(include)
    data = CategoryRead.model_validate(category).to_json()
    if "products" in include:
        products = sorted(category.products, key=lambda p: (p.product_name, p.product_id))
        data["products"] = [present_product(p) for p in products]
        if product_count is None:
            product_count = len(products)
            active_product_count = sum(1 for p in products if not p.discontinued)
    if product_count is not None:
        data.update({
            "productCount": product_count,
            "activeProductCount": active_product_count or 0,
            "hasProducts": product_count > 0,
            "isPopular": df.is_popular_category(product_count),
        })
    return data


def present_supplier(
    supplier: Supplier,
    product_count: int | None = None,
    include: Iterable[str] = (),
) -> dict:
    include = set(include)
    data = SupplierRead.model_validate(supplier).to_json()
    data["fullAddress"] = df.full_address(
        supplier.address, supplier.city, supplier.region, supplier.postal_code, supplier.country
    )
    if "products" in include:
        products = sorted(supplier.products, key=lambda p: (p.product_name, p.product_id))
        data["products"] = [present_product(p) for p in products]
        if product_count is None:
            product_count = len(products)
    if product_count is not None:
        data["productCount"] = product_count
    return data


# --- Sales ---

def present_order_detail(detail: OrderDetail, with_product: bool = False) -> dict:
    data = OrderDetailRead.model_validate(detail).to_json()
    data.update({
        "lineTotal": float(df.money(df.line_total(detail.unit_price, detail.quantity, detail.discount))),
        "subtotal": float(df.money(df.line_subtotal(detail.unit_price, detail.quantity))),
        "discountAmount": float(df.money(
            df.discount_amount(detail.unit_price, detail.quantity, detail.discount)
        )),
    })
    if with_product:
        product = detail.product
        data["product"] = (
            {
                "productId": product.product_id,
                "productName": product.product_name,
                "quantityPerUnit": product.quantity_per_unit,
            }
            if product else None
        )
    return data


def present_order(
    order: SalesOrder,
    include: Iterable[str] = (),
    now: datetime | None = None,
) -> dict:
    include = set(include)
    now = _now(now)
    data = OrderRead.model_validate(order).to_json()
    data.update({
        "orderStatus": df.order_status(order.order_date, order.shipped_date).value,
        "isOverdue": df.is_overdue(order.required_date, order.shipped_date, now),
        "daysToShip": df.days_to_ship(order.required_date, order.shipped_date, now),
    })
    if "details" in include:
        data["orderDetails"] = [present_order_detail(d, with_product=True) for d in order.details]
        subtotal = df.order_subtotal(order.details)
        data["itemCount"] = sum(d.quantity for d in order.details)
        data["subtotal"] = float(df.money(subtotal))
        data["orderTotal"] = float(df.money(subtotal + df.to_decimal(order.freight)))
    if "customer" in include:
        data["customer"] = (
            CustomerSummary.model_validate(order.customer).to_json() if order.customer else None
        )
    if "employee" in include:
        data["employee"] = present_employee_summary(order.employee) if order.employee else None
    if "shipper" in include:
        data["shipper"] = ShipperRead.model_validate(order.shipper).to_json() if order.shipper else None
    return data


def present_customer(
    customer: Customer,
    order_count: int | None = None,
    include: Iterable[str] = (),
    now: datetime | None = None,
) -> dict:
    include = set(include)
    data = CustomerRead.model_validate(customer).to_json()
    data["fullAddress"] = df.full_address(
        customer.address, customer.city, customer.region, customer.postal_code, customer.country
    )
    if "orders" in include:
        orders = sorted(customer.orders, key=lambda o: o.order_id)
        data["orders"] = [present_order(o, now=now) for o in orders]
        if order_count is None:
            order_count = len(orders)
    if order_count is not None:
        data["orderCount"] = order_count
    return data


# --- Staff ---

def present_employee_summary(employee: Employee) -> dict:
    data = EmployeeSummary.model_validate(employee).to_json()
    data["fullName"] = df.full_name(employee.first_name, employee.last_name)
    return data


def present_employee(
    employee: Employee,
    order_count: int | None = None,
    include: Iterable[str] = (),
    now: datetime | None = None,
) -> dict:
    include = set(include)
    now = _now(now)
    data = EmployeeRead.model_validate(employee).to_json()
    data.update({
        "fullName": df.full_name(employee.first_name, employee.last_name),
        "age": df.age(employee.birth_date, now),
        "yearsOfService": df.years_of_service(employee.hire_date, now),
    })
    if "manager" in include:
        data["manager"] = present_employee_summary(employee.manager) if employee.manager else None
    if "subordinates" in include:
        data["subordinates"] = [
            present_employee_summary(e)
            for e in sorted(employee.subordinates, key=lambda e: e.employee_id)
        ]
    if "territories" in include:
        data["territories"] = [
            TerritoryRead.model_validate(t).to_json()
            for t in sorted(employee.territories, key=lambda t: t.territory_id)
        ]
    if "orders" in include:
        orders = sorted(employee.orders, key=lambda o: o.order_id)
        data["orders"] = [present_order(o, now=now) for o in orders]
        if order_count is None:
            order_count = len(orders)
    if order_count is not None:
        data["orderCount"] = order_count
    return data
