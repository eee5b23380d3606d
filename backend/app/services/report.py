"""Aggregate reporting queries.

All grouping and summing runs in the database; Python only shapes the rows.
Every ranking carries the entity id as a secondary sort key so equal counts
come back in a stable order.
"""

import logging
from datetime import date, datetime, time, timezone

from sqlalchemy import and_, case, distinct, func, literal, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.pagination import Page, page_offset
from app.core.sanitize import contains_pattern, escape_like
from app.models import Category, Customer, OrderDetail, Product, SalesOrder, Supplier
from app.models.enums import OrderStatus
from app.services import derived_fields as df
from app.services.presenters import present_product
from app.services.query_builder import low_stock_clause, order_status_clause, out_of_stock_clause

logger = logging.getLogger(__name__)

TOP_CUSTOMER_SORTS = ("orderCount", "totalSpent", "contactName")
SEARCH_SORTS = ("relevance", "name", "price", "stock")
SEARCH_STOCK_STATES = ("inStock", "lowStock", "outOfStock")
SEARCH_RESULT_LIMIT = 50
CRITICAL_STOCK_LEVEL = 5
DEFAULT_RESTOCK_UNITS = 50

# unitPrice * quantity * (1 - discount) per order line
LINE_TOTAL = OrderDetail.unit_price * OrderDetail.quantity * (1 - OrderDetail.discount)


def _amount(value) -> float:
    return float(df.money(value))


def _pct(part: int, total: int) -> float:
    return round(part / total * 100, 2) if total > 0 else 0


def _count_if(condition):
    return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def _day_end(day: date) -> datetime:
    return datetime.combine(day, time.max, tzinfo=timezone.utc)


class ReportService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Customers ─────────────────────────────────────────────────────

    async def top_customers(self, limit: int = 15, sort_by: str = "orderCount") -> dict:
        """Customers ranked by order count, total spent, or contact name."""
        spent = (
            select(OrderDetail.order_id, func.sum(LINE_TOTAL).label("spent"))
            .group_by(OrderDetail.order_id)
            .subquery()
        )
        order_count = func.count(distinct(SalesOrder.order_id)).label("order_count")
        total_spent = func.coalesce(func.sum(spent.c.spent), 0).label("total_spent")
        total_freight = func.coalesce(func.sum(SalesOrder.freight), 0).label("total_freight")

        if sort_by == "totalSpent":
            ordering = [total_spent.desc()]
        elif sort_by == "contactName":
            ordering = [Customer.contact_name.asc()]
        else:
            ordering = [order_count.desc()]

        rows = (await self.db.execute(
            select(
                Customer.cust_id,
                Customer.contact_name,
                Customer.company_name,
                Customer.city,
                Customer.country,
                order_count,
                total_freight,
                total_spent,
            )
            .outerjoin(SalesOrder, SalesOrder.cust_id == Customer.cust_id)
            .outerjoin(spent, spent.c.order_id == SalesOrder.order_id)
            .group_by(
                Customer.cust_id,
                Customer.contact_name,
                Customer.company_name,
                Customer.city,
                Customer.country,
            )
            .order_by(*ordering, Customer.cust_id.asc())
            .limit(limit)
        )).all()

        customers = []
        for rank, row in enumerate(rows, start=1):
            spent_total = df.to_decimal(row.total_spent)
            customers.append({
                "rank": rank,
                "custId": row.cust_id,
                "contactName": row.contact_name,
                "companyName": row.company_name,
                "city": row.city,
                "country": row.country,
                "orderCount": row.order_count,
                "totalSpent": _amount(spent_total),
                "totalFreight": _amount(row.total_freight),
                "averageOrderValue": (
                    _amount(spent_total / row.order_count) if row.order_count else 0.0
                ),
                "customerTier": df.customer_tier(row.order_count, spent_total).value,
            })

        total_customers = (await self.db.execute(select(func.count(Customer.cust_id)))).scalar_one()
        shown_value = sum((df.to_decimal(c["totalSpent"]) for c in customers), df.to_decimal(0))
        return {
            "data": customers,
            "meta": {
                "totalCustomers": total_customers,
                "topCustomersShown": len(customers),
                "sortedBy": sort_by,
                "totalValueFromTopCustomers": _amount(shown_value),
                "averageValuePerTopCustomer": (
                    _amount(shown_value / len(customers)) if customers else 0.0
                ),
            },
        }

    async def customer_purchases(
        self,
        cust_id: int,
        page: int = 1,
        limit: int = 20,
        category_name: str | None = None,
    ) -> dict | None:
        """Order lines bought by one customer, optionally narrowed by category name."""
        customer = await self.db.get(Customer, cust_id)
        if customer is None:
            return None

        where = [SalesOrder.cust_id == cust_id]
        if category_name:
            where.append(Category.category_name.ilike(contains_pattern(category_name), escape="\\"))

        def joined(query):
            return (
                query.select_from(OrderDetail)
                .join(Product, OrderDetail.product_id == Product.product_id)
                .join(Category, Product.category_id == Category.category_id)
                .join(SalesOrder, OrderDetail.order_id == SalesOrder.order_id)
                .where(*where)
            )

        summary_row = (await self.db.execute(joined(select(
            func.count(OrderDetail.order_detail_id).label("lines"),
            func.coalesce(func.sum(LINE_TOTAL), 0).label("spent"),
        )))).one()
        categories = (await self.db.execute(
            joined(select(distinct(Category.category_name))).order_by(Category.category_name)
        )).scalars().all()

        rows = []
        if summary_row.lines > page_offset(page, limit):
            rows = (await self.db.execute(
                joined(select(
                    SalesOrder.cust_id,
                    Product.product_id,
                    Product.product_name,
                    Category.category_name,
                    OrderDetail.quantity,
                    OrderDetail.unit_price,
                    OrderDetail.discount,
                    SalesOrder.order_id,
                    SalesOrder.order_date,
                ))
                .order_by(SalesOrder.order_date.desc(), OrderDetail.order_detail_id.asc())
                .offset(page_offset(page, limit))
                .limit(limit)
            )).all()

        lines = [
            {
                "custId": row.cust_id,
                "orderId": row.order_id,
                "productId": row.product_id,
                "productName": row.product_name,
                "categoryName": row.category_name,
                "quantity": row.quantity,
                "unitPrice": _amount(row.unit_price),
                "orderDate": df.as_utc(row.order_date).isoformat() if row.order_date else None,
                "lineTotal": _amount(df.line_total(row.unit_price, row.quantity, row.discount)),
            }
            for row in rows
        ]
        return {
            "data": lines,
            "total": summary_row.lines,
            "summary": {
                "custId": cust_id,
                "customerName": customer.company_name,
                "totalOrderItems": summary_row.lines,
                "totalAmountSpent": _amount(summary_row.spent),
                "categoriesOrdered": len(categories),
                "categoryList": list(categories),
            },
        }

    # ── Categories ────────────────────────────────────────────────────

    async def category_sales(self, category_name: str, year: int) -> list[dict]:
        """Discounted sales per product for one category in one calendar year."""
        start = datetime(year, 1, 1, tzinfo=timezone.utc)
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        total = func.sum(LINE_TOTAL).label("total_purchase")
        rows = (await self.db.execute(
            select(Product.product_name, total)
            .select_from(OrderDetail)
            .join(Product, OrderDetail.product_id == Product.product_id)
            .join(Category, Product.category_id == Category.category_id)
            .join(SalesOrder, OrderDetail.order_id == SalesOrder.order_id)
            .where(
                func.lower(Category.category_name) == category_name.lower(),
                SalesOrder.order_date >= start,
                SalesOrder.order_date < end,
            )
            .group_by(Product.product_name)
            .order_by(Product.product_name.asc())
        )).all()
        return [
            {"productName": row.product_name, "totalPurchase": _amount(row.total_purchase)}
            for row in rows
        ]

    async def category_statistics(self) -> list[dict]:
        has_product = Product.product_id.isnot(None)
        rows = (await self.db.execute(
            select(
                Category.category_id,
                Category.category_name,
                Category.description,
                func.count(Product.product_id).label("total"),
                _count_if(and_(has_product, Product.discontinued == False)).label("active"),  # noqa: E712
                _count_if(low_stock_clause()).label("low_stock"),
                func.avg(Product.unit_price).label("avg_price"),
                func.min(Product.unit_price).label("min_price"),
                func.max(Product.unit_price).label("max_price"),
                func.coalesce(
                    func.sum(Product.unit_price * Product.units_in_stock), 0
                ).label("stock_value"),
            )
            .outerjoin(Product, Product.category_id == Category.category_id)
            .group_by(Category.category_id, Category.category_name, Category.description)
            .order_by(Category.category_name.asc(), Category.category_id.asc())
        )).all()

        result = []
        for row in rows:
            total, active = row.total, int(row.active)
            result.append({
                "categoryId": row.category_id,
                "categoryName": row.category_name,
                "description": row.description,
                "statistics": {
                    "totalProducts": total,
                    "activeProducts": active,
                    "discontinuedProducts": total - active,
                    "lowStockProducts": int(row.low_stock),
                    "averagePrice": _amount(row.avg_price or 0),
                    "minPrice": _amount(row.min_price or 0),
                    "maxPrice": _amount(row.max_price or 0),
                    "totalStockValue": _amount(row.stock_value),
                },
                "isPopular": df.is_popular_category(total),
                "hasLowStockProducts": int(row.low_stock) > 0,
                "healthScore": round(active / total * 100) if total else 0,
            })
        return result

    # ── Products ──────────────────────────────────────────────────────

    async def product_statistics(self) -> dict:
        counts = (await self.db.execute(
            select(
                func.count(Product.product_id).label("total"),
                _count_if(Product.discontinued == False).label("active"),  # noqa: E712
                _count_if(Product.discontinued == True).label("discontinued"),  # noqa: E712
                _count_if(Product.units_in_stock > 0).label("in_stock"),
                _count_if(out_of_stock_clause()).label("out_of_stock"),
                _count_if(low_stock_clause()).label("low_stock"),
            )
        )).one()

        active_only = Product.discontinued == False  # noqa: E712
        prices = (await self.db.execute(
            select(
                func.avg(Product.unit_price).label("avg_price"),
                func.min(Product.unit_price).label("min_price"),
                func.max(Product.unit_price).label("max_price"),
                func.coalesce(
                    func.sum(Product.unit_price * Product.units_in_stock), 0
                ).label("stock_value"),
            ).where(active_only)
        )).one()

        product_count = func.count(Product.product_id).label("product_count")
        top_categories = (await self.db.execute(
            select(Category.category_id, Category.category_name, product_count)
            .join(Product, Product.category_id == Category.category_id)
            .where(active_only)
            .group_by(Category.category_id, Category.category_name)
            .order_by(product_count.desc(), Category.category_id.asc())
            .limit(5)
        )).all()

        supplier_count = (await self.db.execute(
            select(func.count(distinct(Product.supplier_id))).where(active_only)
        )).scalar_one()

        total, active = counts.total, int(counts.active)
        return {
            "overview": {
                "totalProducts": total,
                "activeProducts": active,
                "discontinuedProducts": int(counts.discontinued),
                "discontinuationRate": _pct(int(counts.discontinued), total),
            },
            "inventory": {
                "inStockProducts": int(counts.in_stock),
                "outOfStockProducts": int(counts.out_of_stock),
                "lowStockProducts": int(counts.low_stock),
                "stockAvailabilityRate": _pct(int(counts.in_stock), total),
            },
            "pricing": {
                "averagePrice": _amount(prices.avg_price or 0),
                "minPrice": _amount(prices.min_price or 0),
                "maxPrice": _amount(prices.max_price or 0),
                "totalStockValue": _amount(prices.stock_value),
            },
            "categories": {
                "topCategoriesByProductCount": [
                    {
                        "categoryId": row.category_id,
                        "categoryName": row.category_name,
                        "productCount": row.product_count,
                    }
                    for row in top_categories
                ],
            },
            "suppliers": {
                "totalSuppliers": supplier_count,
                "averageProductsPerSupplier": (
                    round(active / supplier_count, 2) if supplier_count else 0
                ),
            },
        }

    async def low_stock(self, threshold: int = 10, page: int = 1, limit: int = 20) -> dict:
        """Active products with 0 < unitsInStock <= threshold, scarcest first."""
        where = [
            Product.units_in_stock > 0,
            Product.units_in_stock <= threshold,
            Product.discontinued == False,  # noqa: E712
        ]
        summary_row = (await self.db.execute(
            select(
                func.count(Product.product_id).label("total"),
                _count_if(Product.units_in_stock <= CRITICAL_STOCK_LEVEL).label("critical"),
                func.coalesce(
                    func.sum(Product.unit_price * Product.units_in_stock), 0
                ).label("stock_value"),
            ).where(*where)
        )).one()

        items = []
        if summary_row.total > page_offset(page, limit):
            items = list((await self.db.execute(
                select(Product)
                .where(*where)
                .options(selectinload(Product.category), selectinload(Product.supplier))
                .order_by(Product.units_in_stock.asc(), Product.product_id.asc())
                .offset(page_offset(page, limit))
                .limit(limit)
            )).scalars().all())

        data = []
        for product in items:
            row = present_product(product, {"category", "supplier"})
            row["urgencyLevel"] = df.urgency_level(product.units_in_stock, threshold).value
            row["recommendedOrderQuantity"] = df.recommended_order_quantity(
                product.units_in_stock, product.reorder_level, threshold
            )
            data.append(row)

        return {
            "page": Page(items=data, total=summary_row.total, page=page, limit=limit),
            "summary": {
                "threshold": threshold,
                "totalLowStockProducts": summary_row.total,
                "criticalProducts": int(summary_row.critical),
                "totalStockValue": _amount(summary_row.stock_value),
                "categories": sorted({
                    p.category.category_name for p in items if p.category is not None
                }),
            },
        }

    async def out_of_stock(
        self, include_discontinued: bool = False, category_id: int | None = None
    ) -> dict:
        where = [out_of_stock_clause()]
        if not include_discontinued:
            where.append(Product.discontinued == False)  # noqa: E712
        if category_id is not None:
            where.append(Product.category_id == category_id)

        products = (await self.db.execute(
            select(Product)
            .where(*where)
            .options(selectinload(Product.category), selectinload(Product.supplier))
            .order_by(Product.product_name.asc(), Product.product_id.asc())
        )).scalars().all()

        data = []
        restock_total = df.to_decimal(0)
        for product in products:
            restock_cost = df.to_decimal(product.unit_price) * (
                product.reorder_level or DEFAULT_RESTOCK_UNITS
            )
            restock_total += restock_cost
            row = present_product(product, {"category", "supplier"})
            row.update({
                "priority": "Low" if product.discontinued else "High",
                "actionRequired": (
                    "Review product status" if product.discontinued else "Restock immediately"
                ),
                "estimatedRestockCost": _amount(restock_cost),
            })
            data.append(row)

        discontinued = sum(1 for p in products if p.discontinued)
        return {
            "data": data,
            "summary": {
                "totalOutOfStock": len(data),
                "activeProducts": len(data) - discontinued,
                "discontinuedProducts": discontinued,
                "estimatedRestockCost": _amount(restock_total),
            },
        }

    async def search_products(
        self,
        q: str | None = None,
        category: str | None = None,
        supplier: str | None = None,
        min_price=None,
        max_price=None,
        stock_status: str | None = None,
        sort_by: str = "relevance",
    ) -> list[dict]:
        """Ranked product search; the relevance score is computed in SQL.

        Scoring starts at 100, adds 50 when the name starts with ``q`` (25 when
        it merely contains it) and 10 when ``quantityPerUnit`` contains it.
        """
        query = select(Product).options(
            selectinload(Product.category), selectinload(Product.supplier)
        )
        where = []
        relevance = literal(100)
        if q:
            contains = contains_pattern(q)
            name_match = Product.product_name.ilike(contains, escape="\\")
            unit_match = Product.quantity_per_unit.ilike(contains, escape="\\")
            where.append(or_(name_match, unit_match))
            relevance = (
                literal(100)
                + case(
                    (Product.product_name.ilike(escape_like(q) + "%", escape="\\"), 50),
                    (name_match, 25),
                    else_=0,
                )
                + case((unit_match, 10), else_=0)
            )
        relevance = relevance.label("relevance")

        if category:
            query = query.join(Category, Product.category_id == Category.category_id)
            where.append(Category.category_name.ilike(contains_pattern(category), escape="\\"))
        if supplier:
            query = query.join(Supplier, Product.supplier_id == Supplier.supplier_id)
            where.append(Supplier.company_name.ilike(contains_pattern(supplier), escape="\\"))
        if min_price is not None:
            where.append(Product.unit_price >= min_price)
        if max_price is not None:
            where.append(Product.unit_price <= max_price)
        if stock_status == "inStock":
            where.append(Product.units_in_stock >= df.LOW_STOCK_LEVEL)
        elif stock_status == "lowStock":
            where.append(low_stock_clause())
        elif stock_status == "outOfStock":
            where.append(out_of_stock_clause())

        if sort_by == "name":
            ordering = [Product.product_name.asc()]
        elif sort_by == "price":
            ordering = [Product.unit_price.asc()]
        elif sort_by == "stock":
            ordering = [Product.units_in_stock.desc()]
        else:
            ordering = [relevance.desc(), Product.product_name.asc()]

        rows = (await self.db.execute(
            query.add_columns(relevance)
            .where(*where)
            .order_by(*ordering, Product.product_id.asc())
            .limit(SEARCH_RESULT_LIMIT)
        )).all()

        needle = q.lower() if q else None
        results = []
        for product, score in rows:
            row = present_product(product, {"category", "supplier"})
            if needle:
                row["relevanceScore"] = int(score)
                row["matchedFields"] = [
                    name for name, value in (
                        ("productName", product.product_name),
                        ("quantityPerUnit", product.quantity_per_unit),
                    )
                    if value and needle in value.lower()
                ]
            results.append(row)
        return results

    # ── Orders ────────────────────────────────────────────────────────

    async def order_statistics(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
        now: datetime | None = None,
    ) -> dict:
        now = now or datetime.now(timezone.utc)
        where = []
        if from_date is not None:
            where.append(SalesOrder.order_date >= _day_start(from_date))
        if to_date is not None:
            where.append(SalesOrder.order_date <= _day_end(to_date))

        counts = (await self.db.execute(
            select(
                func.count(SalesOrder.order_id).label("total"),
                *(
                    _count_if(order_status_clause(status, now)).label(status.value)
                    for status in OrderStatus
                ),
                func.coalesce(func.sum(SalesOrder.freight), 0).label("revenue"),
            ).where(*where)
        )).one()

        order_count = func.count(SalesOrder.order_id).label("order_count")
        top = (await self.db.execute(
            select(
                Customer.cust_id,
                Customer.company_name,
                order_count,
                func.coalesce(func.sum(SalesOrder.freight), 0).label("total_freight"),
            )
            .join(SalesOrder, SalesOrder.cust_id == Customer.cust_id)
            .where(*where)
            .group_by(Customer.cust_id, Customer.company_name)
            .order_by(order_count.desc(), Customer.cust_id.asc())
            .limit(5)
        )).all()

        return {
            "totalOrders": counts.total,
            "ordersByStatus": {
                status.value: int(getattr(counts, status.value)) for status in OrderStatus
            },
            "totalRevenue": _amount(counts.revenue),
            "topCustomers": [
                {
                    "custId": row.cust_id,
                    "companyName": row.company_name,
                    "orderCount": row.order_count,
                    "totalFreight": _amount(row.total_freight),
                }
                for row in top
            ],
        }

    # ── Suppliers ─────────────────────────────────────────────────────

    async def supplier_statistics(self) -> dict:
        total = (await self.db.execute(select(func.count(Supplier.supplier_id)))).scalar_one()
        with_products = (await self.db.execute(
            select(func.count(distinct(Product.supplier_id)))
            .join(Supplier, Product.supplier_id == Supplier.supplier_id)
        )).scalar_one()

        product_count = func.count(Product.product_id).label("product_count")
        top = (await self.db.execute(
            select(Supplier.supplier_id, Supplier.company_name, Supplier.country, product_count)
            .outerjoin(Product, Product.supplier_id == Supplier.supplier_id)
            .group_by(Supplier.supplier_id, Supplier.company_name, Supplier.country)
            .order_by(product_count.desc(), Supplier.supplier_id.asc())
            .limit(10)
        )).all()

        return {
            "totalSuppliers": total,
            "suppliersWithProducts": with_products,
            "suppliersWithoutProducts": total - with_products,
            "topSuppliersByProductCount": [
                {
                    "supplierId": row.supplier_id,
                    "companyName": row.company_name,
                    "country": row.country,
                    "productCount": row.product_count,
                }
                for row in top
            ],
        }

    async def supplier_countries(self) -> list[dict]:
        supplier_count = func.count(Supplier.supplier_id).label("supplier_count")
        rows = (await self.db.execute(
            select(Supplier.country, supplier_count)
            .where(Supplier.country.isnot(None))
            .group_by(Supplier.country)
            .order_by(Supplier.country.asc())
        )).all()
        return [{"country": row.country, "supplierCount": row.supplier_count} for row in rows]
