"""Order service layer.

An order and its lines form one aggregate: they are created and deleted
together inside a single transaction.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ValidationFailed
from app.core.pagination import Page
from app.database import transaction
from app.models import Customer, Employee, OrderDetail, Product, SalesOrder, Shipper
from app.schemas.query import QuerySpec
from app.schemas.sales import OrderCreate, OrderUpdate, ShipOrderRequest
from app.services.derived_fields import as_utc
from app.services.lookups import exists
from app.services.query_builder import QueryBuilderService
from app.services.registry import SchemaRegistry

logger = logging.getLogger(__name__)

FULL_ORDER = frozenset({"customer", "employee", "shipper", "details"})


class OrderService:
    def __init__(self, db: AsyncSession, registry: SchemaRegistry):
        self.db = db
        self.schema = registry.get("orders")
        self.query = QueryBuilderService(db, self.schema)

    async def list_orders(self, spec: QuerySpec, *criteria) -> Page:
        return await self.query.fetch_page(spec, criteria)

    async def get_order(
        self, order_id: int, include: frozenset[str] = frozenset()
    ) -> SalesOrder | None:
        return await self.query.fetch_one(order_id, include)

    async def get_details(self, order_id: int) -> list[OrderDetail] | None:
        """Order lines with their products, or None when the order is missing."""
        if not await exists(self.db, SalesOrder.order_id, order_id):
            return None
        result = await self.db.execute(
            select(OrderDetail)
            .where(OrderDetail.order_id == order_id)
            .options(selectinload(OrderDetail.product))
            .order_by(OrderDetail.order_detail_id)
        )
        return list(result.scalars().all())

    async def _reload(self, order: SalesOrder) -> SalesOrder:
        order_id = order.order_id
        self.db.expire(order)
        return await self.get_order(order_id, FULL_ORDER)

    async def _check_parties(
        self,
        cust_id: int | None = None,
        employee_id: int | None = None,
        shipper_id: int | None = None,
    ) -> None:
        if cust_id is not None and not await exists(self.db, Customer.cust_id, cust_id):
            raise ValidationFailed("Customer not found", field="custId")
        if employee_id is not None and not await exists(
            self.db, Employee.employee_id, employee_id
        ):
            raise ValidationFailed("Employee not found", field="employeeId")
        if shipper_id is not None and not await exists(self.db, Shipper.shipper_id, shipper_id):
            raise ValidationFailed("Shipper not found", field="shipperId")

    async def _load_products(self, product_ids: list[int]) -> dict[int, Product]:
        result = await self.db.execute(
            select(Product).where(Product.product_id.in_(set(product_ids)))
        )
        products = {p.product_id: p for p in result.scalars().all()}

        errors = [
            {"field": f"orderDetails[{i}].productId", "message": f"Product {pid} not found"}
            for i, pid in enumerate(product_ids)
            if pid not in products
        ]
        if errors:
            raise ValidationFailed(
                "One or more products not found", errors=errors, field="orderDetails"
            )

        discontinued = sorted(
            {p.product_name for p in products.values() if p.discontinued}
        )
        if discontinued:
            raise ValidationFailed(
                f"Cannot order discontinued products: {', '.join(discontinued)}",
                field="orderDetails",
            )
        return products

    async def create_order(self, data: OrderCreate) -> SalesOrder:
        """Validate references, then write the order and its lines atomically."""
        await self._check_parties(data.cust_id, data.employee_id, data.shipper_id)
        products = await self._load_products([line.product_id for line in data.order_details])

        order_data = data.model_dump(exclude={"order_details"})
        if order_data["order_date"] is None:
            order_data["order_date"] = datetime.now(timezone.utc)

        async with transaction(self.db):
            order = SalesOrder(**order_data)
            self.db.add(order)
            await self.db.flush()
            for line in data.order_details:
                unit_price = line.unit_price
                if unit_price is None:
                    unit_price = products[line.product_id].unit_price or 0
                self.db.add(OrderDetail(
                    order_id=order.order_id,
                    product_id=line.product_id,
                    unit_price=unit_price,
                    quantity=line.quantity,
                    discount=line.discount,
                ))

        logger.info(
            "Created order %s for customer %s with %d line(s)",
            order.order_id, order.cust_id, len(data.order_details),
        )
        return await self._reload(order)

    async def update_order(self, order_id: int, data: OrderUpdate) -> SalesOrder | None:
        order = await self.get_order(order_id)
        if order is None:
            return None
        if order.shipped_date is not None:
            raise ValidationFailed("Cannot modify shipped orders")

        update_data = data.model_dump(exclude_unset=True)
        await self._check_parties(
            employee_id=update_data.get("employee_id"),
            shipper_id=update_data.get("shipper_id"),
        )
        order_date = as_utc(update_data.get("order_date", order.order_date))
        required_date = as_utc(update_data.get("required_date", order.required_date))
        if order_date and required_date and required_date < order_date:
            raise ValidationFailed("requiredDate cannot be before orderDate", field="requiredDate")

        for field, value in update_data.items():
            setattr(order, field, value)
        await self.db.flush()
        return await self._reload(order)

    async def ship_order(self, order_id: int, data: ShipOrderRequest) -> SalesOrder | None:
        order = await self.get_order(order_id)
        if order is None:
            return None
        if order.shipped_date is not None:
            raise ValidationFailed("Order is already shipped")

        await self._check_parties(shipper_id=data.shipper_id)
        order.shipped_date = data.shipped_date or datetime.now(timezone.utc)
        if data.shipper_id is not None:
            order.shipper_id = data.shipper_id
        if data.freight is not None:
            order.freight = data.freight
        await self.db.flush()
        logger.info("Order %s marked shipped", order_id)
        return await self._reload(order)

    async def delete_order(self, order_id: int) -> dict | None:
        """Delete an unshipped order together with its lines."""
        order = await self.get_order(order_id)
        if order is None:
            return None
        if order.shipped_date is not None:
            raise ValidationFailed("Cannot delete shipped orders")

        async with transaction(self.db):
            result = await self.db.execute(
                delete(OrderDetail).where(OrderDetail.order_id == order_id)
            )
            await self.db.delete(order)

        detail_count = result.rowcount or 0
        logger.info("Deleted order %s (%d order details removed)", order_id, detail_count)
        return {"deletedOrderId": order_id, "affectedOrderDetails": detail_count}
