"""Customer service layer."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictDependency
from app.core.pagination import Page
from app.database import transaction
from app.models import Customer, OrderDetail, SalesOrder
from app.schemas.query import QuerySpec
from app.schemas.sales import CustomerCreate, CustomerUpdate
from app.services.lookups import count_where, grouped_counts
from app.services.query_builder import QueryBuilderService
from app.services.registry import SchemaRegistry

logger = logging.getLogger(__name__)


class CustomerService:
    def __init__(self, db: AsyncSession, registry: SchemaRegistry):
        self.db = db
        self.schema = registry.get("customers")
        self.query = QueryBuilderService(db, self.schema)

    async def list_customers(self, spec: QuerySpec) -> Page:
        return await self.query.fetch_page(spec)

    async def get_customer(
        self, cust_id: int, include: frozenset[str] = frozenset()
    ) -> Customer | None:
        return await self.query.fetch_one(cust_id, include)

    async def order_counts(self, cust_ids: list[int]) -> dict[int, int]:
        counts = await grouped_counts(self.db, SalesOrder.cust_id, cust_ids)
        return {cid: counts.get(cid, 0) for cid in cust_ids}

    async def create_customer(self, data: CustomerCreate) -> Customer:
        customer = Customer(**data.model_dump())
        self.db.add(customer)
        await self.db.flush()
        logger.info("Created customer %s (%s)", customer.cust_id, customer.company_name)
        return customer

    async def update_customer(self, cust_id: int, data: CustomerUpdate) -> Customer | None:
        customer = await self.get_customer(cust_id)
        if customer is None:
            return None
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(customer, field, value)
        await self.db.flush()
        return customer

    async def delete_customer(self, cust_id: int, force: bool = False) -> dict | None:
        """Delete a customer; ``force`` also deletes their orders and order lines."""
        customer = await self.get_customer(cust_id)
        if customer is None:
            return None

        order_count = await count_where(self.db, SalesOrder, SalesOrder.cust_id == cust_id)
        if order_count and not force:
            raise ConflictDependency(
                f"Cannot delete customer with {order_count} existing order(s). "
                "Use force=true to delete anyway.",
                dependents=order_count,
                dependent_type="orders",
            )

        company_name = customer.company_name
        detail_count = 0
        async with transaction(self.db):
            if order_count:
                order_ids = select(SalesOrder.order_id).where(SalesOrder.cust_id == cust_id)
                detail_count = await count_where(
                    self.db, OrderDetail, OrderDetail.order_id.in_(order_ids)
                )
                await self.db.execute(
                    delete(OrderDetail).where(OrderDetail.order_id.in_(order_ids))
                )
                await self.db.execute(delete(SalesOrder).where(SalesOrder.cust_id == cust_id))
            await self.db.delete(customer)

        logger.info(
            "Deleted customer %s (%d orders, %d order details removed)",
            cust_id, order_count, detail_count,
        )
        return {
            "deletedCustomerId": cust_id,
            "companyName": company_name,
            "affectedOrders": order_count,
            "affectedOrderDetails": detail_count,
        }
