"""Supplier service layer."""

import logging

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictDependency
from app.core.pagination import Page
from app.database import transaction
from app.models import Product, Supplier
from app.schemas.catalog import SupplierCreate, SupplierUpdate
from app.schemas.query import QuerySpec
from app.services.lookups import count_where, grouped_counts
from app.services.query_builder import QueryBuilderService
from app.services.registry import SchemaRegistry

logger = logging.getLogger(__name__)


class SupplierService:
    def __init__(self, db: AsyncSession, registry: SchemaRegistry):
        self.db = db
        self.schema = registry.get("suppliers")
        self.query = QueryBuilderService(db, self.schema)

    async def list_suppliers(self, spec: QuerySpec) -> Page:
        return await self.query.fetch_page(spec)

    async def get_supplier(
        self, supplier_id: int, include: frozenset[str] = frozenset()
    ) -> Supplier | None:
        return await self.query.fetch_one(supplier_id, include)

    async def product_counts(self, supplier_ids: list[int]) -> dict[int, int]:
        counts = await grouped_counts(self.db, Product.supplier_id, supplier_ids)
        return {sid: counts.get(sid, 0) for sid in supplier_ids}

    async def create_supplier(self, data: SupplierCreate) -> Supplier:
        supplier = Supplier(**data.model_dump())
        self.db.add(supplier)
        await self.db.flush()
        logger.info("Created supplier %s (%s)", supplier.supplier_id, supplier.company_name)
        return supplier

    async def update_supplier(self, supplier_id: int, data: SupplierUpdate) -> Supplier | None:
        supplier = await self.get_supplier(supplier_id)
        if supplier is None:
            return None
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(supplier, field, value)
        await self.db.flush()
        return supplier

    async def delete_supplier(self, supplier_id: int, force: bool = False) -> dict | None:
        """Delete a supplier; ``force`` detaches its products first."""
        supplier = await self.get_supplier(supplier_id)
        if supplier is None:
            return None

        product_count = await count_where(self.db, Product, Product.supplier_id == supplier_id)
        if product_count and not force:
            raise ConflictDependency(
                f"Cannot delete supplier with {product_count} associated product(s). "
                "Use force=true to delete anyway.",
                dependents=product_count,
                dependent_type="products",
            )

        company_name = supplier.company_name
        async with transaction(self.db):
            if product_count:
                await self.db.execute(
                    update(Product)
                    .where(Product.supplier_id == supplier_id)
                    .values(supplier_id=None)
                )
            await self.db.delete(supplier)

        logger.info("Deleted supplier %s (%d products detached)", supplier_id, product_count)
        return {
            "deletedSupplierId": supplier_id,
            "companyName": company_name,
            "affectedProducts": product_count,
        }
