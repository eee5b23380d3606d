"""Product service layer."""

import logging

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictDependency, ValidationFailed
from app.core.pagination import Page
from app.database import transaction
from app.models import Category, OrderDetail, Product, Supplier
from app.schemas.catalog import ProductCreate, ProductUpdate
from app.schemas.query import QuerySpec
from app.services.lookups import count_where, exists
from app.services.query_builder import QueryBuilderService
from app.services.registry import SchemaRegistry

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, db: AsyncSession, registry: SchemaRegistry):
        self.db = db
        self.schema = registry.get("products")
        self.query = QueryBuilderService(db, self.schema)

    async def list_products(self, spec: QuerySpec, *criteria) -> Page:
        return await self.query.fetch_page(spec, criteria)

    async def get_product(
        self, product_id: int, include: frozenset[str] = frozenset()
    ) -> Product | None:
        return await self.query.fetch_one(product_id, include)

    async def _check_references(self, category_id: int | None, supplier_id: int | None) -> None:
        errors = []
        if category_id is not None and not await exists(self.db, Category.category_id, category_id):
            errors.append({"field": "categoryId", "message": "Category does not exist"})
        if supplier_id is not None and not await exists(self.db, Supplier.supplier_id, supplier_id):
            errors.append({"field": "supplierId", "message": "Supplier does not exist"})
        if errors:
            raise ValidationFailed(
                errors[0]["message"], errors=errors, field=errors[0]["field"]
            )

    async def _reload(self, product: Product) -> Product:
        """Re-read after a write with category and supplier loaded."""
        product_id = product.product_id
        self.db.expire(product)
        return await self.get_product(product_id, frozenset({"category", "supplier"}))

    async def create_product(self, data: ProductCreate) -> Product:
        await self._check_references(data.category_id, data.supplier_id)
        product = Product(**data.model_dump())
        self.db.add(product)
        await self.db.flush()
        logger.info("Created product %s (%s)", product.product_id, product.product_name)
        return await self._reload(product)

    async def update_product(self, product_id: int, data: ProductUpdate) -> Product | None:
        product = await self.get_product(product_id)
        if product is None:
            return None

        update_data = data.model_dump(exclude_unset=True)
        await self._check_references(
            update_data.get("category_id"), update_data.get("supplier_id")
        )
        for field, value in update_data.items():
            setattr(product, field, value)
        await self.db.flush()
        return await self._reload(product)

    async def delete_product(self, product_id: int, force: bool = False) -> dict | None:
        """Delete a product; ``force`` also deletes the order lines referencing it."""
        product = await self.get_product(product_id)
        if product is None:
            return None

        detail_count = await count_where(self.db, OrderDetail, OrderDetail.product_id == product_id)
        if detail_count and not force:
            raise ConflictDependency(
                f"Cannot delete product with {detail_count} existing order detail(s). "
                "Use force=true to delete anyway.",
                dependents=detail_count,
                dependent_type="orderDetails",
            )

        product_name = product.product_name
        async with transaction(self.db):
            if detail_count:
                await self.db.execute(
                    delete(OrderDetail).where(OrderDetail.product_id == product_id)
                )
            await self.db.delete(product)

        logger.info(
            "Deleted product %s (%d order details removed)", product_id, detail_count
        )
        return {
            "deletedProductId": product_id,
            "productName": product_name,
            "affectedOrderDetails": detail_count,
        }

