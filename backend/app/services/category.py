"""Category service layer."""

import logging

from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictDependency, DuplicateKey
from app.core.pagination import Page
from app.database import transaction
from app.models import Category, Product
from app.schemas.catalog import CategoryCreate, CategoryUpdate
from app.schemas.query import QuerySpec
from app.services.lookups import count_where
from app.services.query_builder import QueryBuilderService
from app.services.registry import SchemaRegistry

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: AsyncSession, registry: SchemaRegistry):
        self.db = db
        self.schema = registry.get("categories")
        self.query = QueryBuilderService(db, self.schema)

    async def list_categories(self, spec: QuerySpec) -> Page:
        return await self.query.fetch_page(spec)

    async def get_category(
        self, category_id: int, include: frozenset[str] = frozenset()
    ) -> Category | None:
        return await self.query.fetch_one(category_id, include)

    async def get_by_name(self, name: str) -> Category | None:
        result = await self.db.execute(
            select(Category).where(func.lower(Category.category_name) == name.lower())
        )
        return result.scalars().first()

    async def product_counts(self, category_ids: list[int]) -> dict[int, tuple[int, int]]:
        """``{category_id: (products, active products)}`` in one grouped query."""
        if not category_ids:
            return {}
        result = await self.db.execute(
            select(
                Product.category_id,
                func.count(Product.product_id),
                func.sum(case((Product.discontinued == False, 1), else_=0)),  # noqa: E712
            )
            .where(Product.category_id.in_(category_ids))
            .group_by(Product.category_id)
        )
        counts = {row[0]: (row[1], int(row[2] or 0)) for row in result.all()}
        return {cid: counts.get(cid, (0, 0)) for cid in category_ids}

    async def _check_unique_name(self, name: str, exclude_id: int | None = None) -> None:
        existing = await self.get_by_name(name)
        if existing is not None and existing.category_id != exclude_id:
            raise DuplicateKey(
                f"Category name '{name}' already exists", field="categoryName"
            )

    async def create_category(self, data: CategoryCreate) -> Category:
        await self._check_unique_name(data.category_name)
        category = Category(**data.model_dump())
        self.db.add(category)
        await self.db.flush()
        logger.info("Created category %s (%s)", category.category_id, category.category_name)
        return category

    async def update_category(self, category_id: int, data: CategoryUpdate) -> Category | None:
        category = await self.get_category(category_id)
        if category is None:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("category_name"):
            await self._check_unique_name(update_data["category_name"], exclude_id=category_id)
        for field, value in update_data.items():
            setattr(category, field, value)
        await self.db.flush()
        return category

    async def delete_category(self, category_id: int, force: bool = False) -> dict | None:
        """Delete a category; ``force`` detaches its products first."""
        category = await self.get_category(category_id)
        if category is None:
            return None

        product_count = await count_where(self.db, Product, Product.category_id == category_id)
        if product_count and not force:
            raise ConflictDependency(
                f"Cannot delete category with {product_count} associated product(s). "
                "Use force=true to delete anyway.",
                dependents=product_count,
                dependent_type="products",
            )

        category_name = category.category_name
        async with transaction(self.db):
            if product_count:
                await self.db.execute(
                    update(Product)
                    .where(Product.category_id == category_id)
                    .values(category_id=None)
                )
            await self.db.delete(category)

        logger.info("Deleted category %s (%d products detached)", category_id, product_count)
        return {
            "deletedCategoryId": category_id,
            "categoryName": category_name,
            "affectedProducts": product_count,
        }
