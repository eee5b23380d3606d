"""Category endpoints, including per-category product listings and sales."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, get_registry, require_admin
from app.core.exceptions import NotFound
from app.database import get_db
from app.models import Product, User
from app.schemas.catalog import CategoryCreate, CategoryUpdate
from app.schemas.common import MAX_ID
from app.services.category import CategoryService
from app.services.presenters import present_category, present_product
from app.services.product import ProductService
from app.services.query_params import parse_includes, parse_query
from app.services.registry import SchemaRegistry
from app.services.report import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])

Registry = Annotated[SchemaRegistry, Depends(get_registry)]


@router.get("", response_model=dict)
async def list_categories(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
):
    """List categories with product counts."""
    svc = CategoryService(db, registry)
    spec = parse_query(request.query_params, svc.schema)
    page = await svc.list_categories(spec)
    counts = await svc.product_counts([c.category_id for c in page.items])
    return page.envelope([
        present_category(c, *counts[c.category_id], include=spec.include)
        for c in page.items
    ])


@router.get("/statistics", response_model=dict)
async def category_statistics(db: Annotated[AsyncSession, Depends(get_db)]):
    return {"success": True, "data": await ReportService(db).category_statistics()}


@router.get("/{category_name}/sales/{year}", response_model=dict)
async def category_sales(
    db: Annotated[AsyncSession, Depends(get_db)],
    category_name: str = Path(min_length=1, max_length=15),
    year: int = Path(ge=1000, le=9999),
):
    """Discounted sales per product in one category for one year."""
    data = await ReportService(db).category_sales(category_name, year)
    return {"success": True, "data": data}


@router.get("/{category_id}", response_model=dict)
async def get_category(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    category_id: int = Path(ge=1, le=MAX_ID),
):
    svc = CategoryService(db, registry)
    include = parse_includes(request.query_params, svc.schema)
    category = await svc.get_category(category_id, include)
    if category is None:
        raise NotFound("Category not found")
    counts = await svc.product_counts([category_id])
    return {
        "success": True,
        "data": present_category(category, *counts[category_id], include=include),
    }


@router.get("/{category_id}/products", response_model=dict)
async def list_category_products(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    category_id: int = Path(ge=1, le=MAX_ID),
):
    """Products in one category, with the usual product filters."""
    if await CategoryService(db, registry).get_category(category_id) is None:
        raise NotFound("Category not found")
    svc = ProductService(db, registry)
    spec = parse_query(request.query_params, svc.schema)
    page = await svc.list_products(spec, Product.category_id == category_id)
    return page.envelope([present_product(p, spec.include) for p in page.items])


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
):
    category = await CategoryService(db, registry).create_category(data)
    return {
        "success": True,
        "data": present_category(category, 0, 0),
        "message": "Category created successfully",
    }


@router.put("/{category_id}", response_model=dict)
async def update_category(
    data: CategoryUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
    category_id: int = Path(ge=1, le=MAX_ID),
):
    svc = CategoryService(db, registry)
    category = await svc.update_category(category_id, data)
    if category is None:
        raise NotFound("Category not found")
    counts = await svc.product_counts([category_id])
    return {
        "success": True,
        "data": present_category(category, *counts[category_id]),
        "message": "Category updated successfully",
    }


@router.delete("/{category_id}", response_model=dict)
async def delete_category(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(require_admin)],
    category_id: int = Path(ge=1, le=MAX_ID),
    force: bool = False,
):
    """Delete a category; ``force=true`` detaches its products first."""
    result = await CategoryService(db, registry).delete_category(category_id, force)
    if result is None:
        raise NotFound("Category not found")
    return {"success": True, "data": result, "message": "Category deleted successfully"}
