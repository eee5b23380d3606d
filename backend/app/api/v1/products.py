"""Product endpoints: filtered listing, CRUD, stock reports, and search."""

import logging
from decimal import Decimal
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, get_registry, require_admin
from app.core.exceptions import InvalidQuery, NotFound
from app.database import get_db
from app.models import User
from app.schemas.catalog import ProductCreate, ProductUpdate
from app.schemas.common import MAX_ID
from app.services.presenters import present_product
from app.services.product import ProductService
from app.services.query_params import parse_includes, parse_query
from app.services.registry import SchemaRegistry
from app.services.report import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

Registry = Annotated[SchemaRegistry, Depends(get_registry)]


@router.get("", response_model=dict)
async def list_products(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
):
    """List products with filters, search, sorting, and pagination."""
    svc = ProductService(db, registry)
    spec = parse_query(request.query_params, svc.schema)
    page = await svc.list_products(spec)
    return page.envelope([present_product(p, spec.include) for p in page.items])


@router.get("/statistics", response_model=dict)
async def product_statistics(db: Annotated[AsyncSession, Depends(get_db)]):
    return {"success": True, "data": await ReportService(db).product_statistics()}


@router.get("/low-stock", response_model=dict)
async def low_stock_products(
    db: Annotated[AsyncSession, Depends(get_db)],
    threshold: int = Query(10, ge=1, le=32767),
    page: int = Query(1, ge=1, le=MAX_ID),
    limit: int = Query(20, ge=1, le=100),
):
    """Active products running low, with urgency and reorder suggestions."""
    report = await ReportService(db).low_stock(threshold=threshold, page=page, limit=limit)
    result = report["page"]
    return result.envelope(result.items, summary=report["summary"])


@router.get("/out-of-stock", response_model=dict)
async def out_of_stock_products(
    db: Annotated[AsyncSession, Depends(get_db)],
    include_discontinued: bool = Query(False, alias="includeDiscontinued"),
    category_id: int | None = Query(None, alias="categoryId", ge=1, le=MAX_ID),
):
    report = await ReportService(db).out_of_stock(include_discontinued, category_id)
    return {"success": True, **report}


@router.get("/search", response_model=dict)
async def search_products(
    db: Annotated[AsyncSession, Depends(get_db)],
    q: str | None = Query(None, min_length=1, max_length=100),
    category: str | None = Query(None, max_length=100),
    supplier: str | None = Query(None, max_length=100),
    min_price: Decimal | None = Query(None, alias="minPrice", ge=0),
    max_price: Decimal | None = Query(None, alias="maxPrice", ge=0),
    stock_status: Literal["inStock", "lowStock", "outOfStock"] | None = Query(
        None, alias="stockStatus"
    ),
    sort_by: Literal["relevance", "name", "price", "stock"] = Query(
        "relevance", alias="sortBy"
    ),
):
    """Relevance-ranked product search (at most 50 results)."""
    if not (q or category or supplier or stock_status):
        raise InvalidQuery("At least one search parameter is required")

    results = await ReportService(db).search_products(
        q=q,
        category=category,
        supplier=supplier,
        min_price=min_price,
        max_price=max_price,
        stock_status=stock_status,
        sort_by=sort_by,
    )
    return {
        "success": True,
        "data": results,
        "searchCriteria": {
            "q": q,
            "category": category,
            "supplier": supplier,
            "minPrice": float(min_price) if min_price is not None else None,
            "maxPrice": float(max_price) if max_price is not None else None,
            "stockStatus": stock_status,
            "sortBy": sort_by,
        },
        "resultCount": len(results),
    }


@router.get("/{product_id}", response_model=dict)
async def get_product(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    product_id: int = Path(ge=1, le=MAX_ID),
):
    svc = ProductService(db, registry)
    include = parse_includes(request.query_params, svc.schema)
    product = await svc.get_product(product_id, include)
    if product is None:
        raise NotFound("Product not found")
    return {"success": True, "data": present_product(product, include)}


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
):
    svc = ProductService(db, registry)
    product = await svc.create_product(data)
    return {
        "success": True,
        "data": present_product(product, {"category", "supplier"}),
        "message": "Product created successfully",
    }


@router.put("/{product_id}", response_model=dict)
async def update_product(
    data: ProductUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
    product_id: int = Path(ge=1, le=MAX_ID),
):
    svc = ProductService(db, registry)
    product = await svc.update_product(product_id, data)
    if product is None:
        raise NotFound("Product not found")
    return {
        "success": True,
        "data": present_product(product, {"category", "supplier"}),
        "message": "Product updated successfully",
    }


@router.delete("/{product_id}", response_model=dict)
async def delete_product(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(require_admin)],
    product_id: int = Path(ge=1, le=MAX_ID),
    force: bool = False,
):
    """Delete a product; ``force=true`` also removes its order lines."""
    result = await ProductService(db, registry).delete_product(product_id, force)
    if result is None:
        raise NotFound("Product not found")
    return {"success": True, "data": result, "message": "Product deleted successfully"}
