"""Supplier endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, get_registry, require_admin
from app.core.exceptions import NotFound
from app.database import get_db
from app.models import Product, User
from app.schemas.catalog import SupplierCreate, SupplierUpdate
from app.schemas.common import MAX_ID
from app.services.presenters import present_product, present_supplier
from app.services.product import ProductService
from app.services.query_params import parse_includes, parse_query
from app.services.registry import SchemaRegistry
from app.services.report import ReportService
from app.services.supplier import SupplierService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/suppliers", tags=["suppliers"])

Registry = Annotated[SchemaRegistry, Depends(get_registry)]


@router.get("", response_model=dict)
async def list_suppliers(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
):
    svc = SupplierService(db, registry)
    spec = parse_query(request.query_params, svc.schema)
    page = await svc.list_suppliers(spec)
    counts = await svc.product_counts([s.supplier_id for s in page.items])
    return page.envelope([
        present_supplier(s, counts[s.supplier_id], include=spec.include)
        for s in page.items
    ])


@router.get("/statistics", response_model=dict)
async def supplier_statistics(db: Annotated[AsyncSession, Depends(get_db)]):
    return {"success": True, "data": await ReportService(db).supplier_statistics()}


@router.get("/countries", response_model=dict)
async def supplier_countries(db: Annotated[AsyncSession, Depends(get_db)]):
    """Countries with at least one supplier, alphabetically."""
    return {"success": True, "data": await ReportService(db).supplier_countries()}


@router.get("/{supplier_id}", response_model=dict)
async def get_supplier(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    supplier_id: int = Path(ge=1, le=MAX_ID),
):
    svc = SupplierService(db, registry)
    include = parse_includes(request.query_params, svc.schema)
    supplier = await svc.get_supplier(supplier_id, include)
    if supplier is None:
        raise NotFound("Supplier not found")
    counts = await svc.product_counts([supplier_id])
    return {
        "success": True,
        "data": present_supplier(supplier, counts[supplier_id], include=include),
    }


@router.get("/{supplier_id}/products", response_model=dict)
async def list_supplier_products(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    supplier_id: int = Path(ge=1, le=MAX_ID),
):
    if await SupplierService(db, registry).get_supplier(supplier_id) is None:
        raise NotFound("Supplier not found")
    svc = ProductService(db, registry)
    spec = parse_query(request.query_params, svc.schema)
    page = await svc.list_products(spec, Product.supplier_id == supplier_id)
    return page.envelope([present_product(p, spec.include) for p in page.items])


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    data: SupplierCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
):
    supplier = await SupplierService(db, registry).create_supplier(data)
    return {
        "success": True,
        "data": present_supplier(supplier, 0),
        "message": "Supplier created successfully",
    }


@router.put("/{supplier_id}", response_model=dict)
async def update_supplier(
    data: SupplierUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
    supplier_id: int = Path(ge=1, le=MAX_ID),
):
    svc = SupplierService(db, registry)
    supplier = await svc.update_supplier(supplier_id, data)
    if supplier is None:
        raise NotFound("Supplier not found")
    counts = await svc.product_counts([supplier_id])
    return {
        "success": True,
        "data": present_supplier(supplier, counts[supplier_id]),
        "message": "Supplier updated successfully",
    }


@router.delete("/{supplier_id}", response_model=dict)
async def delete_supplier(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(require_admin)],
    supplier_id: int = Path(ge=1, le=MAX_ID),
    force: bool = False,
):
    result = await SupplierService(db, registry).delete_supplier(supplier_id, force)
    if result is None:
        raise NotFound("Supplier not found")
    return {"success": True, "data": result, "message": "Supplier deleted successfully"}
