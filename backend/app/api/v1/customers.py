"""Customer endpoints, including rankings and purchase history."""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, get_registry, require_admin
from app.core.exceptions import NotFound
from app.core.pagination import paginated_response
from app.database import get_db
from app.models import User
from app.schemas.common import MAX_ID
from app.schemas.sales import CustomerCreate, CustomerUpdate
from app.services.customer import CustomerService
from app.services.presenters import present_customer
from app.services.query_params import parse_includes, parse_query
from app.services.registry import SchemaRegistry
from app.services.report import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])

Registry = Annotated[SchemaRegistry, Depends(get_registry)]


@router.get("", response_model=dict)
async def list_customers(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
):
    svc = CustomerService(db, registry)
    spec = parse_query(request.query_params, svc.schema)
    page = await svc.list_customers(spec)
    counts = await svc.order_counts([c.cust_id for c in page.items])
    return page.envelope([
        present_customer(c, counts[c.cust_id], include=spec.include)
        for c in page.items
    ])


@router.get("/top", response_model=dict)
async def top_customers(
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(15, ge=1, le=100),
    sort_by: Literal["orderCount", "totalSpent", "contactName"] = Query(
        "orderCount", alias="sortBy"
    ),
):
    """Customers ranked by orders or spend, with loyalty tier."""
    report = await ReportService(db).top_customers(limit=limit, sort_by=sort_by)
    return {"success": True, **report}


@router.get("/{cust_id}", response_model=dict)
async def get_customer(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    cust_id: int = Path(ge=1, le=MAX_ID),
):
    svc = CustomerService(db, registry)
    include = parse_includes(request.query_params, svc.schema)
    customer = await svc.get_customer(cust_id, include)
    if customer is None:
        raise NotFound("Customer not found")
    counts = await svc.order_counts([cust_id])
    return {
        "success": True,
        "data": present_customer(customer, counts[cust_id], include=include),
    }


@router.get("/{cust_id}/purchases", response_model=dict)
async def customer_purchases(
    db: Annotated[AsyncSession, Depends(get_db)],
    cust_id: int = Path(ge=1, le=MAX_ID),
    page: int = Query(1, ge=1, le=MAX_ID),
    limit: int = Query(20, ge=1, le=100),
    category_name: str | None = Query(None, alias="categoryName", max_length=100),
):
    """Order lines bought by a customer, newest first."""
    report = await ReportService(db).customer_purchases(
        cust_id, page=page, limit=limit, category_name=category_name
    )
    if report is None:
        raise NotFound("Customer not found")
    return paginated_response(
        report["data"], page, limit, report["total"], summary=report["summary"]
    )


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_customer(
    data: CustomerCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
):
    customer = await CustomerService(db, registry).create_customer(data)
    return {
        "success": True,
        "data": present_customer(customer, 0),
        "message": "Customer created successfully",
    }


@router.put("/{cust_id}", response_model=dict)
async def update_customer(
    data: CustomerUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
    cust_id: int = Path(ge=1, le=MAX_ID),
):
    svc = CustomerService(db, registry)
    customer = await svc.update_customer(cust_id, data)
    if customer is None:
        raise NotFound("Customer not found")
    counts = await svc.order_counts([cust_id])
    return {
        "success": True,
        "data": present_customer(customer, counts[cust_id]),
        "message": "Customer updated successfully",
    }


@router.delete("/{cust_id}", response_model=dict)
async def delete_customer(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(require_admin)],
    cust_id: int = Path(ge=1, le=MAX_ID),
    force: bool = False,
):
    """Delete a customer; ``force=true`` also deletes their orders."""
    result = await CustomerService(db, registry).delete_customer(cust_id, force)
    if result is None:
        raise NotFound("Customer not found")
    return {"success": True, "data": result, "message": "Customer deleted successfully"}
