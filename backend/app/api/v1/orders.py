"""Order endpoints: listing, CRUD with line items, shipping, statistics."""

import logging
from datetime import date, datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, get_registry, require_admin
from app.core.exceptions import InvalidQuery, NotFound
from app.database import get_db
from app.models import User
from app.schemas.common import MAX_ID
from app.schemas.sales import OrderCreate, OrderUpdate, ShipOrderRequest
from app.services.order import FULL_ORDER, OrderService
from app.services.presenters import present_order, present_order_detail
from app.services.query_params import parse_includes, parse_query
from app.services.registry import SchemaRegistry
from app.services.report import ReportService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

Registry = Annotated[SchemaRegistry, Depends(get_registry)]


@router.get("", response_model=dict)
async def list_orders(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
):
    """List orders, newest first by default; ``status`` filters on derived state."""
    svc = OrderService(db, registry)
    now = datetime.now(timezone.utc)
    spec = parse_query(request.query_params, svc.schema)
    page = await svc.list_orders(spec)
    return page.envelope([present_order(o, spec.include, now) for o in page.items])


@router.get("/statistics", response_model=dict)
async def order_statistics(
    db: Annotated[AsyncSession, Depends(get_db)],
    from_date: date | None = Query(None, alias="fromDate"),
    to_date: date | None = Query(None, alias="toDate"),
):
    if from_date and to_date and from_date > to_date:
        raise InvalidQuery(
            errors=[{"field": "fromDate", "message": "fromDate must not be after toDate"}]
        )
    data = await ReportService(db).order_statistics(from_date, to_date)
    return {"success": True, "data": data}


@router.get("/{order_id}", response_model=dict)
async def get_order(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    order_id: int = Path(ge=1, le=MAX_ID),
):
    svc = OrderService(db, registry)
    include = parse_includes(request.query_params, svc.schema)
    order = await svc.get_order(order_id, include)
    if order is None:
        raise NotFound("Order not found")
    return {"success": True, "data": present_order(order, include)}


@router.get("/{order_id}/details", response_model=dict)
async def get_order_details(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    order_id: int = Path(ge=1, le=MAX_ID),
):
    details = await OrderService(db, registry).get_details(order_id)
    if details is None:
        raise NotFound("Order not found")
    return {
        "success": True,
        "data": [present_order_detail(d, with_product=True) for d in details],
    }


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Create an order and its line items in one transaction."""
    order = await OrderService(db, registry).create_order(data)
    return {
        "success": True,
        "data": present_order(order, FULL_ORDER),
        "message": "Order created successfully",
    }


@router.put("/{order_id}", response_model=dict)
async def update_order(
    data: OrderUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
    order_id: int = Path(ge=1, le=MAX_ID),
):
    order = await OrderService(db, registry).update_order(order_id, data)
    if order is None:
        raise NotFound("Order not found")
    return {
        "success": True,
        "data": present_order(order, FULL_ORDER),
        "message": "Order updated successfully",
    }


@router.patch("/{order_id}/ship", response_model=dict)
async def ship_order(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
    order_id: int = Path(ge=1, le=MAX_ID),
    data: ShipOrderRequest | None = None,
):
    """Mark an order shipped (now, unless ``shippedDate`` is given)."""
    order = await OrderService(db, registry).ship_order(order_id, data or ShipOrderRequest())
    if order is None:
        raise NotFound("Order not found")
    return {
        "success": True,
        "data": present_order(order, FULL_ORDER),
        "message": "Order shipped successfully",
    }


@router.delete("/{order_id}", response_model=dict)
async def delete_order(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(require_admin)],
    order_id: int = Path(ge=1, le=MAX_ID),
):
    """Delete an unshipped order and its line items."""
    result = await OrderService(db, registry).delete_order(order_id)
    if result is None:
        raise NotFound("Order not found")
    return {"success": True, "data": result, "message": "Order deleted successfully"}
