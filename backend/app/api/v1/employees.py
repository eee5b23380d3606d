"""Employee endpoints, including the reporting hierarchy."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import get_current_user, get_registry, require_admin
from app.core.exceptions import NotFound
from app.database import get_db
from app.models import User
from app.schemas.common import MAX_ID
from app.schemas.staff import EmployeeCreate, EmployeeUpdate, TerritoryRead
from app.services.employee import EmployeeService
from app.services.presenters import present_employee, present_order
from app.services.query_params import parse_includes, parse_query
from app.services.registry import SchemaRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])

Registry = Annotated[SchemaRegistry, Depends(get_registry)]


@router.get("", response_model=dict)
async def list_employees(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
):
    svc = EmployeeService(db, registry)
    spec = parse_query(request.query_params, svc.schema)
    now = datetime.now(timezone.utc)
    page = await svc.list_employees(spec)
    counts = await svc.order_counts([e.employee_id for e in page.items])
    return page.envelope([
        present_employee(e, counts[e.employee_id], include=spec.include, now=now)
        for e in page.items
    ])


@router.get("/hierarchy", response_model=dict)
async def employee_hierarchy(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
):
    """Reporting tree rooted at employees without a manager."""
    tree = await EmployeeService(db, registry).hierarchy()
    return {"success": True, "data": tree}


@router.get("/{employee_id}", response_model=dict)
async def get_employee(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    employee_id: int = Path(ge=1, le=MAX_ID),
):
    svc = EmployeeService(db, registry)
    include = parse_includes(request.query_params, svc.schema)
    employee = await svc.get_employee(employee_id, include)
    if employee is None:
        raise NotFound("Employee not found")
    counts = await svc.order_counts([employee_id])
    return {
        "success": True,
        "data": present_employee(employee, counts[employee_id], include=include),
    }


@router.get("/{employee_id}/territories", response_model=dict)
async def employee_territories(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    employee_id: int = Path(ge=1, le=MAX_ID),
):
    territories = await EmployeeService(db, registry).territories(employee_id)
    if territories is None:
        raise NotFound("Employee not found")
    return {
        "success": True,
        "data": [
            {
                **TerritoryRead.model_validate(t).to_json(),
                "regionDescription": t.region.region_description if t.region else None,
            }
            for t in territories
        ],
    }


@router.get("/{employee_id}/orders", response_model=dict)
async def employee_orders(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    employee_id: int = Path(ge=1, le=MAX_ID),
):
    """Orders handled by one employee, with the usual order filters."""
    svc = EmployeeService(db, registry)
    if await svc.get_employee(employee_id) is None:
        raise NotFound("Employee not found")
    spec = parse_query(request.query_params, svc.order_query.schema)
    now = datetime.now(timezone.utc)
    page = await svc.list_orders(employee_id, spec)
    return page.envelope([present_order(o, spec.include, now) for o in page.items])


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_employee(
    data: EmployeeCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
):
    employee = await EmployeeService(db, registry).create_employee(data)
    return {
        "success": True,
        "data": present_employee(employee, 0),
        "message": "Employee created successfully",
    }


@router.put("/{employee_id}", response_model=dict)
async def update_employee(
    data: EmployeeUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(get_current_user)],
    employee_id: int = Path(ge=1, le=MAX_ID),
):
    svc = EmployeeService(db, registry)
    employee = await svc.update_employee(employee_id, data)
    if employee is None:
        raise NotFound("Employee not found")
    counts = await svc.order_counts([employee_id])
    return {
        "success": True,
        "data": present_employee(employee, counts[employee_id]),
        "message": "Employee updated successfully",
    }


@router.delete("/{employee_id}", response_model=dict)
async def delete_employee(
    db: Annotated[AsyncSession, Depends(get_db)],
    registry: Registry,
    current_user: Annotated[User, Depends(require_admin)],
    employee_id: int = Path(ge=1, le=MAX_ID),
    force: bool = False,
):
    """Delete an employee; ``force=true`` clears their orders and reports first."""
    result = await EmployeeService(db, registry).delete_employee(employee_id, force)
    if result is None:
        raise NotFound("Employee not found")
    return {"success": True, "data": result, "message": "Employee deleted successfully"}
