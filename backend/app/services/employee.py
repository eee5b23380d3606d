"""Employee service layer: CRUD, reporting lines, and territories."""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.exceptions import ConflictDependency, ValidationFailed
from app.core.pagination import Page
from app.database import transaction
from app.models import Employee, SalesOrder, Territory, employee_territory
from app.schemas.query import QuerySpec
from app.schemas.staff import EmployeeCreate, EmployeeUpdate
from app.services.hierarchy import build_hierarchy, manager_map, would_create_cycle
from app.services.lookups import count_where, exists, grouped_counts
from app.services.query_builder import QueryBuilderService
from app.services.registry import SchemaRegistry

logger = logging.getLogger(__name__)


class EmployeeService:
    def __init__(self, db: AsyncSession, registry: SchemaRegistry):
        self.db = db
        self.schema = registry.get("employees")
        self.query = QueryBuilderService(db, self.schema)
        self.order_query = QueryBuilderService(db, registry.get("orders"))

    async def list_employees(self, spec: QuerySpec) -> Page:
        return await self.query.fetch_page(spec)

    async def get_employee(
        self, employee_id: int, include: frozenset[str] = frozenset()
    ) -> Employee | None:
        return await self.query.fetch_one(employee_id, include)

    async def order_counts(self, employee_ids: list[int]) -> dict[int, int]:
        counts = await grouped_counts(self.db, SalesOrder.employee_id, employee_ids)
        return {eid: counts.get(eid, 0) for eid in employee_ids}

    async def _manager_map(self) -> dict[int, int | None]:
        result = await self.db.execute(select(Employee.employee_id, Employee.mgr_id))
        return manager_map(result.all())

    async def _check_manager(self, mgr_id: int, employee_id: int | None = None) -> None:
        if employee_id is not None and mgr_id == employee_id:
            raise ValidationFailed("Employee cannot be their own manager", field="mgrId")
        if not await exists(self.db, Employee.employee_id, mgr_id):
            raise ValidationFailed("Manager does not exist", field="mgrId")
        if employee_id is not None and would_create_cycle(
            employee_id, mgr_id, await self._manager_map()
        ):
            raise ValidationFailed(
                "Manager assignment would create a circular reporting line",
                field="mgrId",
            )

    async def create_employee(self, data: EmployeeCreate) -> Employee:
        if data.mgr_id is not None:
            await self._check_manager(data.mgr_id)
        employee = Employee(**data.model_dump())
        self.db.add(employee)
        await self.db.flush()
        logger.info(
            "Created employee %s (%s %s)",
            employee.employee_id, employee.first_name, employee.last_name,
        )
        return employee

    async def update_employee(self, employee_id: int, data: EmployeeUpdate) -> Employee | None:
        employee = await self.get_employee(employee_id)
        if employee is None:
            return None

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("mgr_id") is not None:
            await self._check_manager(update_data["mgr_id"], employee_id)

        birth_date = update_data.get("birth_date", employee.birth_date)
        hire_date = update_data.get("hire_date", employee.hire_date)
        if birth_date and hire_date and hire_date <= birth_date:
            raise ValidationFailed("Hire date must be after birth date", field="hireDate")

        for field, value in update_data.items():
            setattr(employee, field, value)
        await self.db.flush()
        return employee

    async def delete_employee(self, employee_id: int, force: bool = False) -> dict | None:
        """Delete an employee.

        Orders they handled and direct reports block the delete unless
        ``force`` is set, in which case those links are cleared first.
        """
        employee = await self.get_employee(employee_id)
        if employee is None:
            return None

        order_count = await count_where(
            self.db, SalesOrder, SalesOrder.employee_id == employee_id
        )
        subordinate_count = await count_where(self.db, Employee, Employee.mgr_id == employee_id)
        if (order_count or subordinate_count) and not force:
            blockers = []
            if order_count:
                blockers.append(f"{order_count} order(s)")
            if subordinate_count:
                blockers.append(f"{subordinate_count} subordinate(s)")
            raise ConflictDependency(
                f"Cannot delete employee with {' and '.join(blockers)}. "
                "Use force=true to delete anyway.",
                dependents=order_count + subordinate_count,
                dependent_type="orders" if order_count else "subordinates",
            )

        name = f"{employee.first_name} {employee.last_name}"
        async with transaction(self.db):
            if order_count:
                await self.db.execute(
                    update(SalesOrder)
                    .where(SalesOrder.employee_id == employee_id)
                    .values(employee_id=None)
                )
            if subordinate_count:
                await self.db.execute(
                    update(Employee)
                    .where(Employee.mgr_id == employee_id)
                    .values(mgr_id=None)
                )
            await self.db.execute(
                delete(employee_territory).where(
                    employee_territory.c.employeeId == employee_id
                )
            )
            await self.db.delete(employee)

        logger.info(
            "Deleted employee %s (%d orders, %d subordinates detached)",
            employee_id, order_count, subordinate_count,
        )
        return {
            "deletedEmployeeId": employee_id,
            "employeeName": name,
            "affectedOrders": order_count,
            "affectedSubordinates": subordinate_count,
        }

    async def hierarchy(self) -> list[dict]:
        result = await self.db.execute(select(Employee).order_by(Employee.employee_id))
        return build_hierarchy(list(result.scalars().all()))

    async def territories(self, employee_id: int) -> list[Territory] | None:
        result = await self.db.execute(
            select(Employee)
            .where(Employee.employee_id == employee_id)
            .options(selectinload(Employee.territories).selectinload(Territory.region))
        )
        employee = result.scalar_one_or_none()
        if employee is None:
            return None
        return sorted(employee.territories, key=lambda t: t.territory_id)

    async def list_orders(self, employee_id: int, spec: QuerySpec) -> Page:
        return await self.order_query.fetch_page(
            spec, [SalesOrder.employee_id == employee_id]
        )
