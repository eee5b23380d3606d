"""Employee reporting-tree construction with cycle detection.

The tree is built breadth-first from the roots (employees without a manager,
or whose manager is not in the set). Anyone left unreached afterwards sits
on or below a loop in the ``mgr_id`` chain, which is reported as a
``HierarchyCycleError`` instead of being walked.
"""

from collections import defaultdict, deque
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from app.core.exceptions import HierarchyCycleError
from app.services.derived_fields import full_name


class HierarchyMember(Protocol):
    employee_id: int
    mgr_id: int | None
    first_name: str
    last_name: str
    title: str | None


def _cycle_members(start: int, manager_of: Mapping[int, int | None]) -> list[int]:
    """Employees on the loop reached by following managers from ``start``."""
    position: dict[int, int] = {}
    path: list[int] = []
    node: int | None = start
    while node is not None and node in manager_of and node not in position:
        position[node] = len(path)
        path.append(node)
        node = manager_of[node]
    if node is not None and node in position:
        return path[position[node]:]
    return []


def find_cycles(manager_of: Mapping[int, int | None]) -> set[int]:
    members: set[int] = set()
    for employee_id in manager_of:
        if employee_id not in members:
            members.update(_cycle_members(employee_id, manager_of))
    return members


def would_create_cycle(
    employee_id: int,
    new_manager_id: int,
    manager_of: Mapping[int, int | None],
) -> bool:
    """True if making ``new_manager_id`` the manager of ``employee_id`` loops."""
    seen: set[int] = set()
    node: int | None = new_manager_id
    while node is not None and node not in seen:
        if node == employee_id:
            return True
        seen.add(node)
        node = manager_of.get(node)
    return False


def build_hierarchy(employees: Sequence[HierarchyMember]) -> list[dict]:
    """Nested ``subordinates`` trees, one per root, ordered by employee id."""
    by_id = {e.employee_id: e for e in employees}
    children: dict[int, list[HierarchyMember]] = defaultdict(list)
    roots: list[HierarchyMember] = []
    for employee in sorted(employees, key=lambda e: e.employee_id):
        if employee.mgr_id is None or employee.mgr_id not in by_id:
            roots.append(employee)
        else:
            children[employee.mgr_id].append(employee)

    nodes: dict[int, dict] = {}
    queue: deque[tuple[HierarchyMember, int]] = deque((root, 0) for root in roots)
    while queue:
        employee, level = queue.popleft()
        node = {
            "employeeId": employee.employee_id,
            "firstName": employee.first_name,
            "lastName": employee.last_name,
            "fullName": full_name(employee.first_name, employee.last_name),
            "title": employee.title,
            "mgrId": employee.mgr_id,
            "level": level,
            "subordinateCount": len(children[employee.employee_id]),
            "subordinates": [],
        }
        nodes[employee.employee_id] = node
        if employee.mgr_id in nodes:
            nodes[employee.mgr_id]["subordinates"].append(node)
        for child in children[employee.employee_id]:
            queue.append((child, level + 1))

    unreached = set(by_id) - set(nodes)
    if unreached:
        manager_of = {e.employee_id: e.mgr_id for e in employees}
        raise HierarchyCycleError(sorted(find_cycles(manager_of)) or sorted(unreached))

    return [nodes[root.employee_id] for root in roots]


def manager_map(rows: Iterable[tuple[int, int | None]]) -> dict[int, int | None]:
    return {employee_id: mgr_id for employee_id, mgr_id in rows}
