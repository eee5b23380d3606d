"""Tests for reporting-tree construction and cycle detection."""

from types import SimpleNamespace

import pytest

from app.core.exceptions import HierarchyCycleError
from app.services.hierarchy import build_hierarchy, find_cycles, would_create_cycle


def _emp(employee_id, mgr_id=None):
    return SimpleNamespace(
        employee_id=employee_id,
        mgr_id=mgr_id,
        first_name=f"First{employee_id}",
        last_name=f"Last{employee_id}",
        title="Staff",
    )


def test_build_hierarchy_nests_subordinates():
    tree = build_hierarchy([_emp(2), _emp(1, 2), _emp(3, 2), _emp(4, 3)])
    assert len(tree) == 1
    root = tree[0]
    assert root["employeeId"] == 2
    assert root["level"] == 0
    assert root["subordinateCount"] == 2
    assert [s["employeeId"] for s in root["subordinates"]] == [1, 3]
    leaf = root["subordinates"][1]["subordinates"][0]
    assert leaf["employeeId"] == 4
    assert leaf["level"] == 2
    assert leaf["fullName"] == "First4 Last4"


def test_manager_outside_the_set_makes_a_root():
    tree = build_hierarchy([_emp(5, 99), _emp(6, 5)])
    assert [n["employeeId"] for n in tree] == [5]


def test_multiple_roots_ordered_by_id():
    tree = build_hierarchy([_emp(9), _emp(3), _emp(4, 9)])
    assert [n["employeeId"] for n in tree] == [3, 9]


def test_empty_input():
    assert build_hierarchy([]) == []


def test_stored_cycle_raises():
    employees = [_emp(1), _emp(2, 3), _emp(3, 4), _emp(4, 2), _emp(5, 4)]
    with pytest.raises(HierarchyCycleError) as exc_info:
        build_hierarchy(employees)
    assert exc_info.value.employee_ids == [2, 3, 4]
    assert exc_info.value.extra() == {"employeeIds": [2, 3, 4]}


def test_self_managed_employee_is_a_cycle():
    with pytest.raises(HierarchyCycleError) as exc_info:
        build_hierarchy([_emp(1, 1)])
    assert exc_info.value.employee_ids == [1]


def test_find_cycles():
    assert find_cycles({1: None, 2: 1, 3: 2}) == set()
    assert find_cycles({1: 2, 2: 1, 3: 1}) == {1, 2}


def test_would_create_cycle():
    managers = {1: None, 2: 1, 3: 2}
    assert would_create_cycle(1, 3, managers)
    assert would_create_cycle(2, 2, managers)
    assert not would_create_cycle(3, 1, managers)
    assert not would_create_cycle(4, 3, managers)
