"""
Org Chart Kernel - Search

Case-insensitive substring search over a loaded employee collection.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .constants import SEARCH_RESULT_LIMIT
from .domain_types import Employee


def search_employees(
    employees: Iterable[Employee],
    query: str,
    limit: int = SEARCH_RESULT_LIMIT,
    include_disabled: bool = False,
) -> List[Employee]:
    """
    Employees whose name, title or email contains *query*.

    Name matches rank before title/email matches; input order is kept
    within each group. A blank query matches nothing.
    """
    needle = query.strip().lower()
    if not needle or limit <= 0:
        return []

    by_name: List[Employee] = []
    by_other: List[Employee] = []
    for emp in employees:
        if not include_disabled and not emp.account_enabled:
            continue
        if needle in emp.name.lower():
            by_name.append(emp)
        elif needle in emp.title.lower() or needle in emp.email.lower():
            by_other.append(emp)
    return (by_name + by_other)[:limit]


def filter_by_department(
    employees: Iterable[Employee], department: Optional[str],
) -> List[Employee]:
    """Employees in *department* (case-insensitive). None keeps everyone."""
    if department is None:
        return list(employees)
    wanted = department.strip().lower()
    return [e for e in employees if e.department.lower() == wanted]


def list_departments(employees: Iterable[Employee]) -> List[str]:
    """Distinct non-empty department names, sorted."""
    return sorted({e.department for e in employees if e.department})
