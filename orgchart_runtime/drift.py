"""
Drift Comparator - pure function, no side effects.

Structured diff between two employee collections (base vs effective,
or scenario vs scenario).
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List

from orgchart_kernel.domain_types import PATCHABLE_FIELDS, Employee
from orgchart_kernel.graph import index_employees


def compare_employee_sets(
    employees_a: Iterable[Employee], employees_b: Iterable[Employee],
) -> dict:
    """
    Compare two employee collections and return a structured diff.

    Returns dict with:
        count_a, count_b, count_delta, added, removed, reassigned
        (id / from / to), edited (id -> changed fields, manager excluded),
        department_delta (department -> headcount change, non-zero only)
    """
    index_a, _ = index_employees(employees_a)
    index_b, _ = index_employees(employees_b)

    ids_a = set(index_a)
    ids_b = set(index_b)

    reassigned: List[dict] = []
    edited: Dict[str, List[str]] = {}
    for eid in sorted(ids_a & ids_b):
        before, after = index_a[eid], index_b[eid]
        if before.manager_id != after.manager_id:
            reassigned.append({
                "id": eid,
                "from": before.manager_id,
                "to": after.manager_id,
            })
        changed = [
            f for f in PATCHABLE_FIELDS
            if f != "manager_id" and getattr(before, f) != getattr(after, f)
        ]
        if changed:
            edited[eid] = changed

    heads_a = Counter(e.department for e in index_a.values())
    heads_b = Counter(e.department for e in index_b.values())
    department_delta = {
        dept: heads_b[dept] - heads_a[dept]
        for dept in sorted(set(heads_a) | set(heads_b))
        if heads_b[dept] != heads_a[dept]
    }

    return {
        "count_a": len(index_a),
        "count_b": len(index_b),
        "count_delta": len(index_b) - len(index_a),
        "added": sorted(ids_b - ids_a),
        "removed": sorted(ids_a - ids_b),
        "reassigned": reassigned,
        "edited": edited,
        "department_delta": department_delta,
    }
