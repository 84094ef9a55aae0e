"""
Org Chart Kernel - Diagnostics

Summarise the health of a built hierarchy for display and logging.
"""

from __future__ import annotations

from typing import Optional

from .constants import DEEP_HIERARCHY_THRESHOLD, WIDE_SPAN_THRESHOLD
from .domain_types import HierarchyResult
from .graph import compute_depths


def compute_diagnostics(
    result: HierarchyResult,
    wide_span_threshold: int = WIDE_SPAN_THRESHOLD,
    deep_threshold: int = DEEP_HIERARCHY_THRESHOLD,
) -> dict:
    """Return a diagnostic dict summarising *result*."""
    depths = compute_depths(sorted(result.root_ids), result.children_of)
    max_depth = max(depths.values()) if depths else 0

    widest_id: Optional[str] = None
    widest_span = 0
    for mid, kids in result.children_of.items():
        if len(kids) > widest_span:
            widest_id, widest_span = mid, len(kids)

    warnings: list[str] = []

    wide = sorted(
        mid for mid, kids in result.children_of.items()
        if len(kids) > wide_span_threshold
    )
    if wide:
        warnings.append(
            f"{len(wide)} manager(s) with more than {wide_span_threshold} "
            f"direct reports: {', '.join(wide)}"
        )
    if max_depth > deep_threshold:
        warnings.append(
            f"Hierarchy depth {max_depth} exceeds {deep_threshold} levels"
        )
    if len(result.root_ids) > 1:
        warnings.append(f"{len(result.root_ids)} separate top-level roots")
    if result.orphan_ids:
        warnings.append(
            f"{len(result.orphan_ids)} orphaned employee(s): "
            f"{', '.join(sorted(result.orphan_ids))}"
        )

    inactive = sorted(
        e.id for e in result.employees.values() if not e.account_enabled
    )
    if inactive:
        warnings.append(
            f"{len(inactive)} disabled account(s) still in the dataset: "
            f"{', '.join(inactive)}"
        )

    managers = len(result.children_of)
    return {
        "employee_count": len(result.employees),
        "root_count": len(result.root_ids),
        "reachable_count": len(result.reachable_ids),
        "orphan_count": len(result.orphan_ids),
        "cyclic_count": len(result.cyclic_ids),
        "manager_count": managers,
        "max_depth": max_depth,
        "widest_span": {"manager_id": widest_id, "direct_reports": widest_span},
        "average_span": (
            round(sum(len(k) for k in result.children_of.values()) / managers, 2)
            if managers else 0
        ),
        "issue_count": len(result.issues),
        "warnings": warnings,
    }
