"""
Org Chart Kernel - Hierarchy Builder

build_hierarchy(employees) -> HierarchyResult

Turns an unordered employee collection into a traversable tree. Total and
deterministic: any finite input (empty, all-orphaned, fully cyclic,
duplicated ids, self-managed records) yields a result in which every id is
a root, reachable from a root, or an orphan, exactly once. Never raises.

Steps:
  1. Index by id (last write wins), derive children_of.
  2. Detect manager cycles; cycle members never become roots.
  3. Roots = no manager or unresolvable manager.
  4. No root on non-empty input -> documented fallback promotion.
  5. Descendant counts (independent of step 4).
  6. Everything unreached is an orphan, with its reason.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Set

from .domain_types import Employee, HierarchyIssue, HierarchyResult, IssueKind
from .graph import (
    build_children_map,
    collect_reachable,
    compute_descendant_counts,
    find_manager_cycles,
    index_employees,
    resolved_manager,
)

logger = logging.getLogger(__name__)


def build_hierarchy(employees: Iterable[Employee]) -> HierarchyResult:
    """Classify *employees* into roots, reachable nodes and orphans."""
    index, duplicates = index_employees(employees)
    issues: List[HierarchyIssue] = []

    for dup in duplicates:
        issues.append(HierarchyIssue(
            IssueKind.DUPLICATE_ID, dup,
            f"Duplicate employee id {dup!r}: keeping the last record",
        ))

    children_of = build_children_map(index)

    # -- Cycles --
    cyclic: Set[str] = set()
    for cycle in find_manager_cycles(index):
        cyclic.update(cycle)
        if len(cycle) == 1:
            message = f"{_label(index[cycle[0]])} lists themself as manager"
        else:
            loop = " -> ".join(cycle + [cycle[0]])
            message = f"Reporting cycle detected: {loop}"
        issues.append(HierarchyIssue(IssueKind.CYCLIC_REFERENCE, cycle[0], message))

    # -- Roots --
    root_ids: List[str] = []
    for emp in index.values():
        if emp.id in cyclic:
            continue
        if emp.manager_id is None:
            root_ids.append(emp.id)
        elif emp.manager_id not in index:
            root_ids.append(emp.id)
            issues.append(HierarchyIssue(
                IssueKind.UNRESOLVABLE_REFERENCE, emp.id,
                f"{_label(emp)} has manager id {emp.manager_id!r} that is not "
                f"in the dataset - treating as root",
            ))

    descendant_count = compute_descendant_counts(index, children_of, cyclic)

    if not root_ids and index:
        root_ids = _recover_roots(index, children_of, cyclic, descendant_count, issues)

    # -- Reachability / orphans --
    reachable = collect_reachable(root_ids, children_of) - set(root_ids)
    accounted = set(root_ids) | reachable
    orphan_ids: Set[str] = set()
    for emp in index.values():
        if emp.id in accounted:
            continue
        orphan_ids.add(emp.id)
        issues.append(_orphan_issue(index, emp, cyclic))

    if orphan_ids:
        logger.warning(
            "Hierarchy built with %d orphan(s) out of %d employees",
            len(orphan_ids), len(index),
        )
    logger.debug(
        "Hierarchy built: %d employees, %d root(s), %d reachable, %d orphan(s)",
        len(index), len(root_ids), len(reachable), len(orphan_ids),
    )

    return HierarchyResult(
        employees=index,
        children_of=children_of,
        root_ids=set(root_ids),
        roots=[index[rid] for rid in root_ids],
        descendant_count=descendant_count,
        orphan_ids=orphan_ids,
        reachable_ids=reachable,
        cyclic_ids=frozenset(cyclic),
        issues=issues,
    )


# ---------------------------------------------------------------------------
# Degenerate recovery (private)
# ---------------------------------------------------------------------------

def _recover_roots(
    index: Dict[str, Employee],
    children_of: Dict[str, List[Employee]],
    cyclic: Set[str],
    descendant_count: Dict[str, int],
    issues: List[HierarchyIssue],
) -> List[str]:
    """
    Pick fallback roots when no employee qualifies as a root.

    With no roots, every manager chain ends in a cycle. Cycle members are
    never promoted. First choice: employees who manage someone and whose
    own manager sits on a cycle. Second choice: the single non-cyclic
    employee with the largest team (input order breaks ties). If every
    employee is on a cycle, no root exists and the hierarchy is reported
    as indeterminate.
    """
    fallback = [
        eid for eid, emp in index.items()
        if eid not in cyclic
        and eid in children_of
        and resolved_manager(index, emp) in cyclic
    ]
    if fallback:
        for eid in fallback:
            issues.append(HierarchyIssue(
                IssueKind.FALLBACK_ROOT, eid,
                f"No clear root found - promoting {_label(index[eid])}, who "
                f"manages others but reports into a cycle",
            ))
        logger.warning("No clear root found; promoted %d fallback root(s)", len(fallback))
        return fallback

    candidates = [eid for eid in index if eid not in cyclic]
    if candidates:
        best = max(candidates, key=lambda eid: descendant_count[eid])
        issues.append(HierarchyIssue(
            IssueKind.EMERGENCY_ROOT, best,
            f"Hierarchy is indeterminate - using {_label(index[best])} as "
            f"emergency root",
        ))
        logger.warning("Hierarchy indeterminate; emergency root %r", best)
        return [best]

    first = next(iter(index))
    issues.append(HierarchyIssue(
        IssueKind.INDETERMINATE, first,
        "Hierarchy is indeterminate - every employee is part of a reporting "
        "cycle, no root can be chosen",
    ))
    logger.warning("Hierarchy indeterminate; every employee is on a cycle")
    return []


def _orphan_issue(
    index: Dict[str, Employee], emp: Employee, cyclic: Set[str],
) -> HierarchyIssue:
    if emp.id in cyclic:
        return HierarchyIssue(
            IssueKind.CYCLIC_REFERENCE, emp.id,
            f"{_label(emp)} excluded from hierarchy: part of a reporting cycle",
        )
    if emp.manager_id is not None and emp.manager_id not in index:
        return HierarchyIssue(
            IssueKind.UNRESOLVABLE_REFERENCE, emp.id,
            f"{_label(emp)} excluded from hierarchy: manager "
            f"{emp.manager_id!r} cannot be resolved",
        )
    return HierarchyIssue(
        IssueKind.DISCONNECTED, emp.id,
        f"{_label(emp)} excluded from hierarchy: reports through "
        f"{emp.manager_id!r} into a reporting cycle",
    )


def _label(emp: Employee) -> str:
    return f"{emp.name} ({emp.id})"
