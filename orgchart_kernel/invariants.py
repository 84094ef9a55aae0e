"""
Org Chart Kernel - Invariant Checks

Hard-fail validation of derived structures. Every check raises
InvariantViolationError on failure. Used by tests, the generator and the
runtime's debug path; the builder itself never raises.
"""

from __future__ import annotations

from typing import Iterable

from .domain_types import Employee, HierarchyResult
from .overlay import EditOverlay


class InvariantViolationError(Exception):
    """Raised when a hierarchy or overlay invariant is violated."""

    def __init__(self, rule: str, detail: str) -> None:
        self.rule = rule
        self.detail = detail
        super().__init__(f"[INVARIANT:{rule}] {detail}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_hierarchy(result: HierarchyResult, employees: Iterable[Employee]) -> None:
    """
    Check that roots, reachable ids and orphans partition the input ids,
    and that no cycle member was promoted to root.
    """
    _check_partition(result, {e.id for e in employees})
    _check_roots_not_cyclic(result)
    _check_descendant_counts(result)


def validate_overlay(overlay: EditOverlay) -> None:
    """Check that ``reassigned`` is a subset of the overlay and re-derivable."""
    keys = set(overlay.overlay)
    stray = overlay.reassigned - keys
    if stray:
        raise InvariantViolationError(
            "reassigned_subset",
            f"Reassigned ids without a pending edit: {sorted(stray)}",
        )
    derived = overlay.derive_reassigned()
    if derived != overlay.reassigned:
        raise InvariantViolationError(
            "reassigned_derivable",
            f"Tracked reassigned {sorted(overlay.reassigned)} != "
            f"derived {sorted(derived)}",
        )


# ---------------------------------------------------------------------------
# Individual checks (private)
# ---------------------------------------------------------------------------

def _check_partition(result: HierarchyResult, input_ids: set) -> None:
    roots, reachable, orphans = result.root_ids, result.reachable_ids, result.orphan_ids
    for name_a, a, name_b, b in (
        ("roots", roots, "reachable", reachable),
        ("roots", roots, "orphans", orphans),
        ("reachable", reachable, "orphans", orphans),
    ):
        overlap = a & b
        if overlap:
            raise InvariantViolationError(
                "partition",
                f"Ids counted as both {name_a} and {name_b}: {sorted(overlap)}",
            )
    covered = roots | reachable | orphans
    if covered != input_ids:
        missing = sorted(input_ids - covered)
        extra = sorted(covered - input_ids)
        raise InvariantViolationError(
            "partition",
            f"Classification does not match input (missing={missing}, extra={extra})",
        )


def _check_roots_not_cyclic(result: HierarchyResult) -> None:
    promoted = result.root_ids & result.cyclic_ids
    if promoted:
        raise InvariantViolationError(
            "cycle_safety",
            f"Cycle members promoted to root: {sorted(promoted)}",
        )


def _check_descendant_counts(result: HierarchyResult) -> None:
    for eid in result.employees:
        if result.descendant_count.get(eid, -1) < 0:
            raise InvariantViolationError(
                "descendant_count",
                f"Missing descendant count for {eid!r}",
            )
    for mid, kids in result.children_of.items():
        if mid in result.cyclic_ids:
            continue
        expected = sum(1 + result.descendant_count[k.id] for k in kids)
        if result.descendant_count[mid] != expected:
            raise InvariantViolationError(
                "descendant_count",
                f"descendant_count[{mid!r}]={result.descendant_count[mid]} "
                f"but reports sum to {expected}",
            )
