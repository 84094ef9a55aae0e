"""
Org Chart Kernel - Edit Overlay Tests

Run:  python -m orgchart_kernel.test_overlay   (or pytest)
"""

from __future__ import annotations

import sys

import pytest

from orgchart_kernel.domain_types import Employee, EmployeePatch
from orgchart_kernel.errors import (
    CyclicReassignmentError,
    NotInPlanningModeError,
    UnknownEmployeeError,
)
from orgchart_kernel.hashing import canonical_hash
from orgchart_kernel.hierarchy import build_hierarchy
from orgchart_kernel.invariants import validate_overlay
from orgchart_kernel.overlay import EditOverlay, EditStatus


# ══════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════

def _make_base() -> list:
    """ceo -> (m1 -> e1, e2), (m2 -> e3)"""
    return [
        Employee(id="ceo", name="Cora", title="CEO", department="Exec"),
        Employee(id="m1", name="Mia", title="VP Eng", department="Eng", manager_id="ceo"),
        Employee(id="m2", name="Max", title="VP Sales", department="Sales", manager_id="ceo"),
        Employee(id="e1", name="Eli", title="Engineer", department="Eng", manager_id="m1"),
        Employee(id="e2", name="Eva", title="Engineer", department="Eng", manager_id="m1"),
        Employee(id="e3", name="Eric", title="AE", department="Sales", manager_id="m2"),
    ]


def _header(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


# ══════════════════════════════════════════════════════════════
# Merge semantics
# ══════════════════════════════════════════════════════════════

def test_01_effective_equals_base_without_edits() -> None:
    _header("Test 01 -- effective() == base with an empty overlay")
    ov = EditOverlay(_make_base())
    assert ov.effective() == tuple(_make_base())
    assert not ov.dirty
    assert ov.reassigned == frozenset()


def test_02_field_overrides_are_merged() -> None:
    _header("Test 02 -- Field-by-field merge")
    ov = EditOverlay(_make_base())
    ov.apply_edit("e1", {"title": "Staff Engineer"}, editing_enabled=True)
    merged = ov.apply_edit("e1", EmployeePatch(location="Berlin"), editing_enabled=True)
    assert merged.title == "Staff Engineer"
    assert merged.location == "Berlin"
    assert merged.name == "Eli"
    effective = {e.id: e for e in ov.effective()}
    assert effective["e1"] == merged
    assert effective["e2"] == _make_base()[4]
    assert ov.status_of("e1") is EditStatus.EDITED
    assert ov.edited_ids == frozenset({"e1"})
    assert ov.base == tuple(_make_base())


def test_03_reassignment_toggle() -> None:
    _header("Test 03 -- Reassign then move back")
    ov = EditOverlay(_make_base())
    ov.apply_edit("e1", {"manager_id": "m2"}, editing_enabled=True)
    assert "e1" in ov.reassigned
    assert ov.status_of("e1") is EditStatus.REASSIGNED
    ov.apply_edit("e1", {"manager_id": "m1"}, editing_enabled=True)
    assert "e1" not in ov.reassigned
    assert ov.patch_for("e1") is not None
    assert ov.dirty
    validate_overlay(ov)


def test_04_discard_restores_base() -> None:
    _header("Test 04 -- discard() restores base")
    ov = EditOverlay(_make_base())
    ov.apply_edit("e3", {"manager_id": "m1", "title": "SE"}, editing_enabled=True)
    ov.reassign("m2", None, editing_enabled=True)
    ov.apply_edit("ceo", {"name": "Cora Q."}, editing_enabled=True)
    assert ov.discard() == 3
    assert ov.effective() == tuple(_make_base())
    assert not ov.dirty
    assert ov.reassigned == frozenset()


def test_05_edits_refused_outside_planning_mode() -> None:
    _header("Test 05 -- NotInPlanningModeError")
    ov = EditOverlay(_make_base())
    with pytest.raises(NotInPlanningModeError):
        ov.apply_edit("e1", {"title": "x"}, editing_enabled=False)
    with pytest.raises(NotInPlanningModeError):
        ov.reassign("e1", "m2", editing_enabled=False)
    assert not ov.dirty


def test_06_unknown_ids_and_bad_patches() -> None:
    _header("Test 06 -- Unknown ids and invalid patch fields")
    ov = EditOverlay(_make_base())
    with pytest.raises(UnknownEmployeeError):
        ov.apply_edit("nobody", {"title": "x"}, editing_enabled=True)
    with pytest.raises(UnknownEmployeeError):
        ov.reassign("e1", "nobody", editing_enabled=True)
    with pytest.raises(ValueError):
        ov.apply_edit("e1", {"id": "e9"}, editing_enabled=True)
    with pytest.raises(ValueError):
        ov.apply_edit("e1", {"salary": 1}, editing_enabled=True)
    assert not ov.dirty


# ══════════════════════════════════════════════════════════════
# Reassignment guard
# ══════════════════════════════════════════════════════════════

def test_07_reassign_refuses_cycles() -> None:
    _header("Test 07 -- Cannot move a manager under their own team")
    ov = EditOverlay(_make_base())
    with pytest.raises(CyclicReassignmentError):
        ov.reassign("m1", "e1", editing_enabled=True)
    with pytest.raises(CyclicReassignmentError):
        ov.reassign("ceo", "e3", editing_enabled=True)
    with pytest.raises(CyclicReassignmentError):
        ov.reassign("e2", "e2", editing_enabled=True)
    assert not ov.dirty


def test_08_reassign_uses_effective_view() -> None:
    _header("Test 08 -- Guard sees pending moves")
    ov = EditOverlay(_make_base())
    ov.reassign("e3", "e1", editing_enabled=True)
    with pytest.raises(CyclicReassignmentError):
        ov.reassign("e1", "e3", editing_enabled=True)
    moved = ov.reassign("m2", "m1", editing_enabled=True)
    assert moved.manager_id == "m1"
    result = build_hierarchy(ov.effective())
    assert result.descendant_count["m1"] == 4
    assert result.orphan_ids == set()


# ══════════════════════════════════════════════════════════════
# Reconciliation / replay / promote
# ══════════════════════════════════════════════════════════════

def test_09_set_base_drops_vanished_edits() -> None:
    _header("Test 09 -- New base drops edits for missing ids")
    ov = EditOverlay(_make_base())
    ov.apply_edit("e1", {"manager_id": "m2"}, editing_enabled=True)
    ov.apply_edit("e3", {"title": "Senior AE"}, editing_enabled=True)

    new_base = [e for e in _make_base() if e.id != "e3"]
    outcome = ov.set_base(new_base)
    assert outcome.dropped_ids == ("e3",)
    assert outcome.dropped_count == 1
    assert outcome.retained_count == 1
    assert ov.reassigned == frozenset({"e1"})
    validate_overlay(ov)


def test_10_set_base_rederives_reassigned() -> None:
    _header("Test 10 -- reassigned rebuilt against the new base")
    ov = EditOverlay(_make_base())
    ov.apply_edit("e1", {"manager_id": "m2"}, editing_enabled=True)
    moved_upstream = [
        Employee(**{**e.to_dict(), "manager_id": "m2"}) if e.id == "e1" else e
        for e in _make_base()
    ]
    outcome = ov.set_base(moved_upstream)
    assert outcome.dropped_count == 0
    assert ov.reassigned == frozenset()
    assert ov.dirty
    validate_overlay(ov)


def test_11_replay_dataset() -> None:
    _header("Test 11 -- Replay a dataset as edits")
    ov = EditOverlay(_make_base())
    target = [
        Employee(id="e2", name="Eva", title="Lead", department="Eng", manager_id="m2"),
        Employee(id="ceo", name="Cora", title="CEO", department="Exec"),
        Employee(id="new", name="Nia"),
    ]
    outcome = ov.replay_dataset(target, editing_enabled=True)
    assert outcome.dropped_ids == ("new",)
    assert set(ov.overlay) == {"e2"}
    assert ov.reassigned == frozenset({"e2"})
    assert ov.effective_employee("e2").title == "Lead"


def test_12_promote_keeps_edits_pending() -> None:
    _header("Test 12 -- promote() snapshots effective data")
    ov = EditOverlay(_make_base())
    ov.reassign("e2", "m2", editing_enabled=True)
    snap = ov.promote("Q3 plan", "Move Eva to sales", "planner@company.com")
    assert snap.name == "Q3 plan"
    assert snap.created_by == "planner@company.com"
    assert snap.employees == ov.effective()
    assert snap.content_hash == canonical_hash(ov.effective())
    assert ov.dirty
    with pytest.raises(ValueError):
        ov.promote("   ", "", "x")


def test_13_set_base_reports_duplicate_ids() -> None:
    _header("Test 13 -- Duplicate ids in a new base are reported")
    stale = Employee(id="e1", name="Eli", title="Intern", department="Eng", manager_id="m1")
    ov = EditOverlay()
    outcome = ov.set_base([stale] + _make_base())
    assert outcome.duplicate_ids == ("e1",)
    assert len(ov.effective()) == 6
    assert ov.effective_employee("e1").title == "Engineer"

    ov.apply_edit("e2", {"title": "Lead"}, editing_enabled=True)
    outcome = ov.set_base(_make_base() + [stale])
    assert outcome.duplicate_ids == ("e1",)
    assert outcome.retained_count == 1
    assert ov.effective_employee("e1").title == "Intern"

    assert ov.set_base(_make_base()).duplicate_ids == ()


# ══════════════════════════════════════════════════════════════
# Runner
# ══════════════════════════════════════════════════════════════

def main() -> None:
    tests = [v for k, v in sorted(globals().items()) if k.startswith("test_")]
    failed = 0
    for fn in tests:
        try:
            fn()
            print("  [PASS]")
        except Exception as e:
            failed += 1
            print(f"\n[FAIL] {fn.__name__}: {e!r}")
    print(f"\n{'='*60}")
    print(f"  RESULTS: {len(tests) - failed}/{len(tests)} tests passed")
    print(f"{'='*60}")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
