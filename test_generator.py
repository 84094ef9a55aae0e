"""
Tests for the Deterministic Organization Generator.

Covers:
  - Generator determinism (same seed -> same hash)
  - Different seeds -> different hashes
  - Clean organizations (single root, span limits, departments)
  - Inactive account share
  - Fault injection (dangling managers, cycles, duplicates)
  - Spec validation
  - Sample organization
  - JSON export round-trip

Run:  python test_generator.py   (or pytest)
"""

from __future__ import annotations

import json
import os
import sys
import tempfile

import pytest

from orgchart_kernel.domain_types import IssueKind
from orgchart_kernel.hierarchy import build_hierarchy

from generator import (
    DeterministicRNG,
    OrgTemplateSpec,
    compile_org,
    export_employees,
    load_employees,
    sample_employees,
    verify_generated_org,
)


_pass = 0
_fail = 0


def _test(name, fn):
    global _pass, _fail
    try:
        fn()
        print(f"  [PASS] {name}")
        _pass += 1
    except Exception as exc:
        print(f"  [FAIL] {name}: {exc}")
        _fail += 1


def _make_spec(
    headcount: int = 40,
    department_count: int = 4,
    max_span: int = 6,
    **faults,
) -> OrgTemplateSpec:
    return OrgTemplateSpec(
        headcount=headcount,
        department_count=department_count,
        max_span=max_span,
        **faults,
    )


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------

def test_determinism_same_seed():
    spec = _make_spec()
    r1 = verify_generated_org(spec, seed=42)
    r2 = verify_generated_org(spec, seed=42)
    assert r1["content_hash"] == r2["content_hash"]


def test_different_seeds():
    spec = _make_spec()
    r1 = verify_generated_org(spec, seed=42)
    r2 = verify_generated_org(spec, seed=99)
    assert r1["content_hash"] != r2["content_hash"]


def test_rng_determinism():
    rng1 = DeterministicRNG(42)
    rng2 = DeterministicRNG(42)
    names = ("Ava", "Ben", "Chloe", "Diego")
    ids = [f"E{n:04d}" for n in range(1, 30)]
    for _ in range(50):
        assert rng1.person_name(names, names) == rng2.person_name(names, names)
        assert rng1.fault_targets(ids, 5) == rng2.fault_targets(ids, 5)


def test_rng_manager_draw_respects_span():
    rng = DeterministicRNG(3)
    span = {"m1": 2, "m2": 0, "m3": 2}
    for _ in range(20):
        assert rng.manager_for(["m1", "m2", "m3"], span, max_span=2) == "m2"
    with pytest.raises(ValueError):
        rng.manager_for(["m1", "m3"], span, max_span=2)
    with pytest.raises(ValueError):
        rng.fault_targets(["a", "b"], 3)
    with pytest.raises(ValueError):
        rng.fault_target([])


# ---------------------------------------------------------------------------
# Clean organizations
# ---------------------------------------------------------------------------

def test_clean_org_is_single_tree():
    employees, manifest = compile_org(_make_spec(), seed=7)
    result = build_hierarchy(employees)
    assert len(employees) == 40
    assert result.root_ids == {"E0001"}
    assert result.orphan_ids == set()
    assert result.issues == []
    assert result.descendant_count["E0001"] == 39
    assert manifest["departments"] == ["Engineering", "Sales", "Marketing", "Finance"]


def test_span_limit_respected():
    employees, _ = compile_org(_make_spec(headcount=120, max_span=3), seed=3)
    result = build_hierarchy(employees)
    spans = [len(kids) for mid, kids in result.children_of.items() if mid != "E0001"]
    assert max(spans) <= 3


def test_inactive_share():
    employees, manifest = compile_org(_make_spec(headcount=41, inactive_share=2_500), seed=5)
    disabled = [e.id for e in employees if not e.account_enabled]
    assert len(disabled) == 10
    assert sorted(disabled) == manifest["inactive"]
    assert "E0001" not in disabled


# ---------------------------------------------------------------------------
# Fault injection
# ---------------------------------------------------------------------------

def test_fault_injection_matches_diagnostics():
    spec = _make_spec(
        headcount=80, department_count=6, max_span=7,
        dangling_manager_count=2, cycle_count=1, duplicate_count=2,
    )
    employees, manifest = compile_org(spec, seed=11)
    result = build_hierarchy(employees)

    assert len(employees) == 82
    assert len(result.employees) == 80
    assert result.root_ids == {"E0001", *manifest["dangling"]}
    assert set(manifest["cycles"][0]) <= result.orphan_ids
    kinds = {issue.kind for issue in result.issues}
    assert {IssueKind.CYCLIC_REFERENCE, IssueKind.UNRESOLVABLE_REFERENCE,
            IssueKind.DUPLICATE_ID} <= kinds


def test_verify_reports_issue_kinds():
    spec = _make_spec(cycle_count=1)
    summary = verify_generated_org(spec, seed=42)
    assert "cyclic_reference" in summary["issue_kinds"]
    assert summary["orphan_count"] >= 2
    assert summary["employee_count"] == 40


# ---------------------------------------------------------------------------
# Spec validation
# ---------------------------------------------------------------------------

def test_invalid_specs_rejected():
    with pytest.raises(ValueError):
        compile_org(_make_spec(headcount=3, department_count=4), seed=1)
    with pytest.raises(ValueError):
        compile_org(_make_spec(headcount=100, department_count=11), seed=1)
    with pytest.raises(ValueError):
        compile_org(_make_spec(max_span=0), seed=1)
    with pytest.raises(ValueError):
        compile_org(_make_spec(inactive_share=10_001), seed=1)


# ---------------------------------------------------------------------------
# Sample organization
# ---------------------------------------------------------------------------

def test_sample_org():
    employees = sample_employees()
    result = build_hierarchy(employees)
    assert len(employees) == 25
    assert result.root_ids == {"1"}
    assert result.descendant_count["1"] == 24
    assert result.descendant_count["4"] == 6
    assert result.issues == []
    assert employees[0].email == "sarah.chen@company.com"
    assert employees[24].phone == "+1 (555) 001-0025"


# ---------------------------------------------------------------------------
# JSON Export
# ---------------------------------------------------------------------------

def test_json_export():
    spec = _make_spec(duplicate_count=1)
    employees, manifest = compile_org(spec, seed=42)

    with tempfile.NamedTemporaryFile(suffix=".json", delete=False, mode="w") as f:
        path = f.name

    try:
        export_employees(employees, path, spec, seed=42, manifest=manifest)
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
        assert doc["metadata"]["seed"] == 42
        assert doc["metadata"]["template"]["headcount"] == 40
        assert doc["metadata"]["faults"]["duplicates"] == manifest["duplicates"]
        assert load_employees(path) == employees
    finally:
        os.unlink(path)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------

def main():
    tests = [
        ("Determinism: same seed", test_determinism_same_seed),
        ("Determinism: different seeds", test_different_seeds),
        ("RNG determinism", test_rng_determinism),
        ("RNG: manager within span", test_rng_manager_draw_respects_span),
        ("Clean org: single tree", test_clean_org_is_single_tree),
        ("Clean org: span limit", test_span_limit_respected),
        ("Inactive share", test_inactive_share),
        ("Faults: diagnostics match manifest", test_fault_injection_matches_diagnostics),
        ("Faults: verification summary", test_verify_reports_issue_kinds),
        ("Spec validation", test_invalid_specs_rejected),
        ("Sample organization", test_sample_org),
        ("JSON export", test_json_export),
    ]

    print(f"\nRunning {len(tests)} tests...\n")
    for name, fn in tests:
        _test(name, fn)

    print(f"\n{'='*60}")
    print(f"  {_pass} passed, {_fail} failed out of {_pass + _fail}")
    print(f"{'='*60}")

    if _fail > 0:
        sys.exit(1)


if __name__ == "__main__":
    main()
