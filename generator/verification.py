"""
Verification Harness - Compile, build and summarise generated organizations.

Provides both single-spec verification and a suite of smoke tests when
run as __main__.
"""

from __future__ import annotations

from orgchart_kernel.diagnostics import compute_diagnostics
from orgchart_kernel.hashing import canonical_hash
from orgchart_kernel.hierarchy import build_hierarchy

from .compiler import GeneratorInvariantError, compile_org
from .template_spec import OrgTemplateSpec


def verify_generated_org(spec: OrgTemplateSpec, seed: int) -> dict:
    """
    Compile an organization, build its hierarchy and return a summary.

    Returns:
        {
            "content_hash": str,
            "diagnostics": dict,
            "employee_count": int,
            "orphan_count": int,
            "issue_kinds": [str],
            "faults": dict,
        }
    """
    employees, manifest = compile_org(spec, seed)
    result = build_hierarchy(employees)

    return {
        "content_hash": canonical_hash(result.employees.values()),
        "diagnostics": compute_diagnostics(result),
        "employee_count": len(result.employees),
        "orphan_count": len(result.orphan_ids),
        "issue_kinds": sorted({issue.kind.value for issue in result.issues}),
        "faults": manifest,
    }


# ---------------------------------------------------------------------------
# CLI smoke tests
# ---------------------------------------------------------------------------

def _run_smoke_tests() -> None:
    """Run a suite of deterministic smoke tests."""
    import json

    specs = [
        ("clean_40", OrgTemplateSpec(headcount=40, department_count=4, max_span=6)),
        ("wide_200", OrgTemplateSpec(headcount=200, department_count=8, max_span=25)),
        ("inactive_60", OrgTemplateSpec(
            headcount=60, department_count=5, max_span=8, inactive_share=1_000,
        )),
        ("faulty_80", OrgTemplateSpec(
            headcount=80, department_count=6, max_span=7,
            dangling_manager_count=2, cycle_count=1, duplicate_count=2,
        )),
    ]

    seed = 42
    all_ok = True

    for label, spec in specs:
        print(f"\n{'-'*60}")
        print(f"  {label}  (seed={seed})")
        print(f"{'-'*60}")

        try:
            result = verify_generated_org(spec, seed)
            print(json.dumps(result, indent=2, default=str))

            result2 = verify_generated_org(spec, seed)
            if result["content_hash"] != result2["content_hash"]:
                print("  FAIL: DETERMINISM FAILURE")
                all_ok = False
            else:
                print("  OK: Deterministic (hash stable)")
        except (ValueError, GeneratorInvariantError) as exc:
            print(f"  FAIL: {exc}")
            all_ok = False

    print(f"\n{'='*60}")
    if all_ok:
        print("  ALL SMOKE TESTS PASSED")
    else:
        print("  SOME TESTS FAILED")
    print(f"{'='*60}")


if __name__ == "__main__":
    _run_smoke_tests()
