"""
Organization Compiler - Deterministic generator producing employee sets.

compile_org(spec, seed) -> (employees, manifest)

Builds a clean tree (CEO, one head per department, staff attached under
department members with open span), then disables a share of accounts and
injects the requested faults. The manifest records exactly what was
injected so tests can check the builder's diagnostics against it.

No global randomness. Output is validated through build_hierarchy before
returning.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List, Set, Tuple

from orgchart_kernel.domain_types import Employee, IssueKind
from orgchart_kernel.hierarchy import build_hierarchy
from orgchart_kernel.invariants import InvariantViolationError, validate_hierarchy

from .deterministic_rng import DeterministicRNG
from .template_spec import BASIS_POINTS, OrgTemplateSpec


class GeneratorInvariantError(Exception):
    """Raised when a generated organization fails hierarchy validation."""

    def __init__(self, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"Generated organization failed validation: {cause}")


# (department, head title, staff titles)
_DEPARTMENTS: Tuple[Tuple[str, str, Tuple[str, ...]], ...] = (
    ("Engineering", "VP of Engineering",
     ("Software Engineer", "Senior Software Engineer", "Engineering Manager", "QA Engineer")),
    ("Sales", "VP of Sales",
     ("Account Executive", "Sales Development Representative", "Sales Manager")),
    ("Marketing", "VP of Marketing",
     ("Marketing Specialist", "Content Manager", "Growth Marketer")),
    ("Finance", "Chief Financial Officer",
     ("Financial Analyst", "Accountant", "Controller")),
    ("Product", "VP of Product",
     ("Product Manager", "UX Designer", "Product Analyst")),
    ("Operations", "COO",
     ("Operations Analyst", "Program Manager", "Facilities Coordinator")),
    ("Human Resources", "Head of People",
     ("HR Business Partner", "Recruiter", "People Operations Specialist")),
    ("Customer Success", "VP of Customer Success",
     ("Customer Success Manager", "Support Engineer", "Onboarding Specialist")),
    ("Legal", "General Counsel",
     ("Counsel", "Paralegal", "Compliance Analyst")),
    ("Data", "Head of Data",
     ("Data Analyst", "Data Engineer", "Data Scientist")),
)

_FIRST_NAMES = (
    "Ava", "Ben", "Chloe", "Diego", "Elena", "Farid", "Grace", "Hiro",
    "Isla", "Jonah", "Kira", "Luca", "Maya", "Nikhil", "Olga", "Priya",
    "Quinn", "Rosa", "Sami", "Tariq", "Uma", "Victor", "Wen", "Yara",
)
_LAST_NAMES = (
    "Abbott", "Bianchi", "Castillo", "Dubois", "Eriksen", "Fischer",
    "Gupta", "Haddad", "Ibrahim", "Jensen", "Kowalski", "Lindqvist",
    "Moreau", "Nakamura", "Okafor", "Petrov", "Quintero", "Rossi",
    "Santos", "Tanaka", "Usman", "Varga", "Weber", "Zhang",
)

MAX_DEPARTMENTS: int = len(_DEPARTMENTS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compile_org(spec: OrgTemplateSpec, seed: int) -> Tuple[List[Employee], dict]:
    """
    Compile a spec + seed into a deterministic employee list.

    Returns (employees, manifest) where manifest is:
      {
        "departments": [...],
        "inactive": [ids], "dangling": [ids],
        "cycles": [[manager_id, report_id], ...], "duplicates": [ids],
      }

    Raises ValueError for an invalid spec and GeneratorInvariantError if
    the result does not classify as expected.
    """
    spec.validate()
    if spec.department_count > MAX_DEPARTMENTS:
        raise ValueError(f"department_count must be <= {MAX_DEPARTMENTS}")

    rng = DeterministicRNG(seed)
    employees = _build_clean_tree(spec, rng)
    ceo_id = employees[0].id

    manifest: Dict[str, list] = {
        "departments": [d[0] for d in _DEPARTMENTS[:spec.department_count]],
        "inactive": [],
        "dangling": [],
        "cycles": [],
        "duplicates": [],
    }

    # ── Inactive accounts ─────────────────────────────────────────────
    inactive_n = (spec.headcount - 1) * spec.inactive_share // BASIS_POINTS
    if inactive_n:
        chosen = set(rng.fault_targets([e.id for e in employees[1:]], inactive_n))
        employees = [
            replace(e, account_enabled=False) if e.id in chosen else e
            for e in employees
        ]
        manifest["inactive"] = sorted(chosen)

    touched: Set[str] = {ceo_id}
    _inject_cycles(spec, rng, employees, touched, manifest)
    _inject_dangling(spec, rng, employees, touched, manifest)
    _inject_duplicates(spec, rng, employees, manifest)

    _check_result(spec, employees, manifest)
    return employees, manifest


# ---------------------------------------------------------------------------
# Clean tree
# ---------------------------------------------------------------------------

def _build_clean_tree(spec: OrgTemplateSpec, rng: DeterministicRNG) -> List[Employee]:
    employees: List[Employee] = []
    span: Dict[str, int] = {}
    members: Dict[str, List[str]] = {}

    def _add(dept: str, title: str, manager_id) -> Employee:
        n = len(employees) + 1
        first, last = rng.person_name(_FIRST_NAMES, _LAST_NAMES)
        emp = Employee(
            id=f"E{n:04d}",
            name=f"{first} {last}",
            title=title,
            department=dept,
            email=f"{first.lower()}.{last.lower()}{n}@company.com",
            manager_id=manager_id,
        )
        employees.append(emp)
        span[emp.id] = 0
        if manager_id is not None:
            span[manager_id] += 1
        return emp

    ceo = _add("Executive", "Chief Executive Officer", None)
    departments = _DEPARTMENTS[:spec.department_count]
    for name, head_title, _titles in departments:
        head = _add(name, head_title, ceo.id)
        members[name] = [head.id]

    for i in range(spec.headcount - len(employees)):
        name, _head, titles = departments[i % len(departments)]
        manager_id = rng.manager_for(members[name], span, spec.max_span)
        emp = _add(name, rng.title(titles), manager_id)
        members[name].append(emp.id)

    return employees


# ---------------------------------------------------------------------------
# Fault injection
# ---------------------------------------------------------------------------

def _inject_cycles(spec, rng, employees: List[Employee], touched: Set[str], manifest) -> None:
    """Point a manager at one of their own reports: a two-person loop."""
    for _ in range(spec.cycle_count):
        pos = {e.id: i for i, e in enumerate(employees)}
        pairs = [
            (e.manager_id, e.id) for e in employees
            if e.manager_id is not None
            and e.manager_id not in touched and e.id not in touched
        ]
        if not pairs:
            raise ValueError(f"Cannot inject {spec.cycle_count} cycle(s) into this org")
        manager_id, report_id = rng.fault_target(pairs)
        i = pos[manager_id]
        employees[i] = replace(employees[i], manager_id=report_id)
        touched.update((manager_id, report_id))
        manifest["cycles"].append([manager_id, report_id])


def _inject_dangling(spec, rng, employees: List[Employee], touched: Set[str], manifest) -> None:
    """Point employees at manager ids that do not exist."""
    candidates = [i for i, e in enumerate(employees) if e.id not in touched]
    if len(candidates) < spec.dangling_manager_count:
        raise ValueError(
            f"Cannot inject {spec.dangling_manager_count} dangling manager(s)"
        )
    for k, i in enumerate(rng.fault_targets(candidates, spec.dangling_manager_count)):
        employees[i] = replace(employees[i], manager_id=f"ghost-{k + 1}")
        touched.add(employees[i].id)
        manifest["dangling"].append(employees[i].id)


def _inject_duplicates(spec, rng, employees: List[Employee], manifest) -> None:
    """Append stale second records for existing ids (same manager)."""
    originals = list(employees)
    for _ in range(spec.duplicate_count):
        source = rng.fault_target(originals[1:])
        employees.append(replace(source, title=f"{source.title} (stale)"))
        manifest["duplicates"].append(source.id)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _check_result(spec: OrgTemplateSpec, employees: List[Employee], manifest: dict) -> None:
    result = build_hierarchy(employees)
    try:
        validate_hierarchy(result, employees)
    except InvariantViolationError as exc:
        raise GeneratorInvariantError(exc) from exc

    kinds = {issue.kind for issue in result.issues}
    expected = {
        IssueKind.CYCLIC_REFERENCE: bool(manifest["cycles"]),
        IssueKind.UNRESOLVABLE_REFERENCE: bool(manifest["dangling"]),
        IssueKind.DUPLICATE_ID: bool(manifest["duplicates"]),
    }
    for kind, wanted in expected.items():
        if wanted != (kind in kinds):
            raise GeneratorInvariantError(
                ValueError(f"expected {kind.value} diagnostics={wanted}, got {sorted(k.value for k in kinds)}")
            )
    if not spec.has_faults and (len(result.root_ids) != 1 or result.orphan_ids):
        raise GeneratorInvariantError(
            ValueError(f"clean org has {len(result.root_ids)} root(s), {len(result.orphan_ids)} orphan(s)")
        )
