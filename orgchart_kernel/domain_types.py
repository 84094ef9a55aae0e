"""
Org Chart Kernel - Core Domain Types

Pure data. No behaviour beyond field-by-field merging and plain-dict
conversion. Employees are immutable value records: "changing" an employee
always produces a new record.

────────────────────────────────────────────────
DOMAIN GLOSSARY
────────────────────────────────────────────────

Root:
    An employee with no valid resolvable manager within the dataset.

Orphan:
    An employee excluded from the rooted hierarchy because of an
    unresolvable or cyclic manager reference.

Overlay:
    The set of pending, unsaved edits layered on top of a base snapshot.

Context:
    The minimal employee subset needed to display one person's place in
    the organization (manager, peers, full downward team).

Scenario:
    A named, immutable saved copy of a planning-mode result.

────────────────────────────────────────────────
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Set, Tuple


# ── Patch sentinel ─────────────────────────────────────────────

class _Unset:
    """Marker for a patch field that was not provided."""

    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


# ── Employee ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Employee:
    """A single person in the reporting structure."""

    id: str
    name: str
    title: str = ""
    department: str = ""
    email: str = ""
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar: Optional[str] = None
    manager_id: Optional[str] = None
    account_enabled: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "title": self.title,
            "department": self.department,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "avatar": self.avatar,
            "manager_id": self.manager_id,
            "account_enabled": self.account_enabled,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Employee":
        """Build an Employee from a plain dict. Unknown keys are ignored."""
        manager_id = data.get("manager_id")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            title=data.get("title") or "",
            department=data.get("department") or "",
            email=data.get("email") or "",
            phone=data.get("phone"),
            location=data.get("location"),
            avatar=data.get("avatar"),
            manager_id=str(manager_id) if manager_id not in (None, "") else None,
            account_enabled=data.get("account_enabled", True),
        )


# Fields a patch may touch. ``id`` is identity and never patchable.
PATCHABLE_FIELDS: Tuple[str, ...] = (
    "name",
    "title",
    "department",
    "email",
    "phone",
    "location",
    "avatar",
    "manager_id",
    "account_enabled",
)


@dataclass(frozen=True)
class EmployeePatch:
    """
    Sparse edit for the mutable subset of an Employee.

    Every field defaults to UNSET. Setting ``manager_id=None`` is a real
    edit (move to the top level) and differs from leaving it UNSET.
    """

    name: Any = UNSET
    title: Any = UNSET
    department: Any = UNSET
    email: Any = UNSET
    phone: Any = UNSET
    location: Any = UNSET
    avatar: Any = UNSET
    manager_id: Any = UNSET
    account_enabled: Any = UNSET

    def fields_set(self) -> Dict[str, Any]:
        """Return only the fields this patch provides, in declaration order."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.fields_set()

    def sets_manager(self) -> bool:
        return self.manager_id is not UNSET

    def combine(self, newer: "EmployeePatch") -> "EmployeePatch":
        """Layer *newer* over this patch. Newer wins field-by-field."""
        return replace(self, **newer.fields_set())

    def apply_to(self, employee: Employee) -> Employee:
        """Return a new Employee with every provided field overridden."""
        changes = self.fields_set()
        if not changes:
            return employee
        return replace(employee, **changes)

    def to_dict(self) -> dict:
        return dict(self.fields_set())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmployeePatch":
        """
        Build a patch from a plain dict of field overrides.

        Raises ValueError for ``id`` or any unknown field.
        """
        if "id" in data:
            raise ValueError("An employee patch cannot change 'id'")
        unknown = set(data) - set(PATCHABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown patch fields: {sorted(unknown)}")
        values = dict(data)
        if "manager_id" in values and values["manager_id"] == "":
            values["manager_id"] = None
        return cls(**values)

    @classmethod
    def between(cls, before: Employee, after: Employee) -> "EmployeePatch":
        """The minimal patch turning *before* into *after* (same id)."""
        changes = {
            name: getattr(after, name)
            for name in PATCHABLE_FIELDS
            if getattr(before, name) != getattr(after, name)
        }
        return cls(**changes)


# ── Hierarchy ─────────────────────────────────────────────────

class IssueKind(str, enum.Enum):
    """Classification of a hierarchy diagnostic."""

    UNRESOLVABLE_REFERENCE = "unresolvable_reference"
    CYCLIC_REFERENCE = "cyclic_reference"
    DUPLICATE_ID = "duplicate_id"
    DISCONNECTED = "disconnected"
    FALLBACK_ROOT = "fallback_root"
    EMERGENCY_ROOT = "emergency_root"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True)
class HierarchyIssue:
    """Structured form of one diagnostic line."""

    kind: IssueKind
    employee_id: str
    message: str


@dataclass
class HierarchyResult:
    """
    Derived view of an employee collection. Never persisted.

    ``root_ids``, the ids reachable from them and ``orphan_ids`` partition
    the input ids: every employee is accounted for exactly once.
    """

    employees: Dict[str, Employee] = field(default_factory=dict)
    children_of: Dict[str, List[Employee]] = field(default_factory=dict)
    root_ids: Set[str] = field(default_factory=set)
    roots: List[Employee] = field(default_factory=list)
    descendant_count: Dict[str, int] = field(default_factory=dict)
    orphan_ids: Set[str] = field(default_factory=set)
    reachable_ids: Set[str] = field(default_factory=set)
    cyclic_ids: FrozenSet[str] = frozenset()
    issues: List[HierarchyIssue] = field(default_factory=list)

    @property
    def diagnostics(self) -> List[str]:
        return [issue.message for issue in self.issues]

    def children(self, employee_id: str) -> List[Employee]:
        return self.children_of.get(employee_id, [])

    def to_dict(self) -> dict:
        """Serialise to a plain dict (for API responses / logging)."""
        return {
            "roots": [e.id for e in self.roots],
            "children_of": {
                mid: [c.id for c in kids]
                for mid, kids in self.children_of.items()
            },
            "descendant_count": dict(self.descendant_count),
            "orphan_ids": sorted(self.orphan_ids),
            "employees": {
                eid: e.to_dict() for eid, e in self.employees.items()
            },
            "diagnostics": [
                {
                    "kind": issue.kind.value,
                    "employee_id": issue.employee_id,
                    "message": issue.message,
                }
                for issue in self.issues
            ],
        }


# ── Scenarios ─────────────────────────────────────────────────

@dataclass(frozen=True)
class ScenarioSnapshot:
    """
    Named, frozen copy of an effective employee collection.

    Immutable once created; stores only ever add or delete snapshots.
    ``content_hash`` is the canonical hash of ``employees``.
    """

    id: str
    name: str
    description: str
    created_at: str
    created_by: str
    employees: Tuple[Employee, ...] = ()
    content_hash: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
            "created_by": self.created_by,
            "employees": [e.to_dict() for e in self.employees],
            "content_hash": self.content_hash,
        }

    def summary(self) -> dict:
        """Listing form without the employee payload."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
            "created_by": self.created_by,
            "employee_count": len(self.employees),
            "content_hash": self.content_hash,
        }
