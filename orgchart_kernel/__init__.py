"""
Org Chart Kernel
Deterministic, in-memory core for building, editing and snapshotting a
reporting hierarchy. No I/O beyond optional scenario file export.
"""

from .domain_types import (
    UNSET, Employee, EmployeePatch, PATCHABLE_FIELDS,
    IssueKind, HierarchyIssue, HierarchyResult, ScenarioSnapshot,
)
from .errors import (
    OrgChartError,
    NotInPlanningModeError,
    UnknownEmployeeError,
    CyclicReassignmentError,
)
from .hierarchy import build_hierarchy
from .overlay import EditOverlay, EditStatus, ReconcileResult
from .context import ContextCache, DirectorySource
from .scenarios import ScenarioStore, InMemoryScenarioStore, create_snapshot
from .hashing import canonical_serialize, canonical_hash
from .snapshot import (
    SnapshotError,
    SerializationError,
    DeserializationError,
    ScenarioIntegrityError,
    encode_scenario,
    decode_scenario,
    verify_scenario,
    restore_scenario,
    export_scenario_to_file,
    import_scenario_from_file,
    scenario_hash,
)
from .diagnostics import compute_diagnostics
from .invariants import InvariantViolationError, validate_hierarchy, validate_overlay
from .search import search_employees, filter_by_department, list_departments
from .constants import (
    CONTEXT_MAX_DEPTH,
    SEARCH_RESULT_LIMIT,
    WIDE_SPAN_THRESHOLD,
    DEEP_HIERARCHY_THRESHOLD,
)

__all__ = [
    "UNSET",
    "Employee",
    "EmployeePatch",
    "PATCHABLE_FIELDS",
    "IssueKind",
    "HierarchyIssue",
    "HierarchyResult",
    "ScenarioSnapshot",
    "OrgChartError",
    "NotInPlanningModeError",
    "UnknownEmployeeError",
    "CyclicReassignmentError",
    "build_hierarchy",
    "EditOverlay",
    "EditStatus",
    "ReconcileResult",
    "ContextCache",
    "DirectorySource",
    "ScenarioStore",
    "InMemoryScenarioStore",
    "create_snapshot",
    "canonical_serialize",
    "canonical_hash",
    "SnapshotError",
    "SerializationError",
    "DeserializationError",
    "ScenarioIntegrityError",
    "encode_scenario",
    "decode_scenario",
    "verify_scenario",
    "restore_scenario",
    "export_scenario_to_file",
    "import_scenario_from_file",
    "scenario_hash",
    "compute_diagnostics",
    "InvariantViolationError",
    "validate_hierarchy",
    "validate_overlay",
    "search_employees",
    "filter_by_department",
    "list_departments",
    "CONTEXT_MAX_DEPTH",
    "SEARCH_RESULT_LIMIT",
    "WIDE_SPAN_THRESHOLD",
    "DEEP_HIERARCHY_THRESHOLD",
]
