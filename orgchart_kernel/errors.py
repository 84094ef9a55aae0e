"""
Org Chart Kernel - Error Taxonomy

Only recoverable, caller-facing failures are exceptions. Unresolvable and
cyclic manager references are never raised: they degrade to root / orphan
classification plus a diagnostic (see IssueKind).
"""

from __future__ import annotations


class OrgChartError(Exception):
    """Base for all kernel errors."""


class NotInPlanningModeError(OrgChartError):
    """Raised when an edit is attempted while overlay editing is disabled."""

    def __init__(self, employee_id: str) -> None:
        self.employee_id = employee_id
        super().__init__(
            f"Cannot edit employee {employee_id!r}: planning mode is not enabled"
        )


class UnknownEmployeeError(OrgChartError, KeyError):
    """Raised when an operation names an employee id that does not exist."""

    def __init__(self, employee_id: str, context: str = "dataset") -> None:
        self.employee_id = employee_id
        self.context = context
        super().__init__(f"Employee {employee_id!r} not found in {context}")

    def __str__(self) -> str:
        return self.args[0]


class CyclicReassignmentError(OrgChartError):
    """Raised when a reassignment would place an employee under their own team."""

    def __init__(self, employee_id: str, new_manager_id: str) -> None:
        self.employee_id = employee_id
        self.new_manager_id = new_manager_id
        super().__init__(
            f"Cannot move {employee_id!r} under {new_manager_id!r}: "
            f"{new_manager_id!r} reports into {employee_id!r}"
        )
