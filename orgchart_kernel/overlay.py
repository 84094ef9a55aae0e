"""
Org Chart Kernel - Planning Overlay

EditOverlay keeps a base snapshot plus a sparse map of pending per-employee
patches. The base is never mutated: ``effective()`` is a read-only
projection of base merged with the overlay.

Planning mode is not state of this class. Every editing call takes an
``editing_enabled`` flag from the caller and refuses edits without it.

Invariant: ``reassigned`` is a subset of the overlay keys and can always be
rebuilt from scratch by comparing each overlay ``manager_id`` against the
base record (see ``derive_reassigned``).
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Set, Tuple, Union

from .domain_types import Employee, EmployeePatch, ScenarioSnapshot
from .errors import CyclicReassignmentError, NotInPlanningModeError, UnknownEmployeeError
from .graph import index_employees, would_create_cycle
from .scenarios import create_snapshot

logger = logging.getLogger(__name__)

PatchLike = Union[EmployeePatch, Mapping[str, object]]


class EditStatus(str, enum.Enum):
    REASSIGNED = "reassigned"
    EDITED = "edited"
    UNCHANGED = "unchanged"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of replacing the base (or replaying a dataset) under pending edits."""

    dropped_ids: Tuple[str, ...] = ()
    retained_count: int = 0
    reassigned_count: int = 0
    duplicate_ids: Tuple[str, ...] = ()

    @property
    def dropped_count(self) -> int:
        return len(self.dropped_ids)


class EditOverlay:
    """Non-destructive edit layer over a base employee collection."""

    def __init__(self, base: Iterable[Employee] = ()) -> None:
        self._base: Dict[str, Employee] = {}
        self._overlay: Dict[str, EmployeePatch] = {}
        self._reassigned: Set[str] = set()
        self.set_base(base)

    # -- State access -------------------------------------------------------

    @property
    def base(self) -> Tuple[Employee, ...]:
        return tuple(self._base.values())

    @property
    def overlay(self) -> Dict[str, EmployeePatch]:
        return dict(self._overlay)

    @property
    def reassigned(self) -> FrozenSet[str]:
        return frozenset(self._reassigned)

    @property
    def edited_ids(self) -> FrozenSet[str]:
        """Ids with pending edits that are not reassignments."""
        return frozenset(self._overlay) - self._reassigned

    @property
    def dirty(self) -> bool:
        return bool(self._overlay)

    def patch_for(self, employee_id: str) -> Optional[EmployeePatch]:
        return self._overlay.get(employee_id)

    def status_of(self, employee_id: str) -> EditStatus:
        if employee_id in self._reassigned:
            return EditStatus.REASSIGNED
        if employee_id in self._overlay:
            return EditStatus.EDITED
        return EditStatus.UNCHANGED

    # -- Base lifecycle -----------------------------------------------------

    def set_base(self, employees: Iterable[Employee]) -> ReconcileResult:
        """
        Replace the base wholesale.

        Repeated ids keep their last record and are reported in
        ``duplicate_ids``. With pending edits, entries for ids missing from
        the new base are dropped (and reported), and ``reassigned`` is
        rebuilt against the new base records.
        """
        self._base, duplicates = index_employees(employees)
        if duplicates:
            logger.warning(
                "Base has %d duplicate id(s), keeping the last record: %s",
                len(duplicates), ", ".join(duplicates),
            )
        if not self._overlay:
            self._reassigned = set()
            return ReconcileResult(duplicate_ids=tuple(duplicates))

        dropped = tuple(eid for eid in self._overlay if eid not in self._base)
        for eid in dropped:
            del self._overlay[eid]
        self._reassigned = set(self.derive_reassigned())

        if dropped:
            logger.warning(
                "Dropped %d pending edit(s) for employees not in the new view: %s",
                len(dropped), ", ".join(dropped),
            )
        return ReconcileResult(
            dropped_ids=dropped,
            retained_count=len(self._overlay),
            reassigned_count=len(self._reassigned),
            duplicate_ids=tuple(duplicates),
        )

    def derive_reassigned(self) -> FrozenSet[str]:
        """Rebuild reassigned membership purely from overlay vs base."""
        return frozenset(eid for eid in self._overlay if self._differs_from_base(eid))

    # -- Editing ------------------------------------------------------------

    def apply_edit(
        self, employee_id: str, patch: PatchLike, editing_enabled: bool,
    ) -> Employee:
        """
        Merge *patch* into the pending edit for *employee_id*.

        The patch wins field-by-field over both the earlier overlay entry and
        the base record. Returns the merged effective record.
        """
        if not editing_enabled:
            raise NotInPlanningModeError(employee_id)
        if not isinstance(patch, EmployeePatch):
            patch = EmployeePatch.from_dict(patch)

        base = self._base.get(employee_id)
        if base is None:
            raise UnknownEmployeeError(employee_id, "the current view")

        merged = self._overlay.get(employee_id, EmployeePatch()).combine(patch)
        self._overlay[employee_id] = merged

        if self._differs_from_base(employee_id):
            self._reassigned.add(employee_id)
        else:
            self._reassigned.discard(employee_id)

        return merged.apply_to(base)

    def reassign(
        self, employee_id: str, new_manager_id: Optional[str], editing_enabled: bool,
    ) -> Employee:
        """
        Move *employee_id* under *new_manager_id* (None = top level).

        Refuses targets outside the current view and moves that would put an
        employee under themself or their own downward team.
        """
        if not editing_enabled:
            raise NotInPlanningModeError(employee_id)
        current = {e.id: e for e in self.effective()}
        if employee_id not in current:
            raise UnknownEmployeeError(employee_id, "the current view")
        if new_manager_id is not None and new_manager_id not in current:
            raise UnknownEmployeeError(new_manager_id, "the current view")
        if would_create_cycle(current, employee_id, new_manager_id):
            raise CyclicReassignmentError(employee_id, new_manager_id)
        return self.apply_edit(
            employee_id, EmployeePatch(manager_id=new_manager_id), editing_enabled,
        )

    def replay_dataset(
        self, employees: Iterable[Employee], editing_enabled: bool,
    ) -> ReconcileResult:
        """
        Express *employees* as edits against the current base.

        Records whose id is not in the base cannot be applied and are
        reported as dropped.
        """
        if not editing_enabled:
            raise NotInPlanningModeError("*")
        dropped = []
        for emp in employees:
            base = self._base.get(emp.id)
            if base is None:
                dropped.append(emp.id)
                continue
            patch = EmployeePatch.between(base, emp)
            if not patch.is_empty():
                self.apply_edit(emp.id, patch, editing_enabled)
        return ReconcileResult(
            dropped_ids=tuple(dropped),
            retained_count=len(self._overlay),
            reassigned_count=len(self._reassigned),
        )

    def discard(self) -> int:
        """Drop every pending edit. The base is untouched."""
        cleared = len(self._overlay)
        self._overlay = {}
        self._reassigned = set()
        return cleared

    # -- Projection ---------------------------------------------------------

    def effective(self) -> Tuple[Employee, ...]:
        """Base with every overlaid record merged in, in base order."""
        if not self._overlay:
            return self.base
        return tuple(
            self._overlay[eid].apply_to(emp) if eid in self._overlay else emp
            for eid, emp in self._base.items()
        )

    def effective_employee(self, employee_id: str) -> Employee:
        base = self._base.get(employee_id)
        if base is None:
            raise UnknownEmployeeError(employee_id, "the current view")
        patch = self._overlay.get(employee_id)
        return patch.apply_to(base) if patch is not None else base

    def promote(self, name: str, description: str, author: str) -> ScenarioSnapshot:
        """Capture the effective dataset as a new scenario. Edits stay pending."""
        return create_snapshot(name, description, author, self.effective())

    # -- Internal -----------------------------------------------------------

    def _differs_from_base(self, employee_id: str) -> bool:
        patch = self._overlay.get(employee_id)
        if patch is None or not patch.sets_manager():
            return False
        return patch.manager_id != self._base[employee_id].manager_id
