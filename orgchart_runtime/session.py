"""
Planning Session - orchestrates kernel components for one user.

Owns the planning-mode flag the kernel deliberately does not hold, and
wires it into every EditOverlay call. Also owns the view token used to
ignore late context results after the user has navigated elsewhere.

Lifecycle:
  1. load_full(employees)      - new base and directory; context cache cleared
  2. enter_planning()          - edits allowed
  3. edit / reassign           - pending overlay edits
  4. save_scenario             - snapshot of effective data; edits stay
  5. discard / exit_planning   - exit refuses to drop unsaved edits
                                 unless asked; context cache cleared
"""

from __future__ import annotations

import logging
import time
from typing import List, Mapping, Optional, Tuple, Union

from orgchart_kernel.context import ContextCache, DirectorySource
from orgchart_kernel.diagnostics import compute_diagnostics
from orgchart_kernel.domain_types import (
    Employee,
    EmployeePatch,
    HierarchyResult,
    ScenarioSnapshot,
)
from orgchart_kernel.hierarchy import build_hierarchy
from orgchart_kernel.overlay import EditOverlay, ReconcileResult
from orgchart_kernel.scenarios import ScenarioStore
from orgchart_kernel.search import filter_by_department, search_employees
from orgchart_kernel.constants import SEARCH_RESULT_LIMIT

from .directory import InMemoryDirectory
from .drift import compare_employee_sets

logger = logging.getLogger(__name__)


class UnsavedChangesError(Exception):
    """Raised when leaving planning mode would silently drop pending edits."""

    def __init__(self, pending: int) -> None:
        self.pending = pending
        super().__init__(
            f"{pending} unsaved edit(s) pending: save a scenario or exit "
            f"with discard=True"
        )


class ScenarioNotFoundError(LookupError):
    """Raised when a scenario id is not in the store."""

    def __init__(self, scenario_id: str) -> None:
        self.scenario_id = scenario_id
        super().__init__(f"Scenario {scenario_id!r} not found")


class PlanningSession:
    """
    Single-user planning workflow over a base dataset, a directory source
    and a scenario store.
    """

    def __init__(
        self,
        source: DirectorySource,
        store: ScenarioStore,
        cache: Optional[ContextCache] = None,
        search_limit: int = SEARCH_RESULT_LIMIT,
        author: str = "",
    ) -> None:
        self._source = source
        self._store = store
        self._cache = cache if cache is not None else ContextCache()
        self._search_limit = search_limit
        self._author = author
        self._overlay = EditOverlay()
        self._planning = False
        self._view_token = 0
        self._focus: Optional[str] = None
        self._last_build_ms: float = 0.0

    # ------------------------------------------------------------------
    # Mode / loading
    # ------------------------------------------------------------------

    @property
    def planning_mode(self) -> bool:
        return self._planning

    def enter_planning(self) -> None:
        if not self._planning:
            self._planning = True
            logger.info("Entered planning mode")

    def exit_planning(self, discard: bool = False) -> int:
        """
        Leave planning mode. Returns the number of edits discarded.

        Raises UnsavedChangesError when edits are pending and *discard*
        is False.
        """
        pending = len(self._overlay.overlay)
        if pending and not discard:
            raise UnsavedChangesError(pending)
        dropped = self._overlay.discard()
        self._planning = False
        self._cache.invalidate()
        logger.info("Exited planning mode (%d edit(s) discarded)", dropped)
        return dropped

    def load_full(
        self, employees: List[Employee], source: Optional[DirectorySource] = None,
    ) -> ReconcileResult:
        """
        Replace the base dataset. Pending edits are reconciled.

        Context lookups move to *source* when given. Otherwise a local
        InMemoryDirectory is reloaded with *employees*; any other source is
        assumed to already serve the new dataset.
        """
        employees = list(employees)
        if source is not None:
            self._source = source
        elif isinstance(self._source, InMemoryDirectory):
            self._source.reload(employees)
        outcome = self._overlay.set_base(employees)
        self._cache.invalidate()
        self._view_token += 1
        logger.info(
            "Loaded %d employees (%d pending edit(s) kept, %d dropped)",
            len(self._overlay.base), outcome.retained_count, outcome.dropped_count,
        )
        return outcome

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def hierarchy(self) -> HierarchyResult:
        """Hierarchy of the effective (base + pending edits) dataset."""
        start = time.perf_counter()
        result = build_hierarchy(self._overlay.effective())
        self._last_build_ms = (time.perf_counter() - start) * 1000.0
        return result

    async def show_person(self, person_id: str) -> Optional[Tuple[Employee, ...]]:
        """
        Navigate to *person_id* and return their context.

        Returns None when another navigation or a reload happened while the
        lookup was in flight; the fetched context is still cached.
        """
        self._view_token += 1
        token = self._view_token
        self._focus = person_id
        context = await self._cache.get_context(person_id, self._source)
        if token != self._view_token:
            logger.debug("Ignoring late context for %r", person_id)
            return None
        return context

    async def context_for(self, person_id: str) -> Tuple[Employee, ...]:
        """Context for *person_id* without moving the current view."""
        return await self._cache.get_context(person_id, self._source)

    def search(self, query: str, department: Optional[str] = None) -> List[Employee]:
        pool = filter_by_department(self._overlay.effective(), department)
        return search_employees(pool, query, limit=self._search_limit)

    def get_diagnostics(self) -> dict:
        return compute_diagnostics(self.hierarchy())

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def edit(
        self, employee_id: str, patch: Union[EmployeePatch, Mapping[str, object]],
    ) -> Employee:
        return self._overlay.apply_edit(employee_id, patch, self._planning)

    def reassign(self, employee_id: str, new_manager_id: Optional[str]) -> Employee:
        return self._overlay.reassign(employee_id, new_manager_id, self._planning)

    def discard(self) -> int:
        dropped = self._overlay.discard()
        logger.info("Discarded %d pending edit(s)", dropped)
        return dropped

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def save_scenario(
        self, name: str, description: str = "", author: Optional[str] = None,
    ) -> ScenarioSnapshot:
        """Snapshot the effective dataset. Pending edits stay pending."""
        snapshot = self._overlay.promote(
            name, description, author if author is not None else self._author,
        )
        self._store.save(snapshot)
        logger.info("Saved scenario %r as %s", snapshot.name, snapshot.id)
        return snapshot

    def load_scenario(self, scenario_id: str) -> ReconcileResult:
        """
        Re-enter planning mode with *scenario_id* replayed as pending edits.

        Current pending edits are replaced. With no base loaded, the
        scenario itself becomes the base.
        """
        snapshot = self.get_scenario(scenario_id)
        if not self._overlay.base:
            self.load_full(list(snapshot.employees))
        self._overlay.discard()
        self.enter_planning()
        outcome = self._overlay.replay_dataset(snapshot.employees, self._planning)
        if outcome.dropped_count:
            logger.warning(
                "Scenario %s: %d employee(s) not in the current base were skipped",
                scenario_id, outcome.dropped_count,
            )
        return outcome

    def get_scenario(self, scenario_id: str) -> ScenarioSnapshot:
        snapshot = self._store.get(scenario_id)
        if snapshot is None:
            raise ScenarioNotFoundError(scenario_id)
        return snapshot

    def delete_scenario(self, scenario_id: str) -> None:
        if not self._store.delete(scenario_id):
            raise ScenarioNotFoundError(scenario_id)

    def list_scenarios(self) -> List[ScenarioSnapshot]:
        return self._store.list()

    def compare_scenarios(self, scenario_a: str, scenario_b: str) -> dict:
        return compare_employee_sets(
            self.get_scenario(scenario_a).employees,
            self.get_scenario(scenario_b).employees,
        )

    def compare_to_base(self) -> dict:
        """Drift between the base and the effective dataset."""
        return compare_employee_sets(self._overlay.base, self._overlay.effective())

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def get_metrics(self) -> "SessionMetrics":
        """Collect metrics from the current session."""
        from .observability import collect_metrics
        return collect_metrics(self)

    # ------------------------------------------------------------------
    # Delegates
    # ------------------------------------------------------------------

    @property
    def overlay(self) -> EditOverlay:
        return self._overlay

    @property
    def cache(self) -> ContextCache:
        return self._cache

    @property
    def store(self) -> ScenarioStore:
        return self._store

    @property
    def view_token(self) -> int:
        return self._view_token

    @property
    def focus(self) -> Optional[str]:
        return self._focus

    @property
    def last_build_ms(self) -> float:
        return self._last_build_ms
