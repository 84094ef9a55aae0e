"""
Observability - In-process metrics collection.

No external dependencies. Uses compute_diagnostics + timing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from orgchart_kernel.diagnostics import compute_diagnostics
from orgchart_kernel.hashing import canonical_hash
from orgchart_kernel.hierarchy import build_hierarchy

if TYPE_CHECKING:
    from .session import PlanningSession


@dataclass(frozen=True)
class SessionMetrics:
    """Snapshot of observable session metrics."""

    build_latency_ms: float
    employee_count: int
    root_count: int
    orphan_count: int
    planning_mode: bool
    pending_edit_count: int
    reassigned_count: int
    cache_entries: int
    cache_hits: int
    cache_misses: int
    cache_coalesced: int
    scenario_count: int
    effective_hash: str
    warnings: list


def collect_metrics(session: "PlanningSession") -> SessionMetrics:
    """
    Collect metrics from a live session.

    Rebuilds the effective hierarchy to measure build latency.
    """
    effective = session.overlay.effective()

    start = time.perf_counter()
    result = build_hierarchy(effective)
    elapsed_ms = (time.perf_counter() - start) * 1000.0

    diagnostics = compute_diagnostics(result)
    cache_stats = session.cache.stats()

    return SessionMetrics(
        build_latency_ms=round(elapsed_ms, 2),
        employee_count=diagnostics["employee_count"],
        root_count=diagnostics["root_count"],
        orphan_count=diagnostics["orphan_count"],
        planning_mode=session.planning_mode,
        pending_edit_count=len(session.overlay.overlay),
        reassigned_count=len(session.overlay.reassigned),
        cache_entries=cache_stats["entries"],
        cache_hits=cache_stats["hits"],
        cache_misses=cache_stats["misses"],
        cache_coalesced=cache_stats["coalesced"],
        scenario_count=len(session.list_scenarios()),
        effective_hash=canonical_hash(effective),
        warnings=diagnostics["warnings"],
    )
