"""
Org Chart Runtime

Orchestration and persistence around the Org Chart Kernel: planning
session, directory source, scenario repository, drift and metrics.
"""

from .config import RuntimeConfig, load_config, configure_logging
from .directory import InMemoryDirectory
from .scenario_repository import SqliteScenarioRepository
from .session import PlanningSession, UnsavedChangesError, ScenarioNotFoundError
from .drift import compare_employee_sets
from .observability import SessionMetrics, collect_metrics

__all__ = [
    "RuntimeConfig",
    "load_config",
    "configure_logging",
    "InMemoryDirectory",
    "SqliteScenarioRepository",
    "PlanningSession",
    "UnsavedChangesError",
    "ScenarioNotFoundError",
    "compare_employee_sets",
    "SessionMetrics",
    "collect_metrics",
]
