"""
Org Chart Kernel - Scenario Store

A scenario is a named, frozen copy of the effective employee collection.
Stores only ever add and delete snapshots; nothing is edited in place.

ScenarioStore is the persistence boundary. InMemoryScenarioStore serves
tests and single-process use; durable stores live in orgchart_runtime
(sqlite3) and backend (PostgreSQL).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Protocol

from .domain_types import Employee, ScenarioSnapshot
from .hashing import canonical_hash


class ScenarioStore(Protocol):
    """Durable keyed store of scenario snapshots."""

    def save(self, snapshot: ScenarioSnapshot) -> None: ...

    def list(self) -> List[ScenarioSnapshot]: ...

    def get(self, scenario_id: str) -> Optional[ScenarioSnapshot]: ...

    def delete(self, scenario_id: str) -> bool: ...


def create_snapshot(
    name: str,
    description: str,
    author: str,
    employees: Iterable[Employee],
    scenario_id: Optional[str] = None,
    created_at: Optional[str] = None,
) -> ScenarioSnapshot:
    """Freeze *employees* into a new ScenarioSnapshot."""
    if not name or not name.strip():
        raise ValueError("Scenario name must not be empty")
    frozen = tuple(employees)
    return ScenarioSnapshot(
        id=scenario_id or uuid.uuid4().hex,
        name=name.strip(),
        description=description,
        created_at=created_at or datetime.now(timezone.utc).isoformat(),
        created_by=author,
        employees=frozen,
        content_hash=canonical_hash(frozen),
    )


class InMemoryScenarioStore:
    """Process-local ScenarioStore. Listing order is save order."""

    def __init__(self) -> None:
        self._snapshots: Dict[str, ScenarioSnapshot] = {}

    def save(self, snapshot: ScenarioSnapshot) -> None:
        if snapshot.id in self._snapshots:
            raise ValueError(f"Scenario {snapshot.id!r} already exists")
        self._snapshots[snapshot.id] = snapshot

    def list(self) -> List[ScenarioSnapshot]:
        return list(self._snapshots.values())

    def get(self, scenario_id: str) -> Optional[ScenarioSnapshot]:
        return self._snapshots.get(scenario_id)

    def delete(self, scenario_id: str) -> bool:
        return self._snapshots.pop(scenario_id, None) is not None

    def __len__(self) -> int:
        return len(self._snapshots)
