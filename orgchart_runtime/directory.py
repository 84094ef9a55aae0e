"""
In-memory directory source.

Serves ContextCache lookups from a fixed employee list, the way a remote
identity directory would: asynchronously, one call per lookup, with
disabled accounts excluded from every result. ``latency`` simulates a
network round trip.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Dict, Iterable, List, Optional

from orgchart_kernel.domain_types import Employee


class InMemoryDirectory:
    """DirectorySource over a local dataset, replaced wholesale by ``reload``."""

    def __init__(self, employees: Iterable[Employee], latency: float = 0.0) -> None:
        self._latency = latency
        self._by_id: Dict[str, Employee] = {}
        self._reports: Dict[str, List[Employee]] = {}
        self.calls: Counter = Counter()
        self.reload(employees)

    def reload(self, employees: Iterable[Employee]) -> None:
        """Replace the served dataset. Call counts are kept."""
        by_id: Dict[str, Employee] = {}
        reports: Dict[str, List[Employee]] = {}
        for emp in employees:
            if not emp.account_enabled:
                continue
            by_id[emp.id] = emp
        for emp in by_id.values():
            if emp.manager_id is not None and emp.manager_id != emp.id:
                reports.setdefault(emp.manager_id, []).append(emp)
        self._by_id = by_id
        self._reports = reports

    async def lookup_by_id(self, employee_id: str) -> Optional[Employee]:
        await self._round_trip("by_id")
        return self._by_id.get(employee_id)

    async def lookup_manager_of(self, employee_id: str) -> Optional[Employee]:
        await self._round_trip("manager_of")
        emp = self._by_id.get(employee_id)
        if emp is None or emp.manager_id is None:
            return None
        return self._by_id.get(emp.manager_id)

    async def lookup_direct_reports_of(self, employee_id: str) -> List[Employee]:
        await self._round_trip("reports_of")
        return list(self._reports.get(employee_id, ()))

    def all_employees(self) -> List[Employee]:
        """Every enabled account, in input order."""
        return list(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)

    async def _round_trip(self, kind: str) -> None:
        self.calls[kind] += 1
        if self._latency > 0:
            await asyncio.sleep(self._latency)
