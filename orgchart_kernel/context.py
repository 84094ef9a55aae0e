"""
Org Chart Kernel - Context Cache

ContextCache.get_context(person_id, source) -> Tuple[Employee, ...]

Returns the minimal employee subset needed to show one person's place in
the organization, memoized by person id.

Anchoring:
  - a person with direct reports anchors on themself
  - an individual contributor anchors on their manager, so they appear
    beside their peers
  - a person with neither is returned alone

The anchor's full downward team is pulled depth-first (bounded by
``max_depth``). Every gathered report carries the id of the manager it
was fetched under; the anchor's own manager is kept as a separate
"move up" pointer (see ``manager_ref``).

Population may suspend. Concurrent requests for the same id share one
in-flight task. A caller abandoning its request does not abort the work.
``invalidate()`` drops every entry at once; a population that started
before the invalidation still answers its waiters but is not stored.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set, Tuple

from .constants import CONTEXT_MAX_DEPTH
from .domain_types import Employee
from .errors import UnknownEmployeeError

logger = logging.getLogger(__name__)

Context = Tuple[Employee, ...]


class DirectorySource(Protocol):
    """
    Lookup capability behind the cache.

    Methods may return plain values or awaitables. Implementations exclude
    disabled accounts; the cache filters them again regardless.
    """

    def lookup_by_id(self, employee_id: str) -> Any: ...

    def lookup_manager_of(self, employee_id: str) -> Any: ...

    def lookup_direct_reports_of(self, employee_id: str) -> Any: ...


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _active(emp: Optional[Employee]) -> Optional[Employee]:
    if emp is None or not emp.account_enabled:
        return None
    return emp


class ContextCache:
    """Per-person memo of organizational context, cleared wholesale."""

    def __init__(self, max_depth: int = CONTEXT_MAX_DEPTH) -> None:
        if max_depth < 1:
            raise ValueError(f"max_depth must be >= 1, got {max_depth}")
        self._max_depth = max_depth
        self._entries: Dict[str, Context] = {}
        self._manager_refs: Dict[str, Optional[str]] = {}
        self._in_flight: Dict[str, asyncio.Future] = {}
        self._generation = 0
        self.hits = 0
        self.misses = 0
        self.coalesced = 0

    # -- Public API ---------------------------------------------------------

    async def get_context(self, person_id: str, source: DirectorySource) -> Context:
        """
        Context for *person_id*, fetched from *source* on first request.

        Raises UnknownEmployeeError when the person cannot be resolved.
        Source failures propagate and leave no entry behind.
        """
        cached = self._entries.get(person_id)
        if cached is not None:
            self.hits += 1
            return cached

        task = self._in_flight.get(person_id)
        if task is None:
            self.misses += 1
            task = asyncio.ensure_future(
                self._populate(person_id, source, self._generation)
            )
            self._in_flight[person_id] = task
            task.add_done_callback(
                lambda done, pid=person_id: self._forget(pid, done)
            )
        else:
            self.coalesced += 1

        return await asyncio.shield(task)

    def peek(self, person_id: str) -> Optional[Context]:
        """Cached entry for *person_id*, without fetching."""
        return self._entries.get(person_id)

    def manager_ref(self, person_id: str) -> Optional[str]:
        """Id of the manager above the cached context's anchor, if any."""
        return self._manager_refs.get(person_id)

    def invalidate(self) -> int:
        """Discard every entry. Returns how many were dropped."""
        dropped = len(self._entries)
        self._entries = {}
        self._manager_refs = {}
        self._in_flight = {}
        self._generation += 1
        logger.debug("Context cache invalidated (%d entries dropped)", dropped)
        return dropped

    def stats(self) -> dict:
        return {
            "entries": len(self._entries),
            "in_flight": len(self._in_flight),
            "hits": self.hits,
            "misses": self.misses,
            "coalesced": self.coalesced,
        }

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, person_id: object) -> bool:
        return person_id in self._entries

    # -- Population ---------------------------------------------------------

    async def _populate(
        self, person_id: str, source: DirectorySource, generation: int,
    ) -> Context:
        person = _active(await _resolve(source.lookup_by_id(person_id)))
        if person is None:
            raise UnknownEmployeeError(person_id, "the directory")

        reports = await self._reports_of(source, person.id)
        anchor: Optional[Employee] = person
        if not reports:
            anchor = _active(await _resolve(source.lookup_manager_of(person.id)))
            if anchor is not None:
                reports = await self._reports_of(source, anchor.id)

        if anchor is None:
            context: Context = (person,)
            manager_ref = None
        else:
            above = _active(await _resolve(source.lookup_manager_of(anchor.id)))
            manager_ref = above.id if above is not None else None
            members: List[Employee] = [anchor]
            visited: Set[str] = {anchor.id}
            await self._walk(source, anchor.id, reports, 1, visited, members)
            if person.id not in visited:
                members.append(person)
            context = tuple(members)

        if generation == self._generation:
            self._entries[person_id] = context
            self._manager_refs[person_id] = manager_ref
            logger.debug(
                "Cached context for %r: %d employee(s) anchored at %r",
                person_id, len(context), context[0].id,
            )
        else:
            logger.debug("Discarded stale context for %r after invalidation", person_id)
        return context

    async def _walk(
        self,
        source: DirectorySource,
        parent_id: str,
        reports: Sequence[Employee],
        depth: int,
        visited: Set[str],
        out: List[Employee],
    ) -> None:
        for report in reports:
            if report.id in visited:
                continue
            visited.add(report.id)
            if report.manager_id != parent_id:
                report = replace(report, manager_id=parent_id)
            out.append(report)
            if depth < self._max_depth:
                kids = await self._reports_of(source, report.id)
                await self._walk(source, report.id, kids, depth + 1, visited, out)

    @staticmethod
    async def _reports_of(source: DirectorySource, employee_id: str) -> List[Employee]:
        found = await _resolve(source.lookup_direct_reports_of(employee_id))
        return [e for e in (found or ()) if e.account_enabled]

    def _forget(self, person_id: str, task: asyncio.Future) -> None:
        if self._in_flight.get(person_id) is task:
            del self._in_flight[person_id]
        if not task.cancelled() and task.exception() is not None:
            logger.warning(
                "Context population for %r failed: %s", person_id, task.exception(),
            )
