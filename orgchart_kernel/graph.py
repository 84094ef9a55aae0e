"""
Org Chart Kernel - Graph Utilities

Pure dict-based analysis of the manager graph. No external dependencies.

The graph is stored arena-style: ids are keys, edges are ``manager_id``
references and the derived ``children_of`` adjacency. Every walk carries
its own visited set, so malformed input (cycles, self-references) always
terminates.
"""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .domain_types import Employee


# ---------------------------------------------------------------------------
# Indexing / adjacency
# ---------------------------------------------------------------------------

def index_employees(
    employees: Iterable[Employee],
) -> Tuple[Dict[str, Employee], List[str]]:
    """
    Index employees by id. Last write wins on duplicates.

    Returns ``(index, duplicate_ids)``. The index keeps the position of the
    first occurrence so rendering order stays stable.
    """
    index: Dict[str, Employee] = {}
    duplicates: List[str] = []
    for emp in employees:
        if emp.id in index and emp.id not in duplicates:
            duplicates.append(emp.id)
        index[emp.id] = emp
    return index, duplicates


def resolved_manager(index: Dict[str, Employee], emp: Employee) -> Optional[str]:
    """Return the manager id if it points at a known employee, else None."""
    mid = emp.manager_id
    if mid is None or mid not in index:
        return None
    return mid


def build_children_map(
    index: Dict[str, Employee],
) -> Dict[str, List[Employee]]:
    """
    Build manager_id -> [direct reports] for resolvable references.

    Self-references carry no edge. Only managers with at least one report
    get a key.
    """
    children: Dict[str, List[Employee]] = {}
    for emp in index.values():
        mid = resolved_manager(index, emp)
        if mid is None or mid == emp.id:
            continue
        children.setdefault(mid, []).append(emp)
    return children


# ---------------------------------------------------------------------------
# Manager-chain cycle detection
# ---------------------------------------------------------------------------

def find_manager_cycles(index: Dict[str, Employee]) -> List[List[str]]:
    """
    Detect cycles in the manager graph.

    Walks each manager chain with a per-walk visited map. A walk stops at an
    employee without a resolvable manager, at a node finished by an earlier
    walk, or when it revisits a node of its own path (a cycle). Each node is
    walked at most once overall.

    Returns cycles as lists of ids in walk order. A self-reference is a
    cycle of one.
    """
    finished: Set[str] = set()
    cycles: List[List[str]] = []

    for start in index:
        if start in finished:
            continue
        path: List[str] = []
        position: Dict[str, int] = {}
        current: Optional[str] = start
        while current is not None:
            if current in finished:
                break
            if current in position:
                cycles.append(path[position[current]:])
                break
            position[current] = len(path)
            path.append(current)
            current = resolved_manager(index, index[current])
        finished.update(path)

    return cycles


def manager_chain(
    index: Dict[str, Employee], employee_id: str, limit: Optional[int] = None,
) -> List[str]:
    """
    Ids above *employee_id*, nearest manager first.

    Stops at the first unresolvable manager, on a revisit, or after
    *limit* steps.
    """
    chain: List[str] = []
    seen: Set[str] = {employee_id}
    emp = index.get(employee_id)
    while emp is not None:
        mid = resolved_manager(index, emp)
        if mid is None or mid in seen:
            break
        if limit is not None and len(chain) >= limit:
            break
        chain.append(mid)
        seen.add(mid)
        emp = index[mid]
    return chain


def would_create_cycle(
    index: Dict[str, Employee], employee_id: str, new_manager_id: Optional[str],
) -> bool:
    """True if reporting *employee_id* to *new_manager_id* closes a loop."""
    if new_manager_id is None:
        return False
    if new_manager_id == employee_id:
        return True
    return employee_id in manager_chain(index, new_manager_id)


# ---------------------------------------------------------------------------
# Descendants / reachability
# ---------------------------------------------------------------------------

def compute_descendant_counts(
    index: Dict[str, Employee],
    children_of: Dict[str, List[Employee]],
    cyclic_ids: Set[str],
) -> Dict[str, int]:
    """
    Size of every employee's full downward subtree (self excluded).

    Outside cycles the reports graph is a forest, so counts come from an
    iterative post-order pass memoized bottom-up. Cycle members reach each
    other, so their counts are taken by a distinct-node walk instead.
    """
    counts: Dict[str, int] = {}

    for start in index:
        if start in counts or start in cyclic_ids:
            continue
        stack: List[Tuple[str, bool]] = [(start, False)]
        while stack:
            node, expanded = stack.pop()
            if node in counts:
                continue
            kids = [c.id for c in children_of.get(node, [])]
            if expanded:
                counts[node] = sum(1 + counts[k] for k in kids)
                continue
            stack.append((node, True))
            for kid in kids:
                if kid not in counts:
                    stack.append((kid, False))

    for cid in cyclic_ids:
        counts[cid] = len(collect_reachable([cid], children_of)) - 1

    return {eid: counts[eid] for eid in index}


def collect_reachable(
    start_ids: Sequence[str],
    children_of: Dict[str, List[Employee]],
) -> Set[str]:
    """Breadth-first set of ids reachable downward, start ids included."""
    seen: Set[str] = set(start_ids)
    queue = deque(start_ids)
    while queue:
        node = queue.popleft()
        for kid in children_of.get(node, []):
            if kid.id not in seen:
                seen.add(kid.id)
                queue.append(kid.id)
    return seen


def compute_depths(
    root_ids: Sequence[str],
    children_of: Dict[str, List[Employee]],
) -> Dict[str, int]:
    """Depth of every node reachable from the roots (roots are depth 0)."""
    depths: Dict[str, int] = {}
    queue = deque()
    for rid in root_ids:
        if rid not in depths:
            depths[rid] = 0
            queue.append(rid)
    while queue:
        node = queue.popleft()
        for kid in children_of.get(node, []):
            if kid.id not in depths:
                depths[kid.id] = depths[node] + 1
                queue.append(kid.id)
    return depths
