"""
Org Chart Kernel - Context Cache Tests

Sources here are deliberately naive (they do not filter disabled
accounts) so the cache's own filtering is exercised.

Run:  python -m orgchart_kernel.test_context   (or pytest)
"""

from __future__ import annotations

import asyncio
import sys
from collections import Counter
from typing import List, Optional

import pytest

from orgchart_kernel.context import ContextCache
from orgchart_kernel.domain_types import Employee
from orgchart_kernel.errors import UnknownEmployeeError


# ══════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════

class _DictSource:
    """Synchronous lookups over a fixed list, counting every call."""

    def __init__(self, employees: List[Employee]) -> None:
        self._by_id = {e.id: e for e in employees}
        self.calls: Counter = Counter()

    def lookup_by_id(self, employee_id: str) -> Optional[Employee]:
        self.calls["by_id"] += 1
        return self._by_id.get(employee_id)

    def lookup_manager_of(self, employee_id: str) -> Optional[Employee]:
        self.calls["manager_of"] += 1
        emp = self._by_id.get(employee_id)
        if emp is None or emp.manager_id is None:
            return None
        return self._by_id.get(emp.manager_id)

    def lookup_direct_reports_of(self, employee_id: str) -> List[Employee]:
        self.calls["reports_of"] += 1
        return [e for e in self._by_id.values() if e.manager_id == employee_id]


class _SlowSource(_DictSource):
    """Same data, but every lookup suspends like a network call."""

    async def lookup_by_id(self, employee_id):
        await asyncio.sleep(0.01)
        return super().lookup_by_id(employee_id)

    async def lookup_manager_of(self, employee_id):
        await asyncio.sleep(0.01)
        return super().lookup_manager_of(employee_id)

    async def lookup_direct_reports_of(self, employee_id):
        await asyncio.sleep(0.01)
        return super().lookup_direct_reports_of(employee_id)


class _BrokenSource(_DictSource):
    def lookup_direct_reports_of(self, employee_id):
        raise ConnectionError("directory unavailable")


def _make_org() -> List[Employee]:
    """top -> m -> (r1, r2 -> r3); plus a standalone contractor."""
    return [
        Employee(id="top", name="Tess"),
        Employee(id="m", name="Mona", manager_id="top"),
        Employee(id="r1", name="Rafa", manager_id="m"),
        Employee(id="r2", name="Rin", manager_id="m"),
        Employee(id="r3", name="Ravi", manager_id="r2"),
        Employee(id="solo", name="Sol"),
    ]


def _ids(context) -> List[str]:
    return [e.id for e in context]


def _header(title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")


# ══════════════════════════════════════════════════════════════
# Anchoring
# ══════════════════════════════════════════════════════════════

def test_01_manager_context_is_full_team() -> None:
    _header("Test 01 -- Manager anchors on themself")
    cache = ContextCache()
    ctx = asyncio.run(cache.get_context("m", _DictSource(_make_org())))
    assert _ids(ctx) == ["m", "r1", "r2", "r3"]
    assert cache.manager_ref("m") == "top"


def test_02_individual_contributor_anchors_on_manager() -> None:
    _header("Test 02 -- IC sees manager and peers")
    cache = ContextCache()
    ctx = asyncio.run(cache.get_context("r1", _DictSource(_make_org())))
    assert ctx[0].id == "m"
    assert set(_ids(ctx)) == {"m", "r1", "r2", "r3"}
    by_id = {e.id: e for e in ctx}
    assert by_id["r1"].manager_id == "m"
    assert by_id["r3"].manager_id == "r2"


def test_03_manager_with_manager_anchors_on_self() -> None:
    _header("Test 03 -- Mid-level manager context")
    cache = ContextCache()
    ctx = asyncio.run(cache.get_context("r2", _DictSource(_make_org())))
    assert _ids(ctx) == ["r2", "r3"]
    assert cache.manager_ref("r2") == "m"


def test_04_standalone_person() -> None:
    _header("Test 04 -- No manager, no reports")
    cache = ContextCache()
    ctx = asyncio.run(cache.get_context("solo", _DictSource(_make_org())))
    assert _ids(ctx) == ["solo"]
    assert cache.manager_ref("solo") is None


def test_05_unknown_and_disabled_people() -> None:
    _header("Test 05 -- Unknown / disabled person")
    org = _make_org() + [Employee(id="gone", name="Gus", manager_id="m", account_enabled=False)]
    cache = ContextCache()
    with pytest.raises(UnknownEmployeeError):
        asyncio.run(cache.get_context("nobody", _DictSource(org)))
    with pytest.raises(UnknownEmployeeError):
        asyncio.run(cache.get_context("gone", _DictSource(org)))
    ctx = asyncio.run(cache.get_context("m", _DictSource(org)))
    assert "gone" not in _ids(ctx)
    assert len(cache) == 1


def test_06_depth_bound() -> None:
    _header("Test 06 -- Team walk stops at max_depth")
    chain = [Employee(id="a", name="A")] + [
        Employee(id=c, name=c.upper(), manager_id=p) for p, c in zip("abcd", "bcde")
    ]
    cache = ContextCache(max_depth=2)
    ctx = asyncio.run(cache.get_context("a", _DictSource(chain)))
    assert _ids(ctx) == ["a", "b", "c"]
    with pytest.raises(ValueError):
        ContextCache(max_depth=0)


def test_07_cyclic_directory_terminates() -> None:
    _header("Test 07 -- Directory with a reporting loop")
    looped = [Employee(id="x", name="X", manager_id="y"), Employee(id="y", name="Y", manager_id="x")]
    ctx = asyncio.run(ContextCache().get_context("x", _DictSource(looped)))
    assert _ids(ctx) == ["x", "y"]


# ══════════════════════════════════════════════════════════════
# Memoization / coalescing / invalidation
# ══════════════════════════════════════════════════════════════

def test_08_repeat_request_hits_cache() -> None:
    _header("Test 08 -- Second request is served from the cache")
    source = _DictSource(_make_org())
    cache = ContextCache()

    async def scenario():
        first = await cache.get_context("r1", source)
        second = await cache.get_context("r1", source)
        return first, second

    first, second = asyncio.run(scenario())
    assert first is second
    assert source.calls["by_id"] == 1
    assert cache.stats()["hits"] == 1
    assert cache.stats()["misses"] == 1


def test_09_concurrent_requests_coalesce() -> None:
    _header("Test 09 -- Concurrent requests share one fetch")
    source = _SlowSource(_make_org())
    cache = ContextCache()

    async def scenario():
        return await asyncio.gather(
            cache.get_context("m", source), cache.get_context("m", source),
        )

    a, b = asyncio.run(scenario())
    assert a is b
    assert source.calls["by_id"] == 1
    assert cache.coalesced == 1


def test_10_invalidate_forces_refetch() -> None:
    _header("Test 10 -- invalidate() clears every entry")
    source = _DictSource(_make_org())
    cache = ContextCache()
    asyncio.run(cache.get_context("m", source))
    asyncio.run(cache.get_context("solo", source))
    assert cache.invalidate() == 2
    assert len(cache) == 0
    assert cache.peek("m") is None
    asyncio.run(cache.get_context("m", source))
    assert source.calls["by_id"] == 3


def test_11_failed_population_leaves_no_entry() -> None:
    _header("Test 11 -- Source failure propagates, nothing cached")
    cache = ContextCache()
    with pytest.raises(ConnectionError):
        asyncio.run(cache.get_context("m", _BrokenSource(_make_org())))
    assert "m" not in cache
    assert cache.stats()["in_flight"] == 0
    ctx = asyncio.run(cache.get_context("m", _DictSource(_make_org())))
    assert _ids(ctx)[0] == "m"


def test_12_abandoned_request_still_populates() -> None:
    _header("Test 12 -- Cancelling the caller does not abort the fetch")
    source = _SlowSource(_make_org())
    cache = ContextCache()

    async def scenario():
        waiter = asyncio.ensure_future(cache.get_context("m", source))
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        for _ in range(200):
            if "m" in cache:
                break
            await asyncio.sleep(0.01)

    asyncio.run(scenario())
    assert _ids(cache.peek("m")) == ["m", "r1", "r2", "r3"]


def test_13_population_spanning_invalidation_is_not_stored() -> None:
    _header("Test 13 -- Late result after invalidate() is not cached")
    source = _SlowSource(_make_org())
    cache = ContextCache()

    async def scenario():
        pending = asyncio.ensure_future(cache.get_context("m", source))
        await asyncio.sleep(0)
        cache.invalidate()
        return await pending

    ctx = asyncio.run(scenario())
    assert _ids(ctx) == ["m", "r1", "r2", "r3"]
    assert "m" not in cache


# ══════════════════════════════════════════════════════════════
# Runner
# ══════════════════════════════════════════════════════════════

def main() -> None:
    tests = [v for k, v in sorted(globals().items()) if k.startswith("test_")]
    failed = 0
    for fn in tests:
        try:
            fn()
            print("  [PASS]")
        except Exception as e:
            failed += 1
            print(f"\n[FAIL] {fn.__name__}: {e!r}")
    print(f"\n{'='*60}")
    print(f"  RESULTS: {len(tests) - failed}/{len(tests)} tests passed")
    print(f"{'='*60}")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
