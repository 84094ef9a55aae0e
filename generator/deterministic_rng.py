"""
Deterministic RNG - Seeded draws for organization generation.

The compiler never touches ``random`` directly: every choice it makes
(names, titles, managers within the span limit, fault targets) is a
named draw on one DeterministicRNG. Identical (seed) -> identical draw
sequence -> identical employee list.
"""

from __future__ import annotations

import random
from typing import List, Mapping, Sequence, Tuple, TypeVar

T = TypeVar("T")


class DeterministicRNG:
    """Local seeded RNG. No global random state touched."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    # ── People ────────────────────────────────────────────────

    def person_name(
        self, first_names: Sequence[str], last_names: Sequence[str],
    ) -> Tuple[str, str]:
        return self._rng.choice(first_names), self._rng.choice(last_names)

    def title(self, titles: Sequence[str]) -> str:
        return self._rng.choice(titles)

    def manager_for(
        self, candidates: Sequence[str], span: Mapping[str, int], max_span: int,
    ) -> str:
        """
        A manager from *candidates* with room for one more direct report.

        Raises ValueError when every candidate already has *max_span*
        reports.
        """
        open_slots = [m for m in candidates if span.get(m, 0) < max_span]
        if not open_slots:
            raise ValueError(f"No manager with fewer than {max_span} report(s)")
        return self._rng.choice(open_slots)

    # ── Faults / flags ────────────────────────────────────────

    def fault_target(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("No eligible target")
        return self._rng.choice(items)

    def fault_targets(self, items: Sequence[T], k: int) -> List[T]:
        """*k* distinct targets, in draw order."""
        if k > len(items):
            raise ValueError(f"Need {k} target(s), only {len(items)} eligible")
        return self._rng.sample(list(items), k)
